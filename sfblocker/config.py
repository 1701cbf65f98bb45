"""Config loading for the sensitive files blocker.

Reads `.sfblocker/config.yaml` (or `~/.sfblocker/config.yaml`).
Raises SystemExit on parse errors or a missing `version` field.
If no config file is found, returns default values. Note that the default
blocker has no rules, so create_blocker() refuses it until at least one of
``blockedFiles`` / ``blockedFilesRegex`` is configured.

Config search order:
  1. `config_path` argument (if provided — for testing or explicit override)
  2. SFBLOCKER_CONFIG environment variable (if set)
  3. `.sfblocker/config.yaml` (working directory — for development)
  4. `~/.sfblocker/config.yaml` (home directory — for production deployments)

Environment variable overrides:
  SFBLOCKER_PORT — overrides server.port (takes precedence over config file value)
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Any, NoReturn, Optional

import yaml

from sfblocker.constants import (
    DEFAULT_BLOCKER_NAME,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_TEMPLATE_VARS,
    DEFAULT_UPSTREAM_URL,
)
from sfblocker.render.template import DEFAULT_CSS_TEMPLATE, DEFAULT_HTML_TEMPLATE
from sfblocker.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

DEFAULT_CONFIG_PATHS = [
    ".sfblocker/config.yaml",
    os.path.expanduser("~/.sfblocker/config.yaml"),
]


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class TemplateConfig:
    """Forbidden page template.

    enabled: TemplateRenderer when True, plain-text DefaultRenderer otherwise.
    html:    Document template using {{ .Var }} substitutions.
    css:     Stylesheet injected as the CSS variable when vars has no CSS key.
    vars:    Template variable bindings.
    """

    enabled: bool = True
    html: str = DEFAULT_HTML_TEMPLATE
    css: str = DEFAULT_CSS_TEMPLATE
    vars: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_TEMPLATE_VARS))


@dataclass
class LogsConfig:
    """Audit log configuration."""

    enabled: bool = False
    log_file: str = ""
    legacy_address_format: bool = False  # drop a fixed 5-char ":PORT" suffix


@dataclass
class BlockerConfig:
    """Middleware configuration: blocklists, forbidden page, audit log."""

    name: str = DEFAULT_BLOCKER_NAME
    blocked_files: list[str] = field(default_factory=list)
    blocked_files_regex: list[str] = field(default_factory=list)
    template: TemplateConfig = field(default_factory=TemplateConfig)
    logs: LogsConfig = field(default_factory=LogsConfig)

    @classmethod
    def from_dict(cls, raw: dict) -> "BlockerConfig":
        """Build from the camelCase `blocker:` mapping; unknown keys are ignored.

        Raises:
            SystemExit(1): a field has the wrong type.
        """
        template_raw = _section(raw, "template")
        template = TemplateConfig(
            enabled=_typed(template_raw, "enabled", bool, True, "blocker.template"),
            html=_typed(template_raw, "html", str, DEFAULT_HTML_TEMPLATE, "blocker.template"),
            css=_typed(template_raw, "css", str, DEFAULT_CSS_TEMPLATE, "blocker.template"),
            # User vars extend the defaults; Title, Heading and Body are always set.
            vars={
                **DEFAULT_TEMPLATE_VARS,
                **_typed(template_raw, "vars", dict, {}, "blocker.template"),
            },
        )

        logs_raw = _section(raw, "logs")
        logs = LogsConfig(
            enabled=_typed(logs_raw, "enabled", bool, False, "blocker.logs"),
            log_file=_typed(logs_raw, "logFile", str, "", "blocker.logs"),
            legacy_address_format=_typed(
                logs_raw, "legacyAddressFormat", bool, False, "blocker.logs"
            ),
        )

        return cls(
            name=_typed(raw, "name", str, DEFAULT_BLOCKER_NAME, "blocker"),
            blocked_files=_string_list(raw, "blockedFiles"),
            blocked_files_regex=_string_list(raw, "blockedFilesRegex"),
            template=template,
            logs=logs,
        )


@dataclass
class ServerConfig:
    """Listening address of the host server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


@dataclass
class UpstreamConfig:
    """Where requests that are not blocked are forwarded."""

    url: str = DEFAULT_UPSTREAM_URL


@dataclass
class AppConfig:
    """Root configuration object populated from .sfblocker/config.yaml.

    All fields have defaults; the blocker section needs at least one rule
    before the middleware can be constructed.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    server: ServerConfig = field(default_factory=ServerConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    blocker: BlockerConfig = field(default_factory=BlockerConfig)
    path: Optional[str] = None

    @classmethod
    def defaults(cls) -> "AppConfig":
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "AppConfig":
        """Construct AppConfig from a parsed YAML dict, merging onto defaults.

        Raises:
            SystemExit(1): a field has the wrong type.
        """
        server_raw = _section(raw, "server")
        server = ServerConfig(
            host=_typed(server_raw, "host", str, DEFAULT_HOST, "server"),
            port=_typed(server_raw, "port", int, DEFAULT_PORT, "server"),
        )

        upstream_raw = _section(raw, "upstream")
        upstream = UpstreamConfig(
            url=_typed(upstream_raw, "url", str, DEFAULT_UPSTREAM_URL, "upstream"),
        )

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            server=server,
            upstream=upstream,
            blocker=BlockerConfig.from_dict(_section(raw, "blocker")),
            path=path,
        )


# ─── Field helpers ────────────────────────────────────────────────────────────


def _fail(msg: str) -> NoReturn:
    print(f"CONFIG ERROR: {msg}", file=sys.stderr)
    raise SystemExit(1)


def _section(raw: dict, key: str) -> dict:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        _fail(f"'{key}' must be a mapping, got {type(value).__name__}.")
    return value


def _typed(raw: dict, key: str, expected: type, default: Any, where: str) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    # bool is an int subclass; `port: true` is still a type error.
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        _fail(
            f"'{where}.{key}' must be of type {expected.__name__}, "
            f"got {type(value).__name__}."
        )
    return value


def _string_list(raw: dict, key: str) -> list[str]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        _fail(f"'blocker.{key}' must be a list of strings.")
    return list(value)


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate configuration.

    If no file is found at any search path, returns default AppConfig (not an
    error). If a file is found but invalid, writes the error to stderr and
    raises SystemExit(1). ``SFBLOCKER_PORT`` is applied afterwards in both cases.

    Raises:
        SystemExit(1): On YAML parse error, missing or unsupported ``version``,
                       wrong field types, or invalid ``SFBLOCKER_PORT``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("SFBLOCKER_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    if found_path is None:
        logger.info("No config file found — using defaults", searched=search_paths)
        config = AppConfig.defaults()
        _apply_env_overrides(config)
        return config

    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        _fail(
            f"Failed to parse {found_path}: {exc}\n"
            "The blocker refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
    except OSError as exc:
        _fail(f"Could not read {found_path}: {exc}")

    if not isinstance(raw, dict):
        if raw is None:
            _fail(
                f"{found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        _fail(
            f"{found_path} is not a valid YAML mapping.\n"
            "The config file must be a YAML dictionary at the top level."
        )

    version = raw.get("version")
    if version is None:
        _fail(
            f"{found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
    if version not in SUPPORTED_VERSIONS:
        _fail(
            f"Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )

    config = AppConfig.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    if config.server.host == "0.0.0.0":
        logger.warning(
            "SECURITY WARNING: server is configured to bind on 0.0.0.0 (all interfaces). "
            "Make sure the blocker is the only path to the upstream."
        )

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        exact_rules=len(config.blocker.blocked_files),
        pattern_rules=len(config.blocker.blocked_files_regex),
        template=config.blocker.template.enabled,
        audit_log=config.blocker.logs.enabled,
    )
    return config


def _apply_env_overrides(config: AppConfig) -> None:
    """Apply SFBLOCKER_PORT to config.server.port in-place.

    Raises:
        SystemExit(1): If SFBLOCKER_PORT is set but not a valid integer.
    """
    env_port = os.environ.get("SFBLOCKER_PORT")
    if env_port is not None:
        try:
            config.server.port = int(env_port)
        except ValueError:
            _fail(
                "SFBLOCKER_PORT environment variable is not a valid "
                f"integer: '{env_port}'"
            )
