"""Shared constants for the sensitive files blocker.

Default values mirror the page and messages operators expect from the blocker
when nothing is configured. No magic numbers in other modules: import from here.
"""

# ─── Responses ────────────────────────────────────────────────────────────────

# Status served for every blocked path.
FORBIDDEN_STATUS: int = 403

# Status served when the blocked response could not be written.
RENDER_FAILURE_STATUS: int = 500

# Body written by the default (non-template) renderer.
DEFAULT_FORBIDDEN_MESSAGE: str = "You do not have permission to access this document."

# Template variables used when the configuration supplies none.
DEFAULT_TEMPLATE_VARS: dict[str, str] = {
    "Title": "403 Forbidden",
    "Heading": "403 Forbidden",
    "Body": DEFAULT_FORBIDDEN_MESSAGE,
}

# Reserved template variable populated from ``template.css``.
CSS_TEMPLATE_VAR: str = "CSS"

# ─── Matching ─────────────────────────────────────────────────────────────────

# Only a single leading separator is stripped before lookup.
PATH_SEPARATOR: str = "/"

# ─── Audit log ────────────────────────────────────────────────────────────────

# Audit log files are created readable and writable by the owner only.
AUDIT_FILE_MODE: int = 0o600

# Length of the ":PORT" suffix removed by the legacy address policy
# (colon plus four digits).
LEGACY_PORT_SUFFIX_LEN: int = 5

# Timestamp layout for audit lines, e.g. "2024/01/31 13:45:07".
AUDIT_DATE_FORMAT: str = "%Y/%m/%d %H:%M:%S"

# ─── Host server ──────────────────────────────────────────────────────────────

DEFAULT_BLOCKER_NAME: str = "sensitive-files-blocker"
DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8080
DEFAULT_UPSTREAM_URL: str = "http://127.0.0.1:8000"
