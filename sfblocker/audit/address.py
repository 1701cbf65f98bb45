"""Remote address normalisation for audit lines.

Every audit call site goes through strip_port(); the port policy lives here
and nowhere else.
"""

from __future__ import annotations

from sfblocker.constants import LEGACY_PORT_SUFFIX_LEN


def strip_port(remote_addr: str, fixed_suffix: bool = False) -> str:
    """Return the host portion of ``remote_addr``.

    Default policy parses the address:
        "10.0.0.1:51234"  -> "10.0.0.1"
        "[::1]:8080"      -> "::1"
        "::1", "unix"     -> unchanged (no port to remove)

    With ``fixed_suffix=True`` the last five characters are dropped
    unconditionally, which is only correct for four-digit ports
    ("10.0.0.1:4242" -> "10.0.0.1", but "10.0.0.1:51234" -> "10.0.0.1:").
    """
    if fixed_suffix:
        return remote_addr[:-LEGACY_PORT_SUFFIX_LEN]

    if remote_addr.startswith("["):
        end = remote_addr.find("]")
        if end != -1:
            return remote_addr[1:end]
        return remote_addr

    if remote_addr.count(":") == 1:
        host, _, port = remote_addr.partition(":")
        if port.isdigit():
            return host

    return remote_addr


def format_client(client: tuple[str, int] | None) -> str:
    """Render an ASGI ``scope["client"]`` tuple as ``host:port``.

    IPv6 hosts are bracketed. Returns "" when the server supplied no client.
    """
    if not client:
        return ""
    host, port = client[0], client[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
