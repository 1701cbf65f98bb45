"""Sensitive files blocker.

ASGI middleware that answers 403 for request paths naming sensitive files
(``.env``, ``passwords.txt``, ``*.bak`` ...) and forwards everything else.

    from sfblocker import SensitiveFileBlocker, create_blocker
"""

from sfblocker.middleware import SensitiveFileBlocker, build_components, create_blocker

__version__ = "1.0.0"

__all__ = [
    "SensitiveFileBlocker",
    "build_components",
    "create_blocker",
]
