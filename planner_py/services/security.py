# planner_py/services/security.py
# Share endpoint hardening: ids, payload sanitisation, response headers.

from __future__ import annotations

import html
import re
import secrets
import string
from urllib.parse import urlparse

SHARE_ID_ALPHABET = string.ascii_letters + string.digits
SHARE_ID_LENGTH = 32
SHARE_ID_RE = re.compile(r"^[A-Za-z0-9]{16,64}$")

SECURITY_HEADERS = {
    "Content-Security-Policy": "; ".join([
        "default-src 'self'",
        "script-src 'self' 'unsafe-inline'",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data: blob:",
        "font-src 'self'",
        "connect-src 'self'",
        "frame-ancestors 'none'",
    ]),
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Cache-Control": "no-store",
}


def generate_share_id() -> str:
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(SHARE_ID_LENGTH))


def is_valid_share_id(share_id: str) -> bool:
    return bool(SHARE_ID_RE.match(share_id or ""))


def sanitize_text(value: str) -> str:
    """Trim and HTML-escape (including quotes and '/')."""
    return html.escape((value or "").strip(), quote=True).replace("/", "&#x2F;")


def is_same_origin(origin: str | None, host: str | None) -> bool:
    """CSRF check for browser posts: the Origin header must name this host."""
    if not origin or not host:
        return False
    try:
        return urlparse(origin).netloc == host
    except ValueError:
        return False
