"""Network-related helpers."""

from __future__ import annotations

import errno
from typing import Mapping, Optional

DISCONNECT_ERRNOS = {
    errno.EPIPE,
    errno.ECONNRESET,
    errno.ETIMEDOUT,
}
if hasattr(errno, "WSAECONNRESET"):
    DISCONNECT_ERRNOS.add(errno.WSAECONNRESET)  # pragma: no cover


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


def request_origin(
    headers: Mapping[str, str],
    fallback_host: str,
    base_url: Optional[str] = None,
) -> str:
    """Origin of the page as the client reached it, e.g. ``https://example.com``."""
    if base_url:
        return base_url.rstrip("/")
    host = headers.get("Host") or fallback_host
    proto = headers.get("X-Forwarded-Proto") or "http"
    # Proxies may append a chain: "https, http".
    proto = proto.split(",", 1)[0].strip() or "http"
    return f"{proto}://{host}"
