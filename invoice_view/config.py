"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
import shlex
from typing import List, Optional


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def env_args(name: str) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return []
    return shlex.split(raw)


HOST = env_str("INVOICE_HOST", "0.0.0.0")
PORT = env_int("INVOICE_PORT", 8080, minimum=1)
LISTEN_BACKLOG = env_int("INVOICE_LISTEN_BACKLOG", 512, minimum=1)
MAX_BODY_BYTES = env_int("INVOICE_MAX_BODY_BYTES", 64 * 1024, minimum=1024)

DEFAULT_MAX_INFLIGHT_RENDERS = max(4, os.cpu_count() or 4)
MAX_INFLIGHT_RENDERS = env_int(
    "INVOICE_MAX_INFLIGHT_RENDERS",
    DEFAULT_MAX_INFLIGHT_RENDERS,
    minimum=1,
)
RENDER_QUEUE_TIMEOUT_MS = env_int("INVOICE_RENDER_QUEUE_TIMEOUT_MS", 30000, minimum=0)
NAVIGATION_TIMEOUT_MS = env_int("INVOICE_NAVIGATION_TIMEOUT_MS", 30000, minimum=1000)

# Origin the headless browser loads; reconstructed from request headers when unset.
RENDER_BASE_URL = env_str("INVOICE_RENDER_BASE_URL")

# Deployment environments ship their own Chromium build.
CHROMIUM_EXECUTABLE = env_str("INVOICE_CHROMIUM_EXECUTABLE")
CHROMIUM_ARGS = env_args("INVOICE_CHROMIUM_ARGS")

TIMEZONE = env_str("INVOICE_TIMEZONE")
DEFAULT_LOGO_URL = env_str(
    "INVOICE_DEFAULT_LOGO_URL",
    "https://raw.githubusercontent.com/Francisco05c/Plantilla_HTML_Factura_Documento/"
    "a35577462b664ba92d33755a7279a335a06b4243/Logo.svg",
)
LOG_LEVEL = env_str("INVOICE_LOG_LEVEL", "INFO")
