"""Public package API for the invoice page and its PDF conversion."""

from __future__ import annotations

from datetime import datetime
from typing import Optional


def render_page(query: str, now: Optional[datetime] = None) -> str:
    from .rendering import render_page as _render_page

    return _render_page(query, now=now)


def convert_url_to_pdf(url: str) -> bytes:
    from .conversion import convert_url_to_pdf as _convert_url_to_pdf

    return _convert_url_to_pdf(url)


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    from .server import run as _run

    _run(host, port)


__all__ = ["convert_url_to_pdf", "render_page", "run"]
