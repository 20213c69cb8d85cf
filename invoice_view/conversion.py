"""HTML-to-PDF conversion through headless Chromium."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from .config import CHROMIUM_ARGS, CHROMIUM_EXECUTABLE, NAVIGATION_TIMEOUT_MS
from .params import PRINT_MARKER, SHARE_MARKER, split_query

logger = logging.getLogger(__name__)


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""


class PdfConversionError(RuntimeError):
    """Raised when the browser cannot render the page to PDF."""


@dataclass(frozen=True)
class BrowserSettings:
    executable_path: Optional[str] = CHROMIUM_EXECUTABLE
    args: List[str] = field(default_factory=lambda: list(CHROMIUM_ARGS))
    navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS

    def launch_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": True}
        if self.executable_path:
            options["executable_path"] = self.executable_path
        if self.args:
            options["args"] = list(self.args)
        return options


def load_sync_playwright():
    try:
        from playwright.sync_api import sync_playwright
    except ModuleNotFoundError as exc:
        if exc.name and exc.name.startswith("playwright"):
            raise DependencyError(
                "Missing dependency 'playwright'. Install it with 'pip install playwright' "
                "and fetch a browser with 'python -m playwright install chromium'."
            ) from exc
        raise
    return sync_playwright


def build_print_url(origin: str, query: str) -> str:
    """Page URL for the converter's own render, without the share trigger."""
    pairs = [
        (name, value)
        for name, value in split_query(query)
        if name not in (SHARE_MARKER, PRINT_MARKER)
    ]
    pairs.append((PRINT_MARKER, "true"))
    return f"{origin.rstrip('/')}/?{urlencode(pairs)}"


def convert_url_to_pdf(url: str, settings: Optional[BrowserSettings] = None) -> bytes:
    settings = settings or BrowserSettings()
    sync_playwright = load_sync_playwright()

    logger.info("Generating PDF from %s", url)
    try:
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(**settings.launch_options())
            try:
                page = browser.new_page()
                page.goto(
                    url,
                    wait_until="networkidle",
                    timeout=settings.navigation_timeout_ms,
                )
                pdf = page.pdf(format="A4", print_background=True)
            finally:
                browser.close()
    except Exception as exc:
        raise PdfConversionError(f"PDF generation failed for {url}: {exc}") from exc

    logger.info("Generated PDF (%d bytes)", len(pdf))
    return pdf
