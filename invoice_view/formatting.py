"""Formatting helpers for invoice page markup and PDF filenames."""

from __future__ import annotations

import re
from datetime import datetime, tzinfo
from typing import Optional

from dateutil import tz
from markupsafe import Markup, escape

from .params import Table

INVALID_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')
LEFT_ALIGNED_HEADERS = {"producto", "articulos"}
DEFAULT_FILENAME = "factura.pdf"


def first_line(text: Optional[str]) -> str:
    if not text:
        return ""
    return text.split("\n", 1)[0].strip()


def style_content(text: Optional[str]) -> Markup:
    """Emphasise the ``label:`` prefix of every line and join lines with <br>."""
    if not text or not text.strip():
        return Markup("")

    rendered = []
    for line in text.split("\n"):
        label, sep, value = line.partition(":")
        if sep:
            rendered.append(
                Markup('<strong class="dynamic-label">{}</strong>{}').format(
                    f"{label.strip()}:", value
                )
            )
        else:
            rendered.append(escape(line))
    return Markup("<br>").join(rendered)


def cell_markup(value: Optional[str]) -> Markup:
    if not value:
        return Markup("")
    return Markup("<br>").join(escape(part) for part in value.split("|"))


def column_alignment(index: int, header: str, table: Table) -> str:
    if index == 0 or header.lower() in LEFT_ALIGNED_HEADERS:
        return "text-left"
    if index == len(table.columns) - 1:
        return "text-right"
    if any("|" in value for value in table.column_values(header)):
        return "text-left"
    return "text-right"


def sanitize_filename(filename: Optional[str], default: str = DEFAULT_FILENAME) -> str:
    if not filename:
        return default
    sanitized = INVALID_FILENAME_CHARS.sub("", filename).strip()
    if not sanitized:
        return default
    return sanitized if sanitized.endswith(".pdf") else f"{sanitized}.pdf"


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if name:
        zone = tz.gettz(name)
        if zone is not None:
            return zone
    return tz.tzlocal()


def fmt_print_date(now: datetime, zone: tzinfo) -> str:
    """Format a timestamp the way es-ES shows it: '19/10/2026 14:05'."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=tz.tzlocal())
    return now.astimezone(zone).strftime("%d/%m/%Y %H:%M")
