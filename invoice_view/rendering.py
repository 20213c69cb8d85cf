"""Invoice page rendering logic."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .config import TIMEZONE
from .formatting import (
    cell_markup,
    column_alignment,
    first_line,
    fmt_print_date,
    resolve_timezone,
    sanitize_filename,
    style_content,
)
from .params import InvoiceParams, parse_query

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

THEME_CLASSES = {
    "PurpuraGrad": "theme-purpura",
    "AzulAbstractPro": "theme-azul",
    "AzulAbstractProHF": "theme-azul use-hf-azul",
}
DEFAULT_THEME_CLASS = "bg-gray-100"
DECORATED_THEME = "AzulAbstractProHF"

BUTTON_LABELS = {
    "download": {
        "idle": "Preparando...",
        "generating": "Generando...",
        "ready": "Descargar",
        "error": "Error",
    },
    "share": {
        "idle": "Preparando...",
        "generating": "Generando...",
        "ready": "Compartir",
        "error": "Error",
    },
}

jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    undefined=StrictUndefined,
    autoescape=select_autoescape(["html", "xml"]),
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class PrintFooter:
    info: str
    printed_at: str
    note: str


class PageRenderer:
    template_name = "invoice.html"

    def __init__(self, params: InvoiceParams, query: str = "", now: Optional[datetime] = None) -> None:
        self.params = params
        self.query = query.lstrip("?")
        self.now = now

    def _theme(self) -> str:
        return self.params.theme or "default"

    def _print_footer(self) -> Optional[PrintFooter]:
        if not self.params.nota_p:
            return None
        info_parts = [
            part
            for part in (first_line(self.params.factura), first_line(self.params.cliente))
            if part
        ]
        zone = resolve_timezone(TIMEZONE)
        now = self.now or datetime.now(zone)
        return PrintFooter(
            info=" - ".join(info_parts),
            printed_at=fmt_print_date(now, zone),
            note=self.params.nota_p,
        )

    def _table_context(self) -> Dict[str, Any]:
        table = self.params.table
        headers = [
            {"name": name, "align": column_alignment(index, name, table)}
            for index, name in enumerate(table.columns)
        ]
        rows: List[List[Dict[str, Any]]] = [
            [{"html": cell_markup(row.get(h["name"], "")), "align": h["align"]} for h in headers]
            for row in table.rows
        ]
        if table.columns:
            empty_message = "No hay elementos para mostrar."
        else:
            empty_message = "No se ha definido la estructura de la tabla."
        return {
            "headers": headers,
            "rows": rows,
            "colspan": len(headers) or 1,
            "empty_message": empty_message,
        }

    def context(self) -> Dict[str, Any]:
        params = self.params
        theme = self._theme()
        return {
            "params": params,
            "theme": theme,
            "body_class": THEME_CLASSES.get(params.theme or "", DEFAULT_THEME_CLASS),
            "decorated": theme == DECORATED_THEME,
            "factura_html": style_content(params.factura),
            "de_html": style_content(params.de),
            "cliente_html": style_content(params.cliente),
            "show_iva": bool(params.iva_label or params.iva_monto),
            "show_total": bool(params.total) and not params.total_lines,
            "table": self._table_context(),
            "footer": self._print_footer(),
            "pdf_filename": sanitize_filename(params.filename),
            "query": self.query,
            "auto_generate": bool(self.query) and not params.is_printing,
            "labels": BUTTON_LABELS,
        }

    def render(self) -> str:
        template = jinja_env.get_template(self.template_name)
        return template.render(**self.context())


def render_page(query: str, now: Optional[datetime] = None) -> str:
    return PageRenderer(parse_query(query), query=query, now=now).render()
