"""Query-string parsing into typed invoice fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl

from .config import DEFAULT_LOGO_URL

logger = logging.getLogger(__name__)

COLUMN_KEY = "columna"
PRINT_MARKER = "isPrinting"
SHARE_MARKER = "compartir"


@dataclass(frozen=True)
class LabeledLine:
    label: str
    value: str


@dataclass(frozen=True)
class Table:
    columns: Tuple[str, ...] = ()
    rows: Tuple[Dict[str, str], ...] = ()
    ragged_columns: Tuple[str, ...] = ()

    def column_values(self, column: str) -> List[str]:
        return [row.get(column, "") for row in self.rows]


@dataclass(frozen=True)
class InvoiceParams:
    theme: Optional[str] = None
    logo1: Optional[str] = None
    logo2: Optional[str] = None
    factura: Optional[str] = None
    fecha: Optional[str] = None
    hora: Optional[str] = None
    forma_pago: Optional[str] = None
    de: Optional[str] = None
    cliente: Optional[str] = None
    summary_lines: Tuple[LabeledLine, ...] = ()
    total_lines: Tuple[LabeledLine, ...] = ()
    table: Table = field(default_factory=Table)
    subtotal: Optional[str] = None
    descuento: Optional[str] = None
    iva_label: Optional[str] = None
    iva_monto: Optional[str] = None
    total: Optional[str] = None
    nota: Optional[str] = None
    nota_p: Optional[str] = None
    filename: Optional[str] = None
    scroll_to: Optional[str] = None
    is_printing: bool = False
    share_requested: bool = False


class QueryParams:
    """Ordered multi-valued view over decoded query pairs."""

    def __init__(self, pairs: Iterable[Tuple[str, str]]) -> None:
        self.pairs = list(pairs)

    def get(self, key: str) -> Optional[str]:
        for name, value in self.pairs:
            if name == key:
                return value
        return None

    def get_all(self, key: str) -> List[str]:
        return [value for name, value in self.pairs if name == key]

    def has(self, key: str) -> bool:
        return any(name == key for name, _ in self.pairs)

    def text(self, key: str) -> Optional[str]:
        value = self.get(key)
        return value if value else None


def split_query(query: str) -> List[Tuple[str, str]]:
    if query.startswith("?"):
        query = query[1:]
    return parse_qsl(query, keep_blank_values=True)


def parse_labeled_lines(raw: Optional[str]) -> Tuple[LabeledLine, ...]:
    """Parse ``label: value`` lines; lines without a colon are dropped."""
    if not raw:
        return ()
    lines = []
    for line in raw.split("\n"):
        label, sep, value = line.partition(":")
        label = label.strip()
        if not sep or not label:
            continue
        lines.append(LabeledLine(label=f"{label}:", value=value.strip()))
    return tuple(lines)


def parse_table(params: QueryParams) -> Table:
    columns = tuple(name for name in params.get_all(COLUMN_KEY) if name)
    if not columns:
        return Table()

    cells = {name: (params.get(name) or "").split(",") for name in columns}
    first = cells[columns[0]]
    row_count = len(first) if first[0].strip() else 0

    rows = []
    for index in range(row_count):
        row = {}
        for name in columns:
            values = cells[name]
            row[name] = values[index].strip() if index < len(values) else ""
        rows.append(row)

    ragged = tuple(
        name for name in columns[1:] if row_count and len(cells[name]) != row_count
    )
    if ragged:
        logger.warning(
            "Table columns %s do not match the %d rows of column %r; cells padded",
            ", ".join(ragged),
            row_count,
            columns[0],
        )
    return Table(columns=columns, rows=tuple(rows), ragged_columns=ragged)


def resolve_logo1(params: QueryParams) -> Optional[str]:
    raw = params.get("Logo1")
    if raw is None:
        return DEFAULT_LOGO_URL
    return raw if raw.strip() else None


def parse_params(pairs: Iterable[Tuple[str, str]]) -> InvoiceParams:
    params = QueryParams(pairs)
    logo2 = params.get("Logo2")
    return InvoiceParams(
        theme=params.text("tema"),
        logo1=resolve_logo1(params),
        logo2=logo2 if logo2 and logo2.strip() else None,
        factura=params.text("Factura"),
        fecha=params.text("Fecha"),
        hora=params.text("Hora"),
        forma_pago=params.text("FormaPago"),
        de=params.text("De"),
        cliente=params.text("Cliente"),
        summary_lines=parse_labeled_lines(params.get("SumDataLine")),
        total_lines=parse_labeled_lines(params.get("TotalDataLine")),
        table=parse_table(params),
        subtotal=params.text("Subtotal"),
        descuento=params.text("Descuento"),
        iva_label=params.text("IVALine"),
        iva_monto=params.text("IVAMonto"),
        total=params.text("Total"),
        nota=params.text("Nota"),
        nota_p=params.text("NotaP"),
        filename=params.text("filename"),
        scroll_to=params.text("scrollTo"),
        is_printing=params.has(PRINT_MARKER),
        share_requested=params.has(SHARE_MARKER),
    )


def parse_query(query: str) -> InvoiceParams:
    return parse_params(split_query(query))
