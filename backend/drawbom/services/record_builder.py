"""
Record Builder — turns one candidate span, or one structured table row, into
zero or one Material.

Quantity resolution (free text):
  1. explicit quantity matches  → sum,        CONFIRMED
  2. else dimensions present     → area (m²),  ESTIMATED
  3. else                        → no value,   MISSING

A sum of exactly 0 is treated like "no quantity" when dimensions exist and is
replaced by the area estimate. Table rows resolve from the qty cell first, then
the size cell, with the same confidence levels.
"""
import copy
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from drawbom.config import DIMENSION_SEPARATOR, TABLE_CELL_SEPARATOR
from drawbom.models.material_schema import (
    ColumnRole,
    Confidence,
    Material,
    RawData,
    SourceKind,
    SourceTrace,
    TableRow,
)
from drawbom.services.field_extractors import (
    calculate_area,
    extract_dimensions,
    extract_material_type,
    extract_quantities,
)
from drawbom.services.pattern_library import BARE_QUANTITY_CELL, LEADING_INTEGER, SIZE_CELL

logger = logging.getLogger("drawbom-records")

# Metadata keys folded into SourceTrace; everything else lands in RawData.extras
_TRACE_KEYS = {
    "source", "method", "page_number", "page_count", "pages",
    "table_name", "row_index", "entity_type", "entity_count",
}


def build_source_trace(source_metadata: Mapping[str, Any]) -> SourceTrace:
    """
    Build the canonical trace from caller metadata.

    ``pages`` is accepted as an alias of ``page_count`` (decoders report the
    document's page total under that name). An unknown or absent source kind
    is recorded as TEXT.
    """
    raw_source = source_metadata.get("source")
    try:
        source = SourceKind(raw_source) if raw_source else SourceKind.TEXT
    except ValueError:
        source = SourceKind.TEXT

    page_count = source_metadata.get("page_count", source_metadata.get("pages"))
    return SourceTrace(
        source=source,
        method=str(source_metadata.get("method") or source.value),
        page_number=source_metadata.get("page_number"),
        page_count=page_count,
        table_name=source_metadata.get("table_name"),
        row_index=source_metadata.get("row_index"),
        entity_type=source_metadata.get("entity_type"),
        entity_count=source_metadata.get("entity_count"),
    )


class RecordBuilder:
    """
    Free-text record builder bound to one source's metadata.

    Instances are cheap and hold no state beyond the metadata they were built
    with; create one per parse call.
    """

    def __init__(self, source_metadata: Optional[Mapping[str, Any]] = None):
        metadata = dict(source_metadata or {})
        try:
            self._trace = build_source_trace(metadata)
        except ValidationError as exc:
            raise ValueError(f"Invalid source metadata: {exc}") from exc
        self._extras: Dict[str, Any] = {k: v for k, v in metadata.items() if k not in _TRACE_KEYS}
        raw_source = metadata.get("source")
        if raw_source and raw_source != self._trace.source.value:
            self._extras["declared_source"] = raw_source

    def _raw_data(self, area_sqm: Optional[float] = None) -> RawData:
        return RawData(
            source_trace=self._trace.model_copy(deep=True),
            area_sqm=area_sqm,
            extras=copy.deepcopy(self._extras),
        )

    def from_span(self, span: str) -> Optional[Material]:
        """Build a record from one span, or None when the span carries no signal."""
        material_type = extract_material_type(span)
        dimensions = extract_dimensions(span)
        quantities = extract_quantities(span)

        if not (material_type or dimensions or quantities):
            return None

        quantity: Optional[float] = None
        confidence = Confidence.MISSING
        area: Optional[float] = None

        if quantities:
            quantity = sum(quantities)
            confidence = Confidence.CONFIRMED
        elif dimensions:
            area = calculate_area(dimensions[0])
            if area:
                quantity = area
                confidence = Confidence.ESTIMATED

        dimension_str = DIMENSION_SEPARATOR.join(dimensions) if dimensions else None

        # Zero-sum quantities fall through to the dimension estimate
        if dimension_str and not quantity:
            area = calculate_area(dimension_str)
            if area:
                quantity = area
                confidence = Confidence.ESTIMATED

        return Material(
            material_type=material_type,
            dimensions=dimension_str,
            quantity=quantity,
            confidence=confidence,
            annotations=span.strip(),
            raw_data=self._raw_data(area if confidence == Confidence.ESTIMATED else None),
        )

    def fallback(self, text: str) -> Material:
        """Last-resort record carrying the full unparsed text."""
        raw_data = self._raw_data()
        raw_data.extras["parsed"] = False
        return Material(
            annotations=text.strip(),
            confidence=Confidence.MISSING,
            raw_data=raw_data,
        )


# ── Table rows ────────────────────────────────────────────────────────────────

def _infer_role(cell: str) -> ColumnRole:
    if extract_material_type(cell):
        return ColumnRole.DESC
    if BARE_QUANTITY_CELL.match(cell):
        return ColumnRole.QTY
    if SIZE_CELL.search(cell):
        return ColumnRole.SIZE
    return ColumnRole.NONE


def _parse_count(cell: str) -> Optional[float]:
    """
    Leading integer of a qty cell ("12", "12 pcs") as a float; None when there
    is none or when it is too long to be a count.
    """
    match = LEADING_INTEGER.match(cell)
    if not match:
        return None
    try:
        return float(int(match.group(1)))
    except (ValueError, OverflowError):
        logger.debug(f"Qty cell {cell[:20]!r}... is not a usable count")
        return None


def build_table_record(row: TableRow) -> Optional[Material]:
    """
    Build a record from a CAD table row.

    With column roles each role's first cell is read directly. Without roles,
    cells are classified one by one (material keyword → desc, bare 1–3 digit
    number → qty, ``A x B`` → size) and the first cell per role wins.
    """
    roles = row.column_roles or []
    picked: Dict[ColumnRole, str] = {}

    for col, cell in enumerate(row.cells):
        value = (cell or "").strip()
        role = roles[col] if roles else _infer_role(value)
        if role != ColumnRole.NONE and role not in picked and value:
            picked[role] = value

    desc_cell = picked.get(ColumnRole.DESC, "")
    qty_cell = picked.get(ColumnRole.QTY, "")
    size_cell = picked.get(ColumnRole.SIZE, "")
    joined_cells = " ".join(c.strip() for c in row.cells if c and c.strip())

    material_type = extract_material_type(desc_cell or joined_cells)
    if not (desc_cell or qty_cell or size_cell or material_type):
        logger.debug(f"Table {row.table_name!r} row {row.row_index}: no description, qty or size — skipped")
        return None

    dimensions = extract_dimensions(size_cell) if size_cell else []
    dimension_str = DIMENSION_SEPARATOR.join(dimensions) if dimensions else None
    count = _parse_count(qty_cell) if qty_cell else None

    quantity: Optional[float] = None
    confidence = Confidence.MISSING
    area: Optional[float] = None

    if count is not None and count >= 0:
        quantity = count
        confidence = Confidence.CONFIRMED
    elif dimension_str:
        area = calculate_area(dimension_str)
        if area is not None:
            quantity = area
            confidence = Confidence.ESTIMATED

    annotations = desc_cell or TABLE_CELL_SEPARATOR.join(c.strip() for c in row.cells)

    return Material(
        material_type=material_type,
        dimensions=dimension_str,
        quantity=quantity,
        confidence=confidence,
        annotations=annotations,
        raw_data=RawData(
            source_trace=SourceTrace(
                source=SourceKind.DWG,
                method="table",
                entity_type="ACAD_TABLE",
                table_name=row.table_name,
                row_index=row.row_index,
            ),
            area_sqm=area if confidence == Confidence.ESTIMATED else None,
        ),
    )
