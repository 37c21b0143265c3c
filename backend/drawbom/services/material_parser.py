"""
Material Parser — public entry points of the extraction core.

    parse_material_data(text, source_metadata)  free text → Material list
    parse_table_row(row)                         CAD table row → Material | None
    group_materials_by_type(materials)           category → Material list

Pure and synchronous: no I/O, no shared mutable state, safe to call from
several threads at once. Deduplication is a separate step
(dedup_engine.deduplicate_materials) so callers can merge across pages or
entity groups before collapsing duplicates.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from drawbom.models.material_schema import Material, TableRow
from drawbom.services.record_builder import RecordBuilder, build_table_record
from drawbom.services.segmenter import segment_text

logger = logging.getLogger("drawbom-parser")

UNKNOWN_MATERIAL_TYPE = "unknown"


def parse_material_data(
    text: str,
    source_metadata: Optional[Mapping[str, Any]] = None,
) -> List[Material]:
    """
    Parse a flat block of extracted drawing text into material records.

    Args:
        text: Text pulled from a PDF page or flattened from CAD entities.
        source_metadata: Origin of the text. ``source`` ("pdf" / "dwg"),
            ``method``, ``page_number``, ``page_count`` (alias ``pages``),
            ``entity_type`` and ``entity_count`` go into each record's source
            trace; any other keys are kept in ``raw_data.extras``.

    Returns:
        One record per span that carries a material keyword, a dimension or a
        quantity. Whitespace-only text returns []. Non-empty text with no
        signal at all returns a single fallback record holding the trimmed
        text, so nothing extracted is ever silently dropped.
    """
    if not text or not text.strip():
        return []

    builder = RecordBuilder(source_metadata)
    spans = segment_text(text)

    materials: List[Material] = []
    for span in spans:
        material = builder.from_span(span)
        if material is not None:
            materials.append(material)

    if not materials:
        logger.debug(f"No material signal in {len(spans)} span(s) — emitting fallback record")
        materials.append(builder.fallback(text))
    else:
        logger.debug(f"Parsed {len(materials)} material(s) from {len(spans)} span(s)")

    return materials


def parse_table_row(row: Union[TableRow, Mapping[str, Any]]) -> Optional[Material]:
    """
    Parse one structured table row.

    Accepts a TableRow or a plain mapping with the same fields. A mapping whose
    ``column_roles`` length differs from its ``cells`` raises
    pydantic.ValidationError (a ValueError).
    """
    if not isinstance(row, TableRow):
        row = TableRow.model_validate(row)
    return build_table_record(row)


def group_materials_by_type(materials: List[Material]) -> Dict[str, List[Material]]:
    """Group records by category in first-seen order; untyped records go under "unknown"."""
    grouped: Dict[str, List[Material]] = {}
    for material in materials:
        key = material.material_type or UNKNOWN_MATERIAL_TYPE
        grouped.setdefault(key, []).append(material)
    return grouped
