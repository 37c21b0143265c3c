"""
Report Engine — renders a final (deduplicated) material collection.

Outputs:
  - CSV in DataFrame layout: one element per row, one property per column
  - QTO summary: record count and total quantity per material category
"""
import csv
import io
import json
import logging
from typing import Any, Dict, List

from drawbom.config import AREA_UNIT
from drawbom.models.material_schema import Confidence, Material
from drawbom.services.material_parser import UNKNOWN_MATERIAL_TYPE, group_materials_by_type

logger = logging.getLogger("drawbom-report")

CSV_HEADERS = [
    "ElementId",
    "Category",
    "Type",
    "Dimensions",
    "Quantity",
    "Unit",
    "Confidence",
    "Source",
    "Annotations",
]


def _source_cell(material: Material) -> str:
    trace = material.raw_data.source_trace
    if trace is None:
        return str(material.raw_data.extras.get("source", ""))
    payload = trace.model_dump(mode="json", exclude_none=True)
    return json.dumps(payload, ensure_ascii=False).replace('"', "'")


def _quantity_cell(material: Material) -> Any:
    if material.quantity is None:
        return ""
    if float(material.quantity).is_integer():
        return int(material.quantity)
    return material.quantity


def materials_to_csv(materials: List[Material]) -> str:
    """CSV text with a header row and elements E1..En."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for index, material in enumerate(materials, start=1):
        writer.writerow([
            f"E{index}",
            material.material_type or "",
            material.material_type or UNKNOWN_MATERIAL_TYPE,
            material.dimensions or "",
            _quantity_cell(material),
            AREA_UNIT,
            material.confidence.value,
            _source_cell(material),
            material.annotations or "",
        ])
    logger.info(f"CSV rendered: {len(materials)} element(s)")
    return buffer.getvalue()


def summarize_quantities_by_type(materials: List[Material]) -> Dict[str, Dict[str, Any]]:
    """
    Quantity take-off per category.

    Confirmed counts and dimension-estimated areas are totalled separately
    since they are not the same unit of work; ``total_quantity`` is their sum
    for a quick overview.
    """
    summary: Dict[str, Dict[str, Any]] = {}
    for material_type, group in group_materials_by_type(materials).items():
        confirmed = sum(m.quantity or 0.0 for m in group if m.confidence == Confidence.CONFIRMED)
        estimated = sum(m.quantity or 0.0 for m in group if m.confidence == Confidence.ESTIMATED)
        summary[material_type] = {
            "count": len(group),
            "confirmed_quantity": round(confirmed, 4),
            "estimated_quantity": round(estimated, 4),
            "total_quantity": round(confirmed + estimated, 4),
            "missing_quantity_count": sum(1 for m in group if m.confidence == Confidence.MISSING),
        }
    return summary
