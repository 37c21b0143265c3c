"""
Deduplication Engine — collapses records that agree on
(material type, dimensions, quantity).

The same panel callout is often repeated on a drawing (plan + elevation +
schedule), and PDF text layers duplicate table content. Merging is exact-key,
deterministic and non-mutating:

  key            = (type lower/trimmed, dimensions trimmed, canonical quantity)
  representative = highest confidence in the group, first one on ties
  annotations    = distinct non-empty annotations, first-seen order, "; "-joined
  source trace   = first member's trace, plus source_trace_count

Output keeps group first-encountered order. Running it twice gives the same
result as running it once.
"""
import logging
from typing import Dict, List, Optional, Tuple

from drawbom.config import ANNOTATION_SEPARATOR
from drawbom.models.material_schema import Confidence, Material, SourceTrace

logger = logging.getLogger("drawbom-dedup")

CONFIDENCE_RANK: Dict[Confidence, int] = {
    Confidence.CONFIRMED: 3,
    Confidence.ESTIMATED: 2,
    Confidence.MISSING: 1,
}

DedupKey = Tuple[str, str, str]


def canonical_quantity(quantity: Optional[float]) -> str:
    """String form of a quantity for keying; 5 and 5.0 both render as "5"."""
    if quantity is None:
        return ""
    value = float(quantity)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def dedup_key(material: Material) -> DedupKey:
    return (
        (material.material_type or "").lower().strip(),
        (material.dimensions or "").strip(),
        canonical_quantity(material.quantity),
    )


def _pick_representative(group: List[Material]) -> Material:
    best = group[0]
    for candidate in group[1:]:
        if CONFIDENCE_RANK.get(candidate.confidence, 0) > CONFIDENCE_RANK.get(best.confidence, 0):
            best = candidate
    return best


def _merge_group(group: List[Material]) -> Material:
    best = _pick_representative(group)

    annotations: List[str] = []
    for member in group:
        if member.annotations and member.annotations not in annotations:
            annotations.append(member.annotations)
    merged_annotations = ANNOTATION_SEPARATOR.join(annotations)

    raw_data = best.raw_data.model_copy(deep=True)
    traces: List[SourceTrace] = []
    trace_count = 0
    for member in group:
        if member.raw_data.source_trace is not None:
            traces.append(member.raw_data.source_trace)
            # An already-merged member stands for the mentions it collapsed
            trace_count += member.raw_data.source_trace_count or 1
    if traces:
        raw_data.source_trace = traces[0].model_copy(deep=True)
        raw_data.source_trace_count = trace_count

    return best.model_copy(
        deep=True,
        update={
            "annotations": merged_annotations or best.annotations,
            "raw_data": raw_data,
        },
    )


def deduplicate_materials(materials: List[Material]) -> List[Material]:
    """Merge duplicates; never mutates the input list or its records."""
    groups: Dict[DedupKey, List[Material]] = {}
    for material in materials:
        groups.setdefault(dedup_key(material), []).append(material)

    result = [_merge_group(group) for group in groups.values()]

    if len(result) < len(materials):
        logger.debug(f"Deduplicated {len(materials)} → {len(result)} material(s)")
    return result
