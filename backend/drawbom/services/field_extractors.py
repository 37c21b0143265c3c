"""
Field Extractors — stateless functions over a single text span.

    extract_material_type   first category (declaration order) with a keyword hit
    extract_dimensions      every dimension-pattern match, de-duplicated in order
    extract_quantities      every quantity-pattern capture parsed as float
    calculate_area          two-operand dimension → square metres

None of these raise on noisy input: a capture that fails to parse is skipped.
"""
from typing import List, Optional

from drawbom.config import DEFAULT_DIMENSION_UNIT, UNIT_TO_METERS
from drawbom.services.pattern_library import (
    AREA_PATTERN,
    DIMENSION_PATTERNS,
    MATERIAL_KEYWORDS,
    QUANTITY_PATTERNS,
)


def extract_material_type(text: str) -> Optional[str]:
    """Return the first matching category, or None."""
    lower_text = text.lower()
    for material_type, keywords in MATERIAL_KEYWORDS:
        for keyword in keywords:
            if keyword in lower_text:
                return material_type
    return None


def extract_dimensions(text: str) -> List[str]:
    """
    Collect the full matched text of every dimension pattern.

    Duplicates (same trimmed substring) are dropped; first-seen order is kept,
    so triplet/pair forms found by the first pattern always lead the list.
    """
    dimensions: List[str] = []
    seen = set()
    for pattern in DIMENSION_PATTERNS:
        for match in pattern.finditer(text):
            found = match.group(0).strip()
            if found and found not in seen:
                seen.add(found)
                dimensions.append(found)
    return dimensions


def extract_quantities(text: str) -> List[float]:
    quantities: List[float] = []
    for pattern in QUANTITY_PATTERNS:
        for match in pattern.finditer(text):
            captured = match.group(1)
            if not captured:
                continue
            try:
                quantities.append(float(captured))
            except ValueError:
                continue
    return quantities


def calculate_area(dimensions: str) -> Optional[float]:
    """
    Area in m² from the first ``A x B`` form in a dimension string.

    Units may be given per operand ("1200mm x 600mm") or once at the end
    ("1200x600mm"); an operand without a unit takes its partner's. With no
    unit at all both operands are millimetres (CAD default), so
    "1200x600" → 1.2 m × 0.6 m ≈ 0.72 m².
    """
    match = AREA_PATTERN.search(dimensions)
    if not match:
        return None

    try:
        length = float(match.group(1))
        width = float(match.group(3))
    except ValueError:
        return None

    length_unit = (match.group(2) or "").lower()
    width_unit = (match.group(4) or "").lower()
    length_unit = length_unit or width_unit or DEFAULT_DIMENSION_UNIT
    width_unit = width_unit or length_unit

    return length * UNIT_TO_METERS[length_unit] * width * UNIT_TO_METERS[width_unit]
