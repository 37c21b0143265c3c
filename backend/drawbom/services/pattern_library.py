"""
Pattern Library — material keywords, dimension patterns and quantity patterns.

Pure data. Ordering is load-bearing:
  - MATERIAL_KEYWORDS is an ordered tuple, not a dict. Categories are tried in
    declaration order and the first hit wins, so specific multi-word facade
    terms ("aluminum composite") must sit above generic ones ("panel",
    "window"), and the catch-all "other" stays last.
  - DIMENSION_PATTERNS / QUANTITY_PATTERNS are applied in list order and their
    matches are collected in that order.
"""
import re

# ── Material categories ───────────────────────────────────────────────────────
# Lowercase substring triggers, matched literally against the lowered text.
# The padded abbreviations ("ss ", " rc ") also hit inside words: "glass panel"
# contains "ss " and lands in steel.

MATERIAL_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("acp", (
        "acp", "aluminum composite", "alucobond", "acm", "aluminium composite",
        "composite panel", "acp panel", "metal composite", "acp cladding",
        "composite cladding",
    )),
    ("aluminum", (
        "aluminum panel", "aluminum cladding", "aluminum sheet", "aluminium panel",
        "aluminium cladding", "aluminum", "aluminium", "aluminum mullion",
        "aluminum framing", "al frame",
    )),
    ("steel", ("steel", "stainless steel", "carbon steel", "ss ", " ss")),
    ("composite", ("composite",)),
    ("glass", (
        "double glaz", "triple glaz", "glazing unit", "glazed unit", "glass",
        "glazing", "glazed", "insulated glass", "window", "pane", "vision panel",
    )),
    ("concrete", ("concrete", "reinforced concrete", " rc ")),
    ("stone", ("stone", "marble", "granite", "limestone", "natural stone")),
    ("brick", ("brick", "masonry")),
    ("other", ("facade", "curtain wall", "cladding", "panel")),
)

MATERIAL_CATEGORIES: tuple[str, ...] = tuple(name for name, _ in MATERIAL_KEYWORDS)


# ── Dimension patterns ────────────────────────────────────────────────────────

_NUM = r"\d+(?:\.\d+)?"
_UNIT = r"(?:mm|cm|m|ft|in)(?![a-wyz])"  # "600 marble" is not 600 m
_SEP = r"(?:x|×|X|\*)"

DIMENSION_PATTERNS: list[re.Pattern] = [
    # 1200x600mm, 1200 x 600 mm, 1200×600, 1200x600x50
    re.compile(
        rf"({_NUM})\s*{_SEP}\s*({_NUM})\s*{_SEP}?\s*({_NUM})?\s*({_UNIT})?",
        re.IGNORECASE,
    ),
    # 1200mm x 600mm
    re.compile(rf"({_NUM})\s*({_UNIT})\s*(?:x|×|X)\s*({_NUM})\s*({_UNIT})", re.IGNORECASE),
    # 1200mm wide, 4mm thick
    re.compile(rf"({_NUM})\s*{_UNIT}\s*(?:wide|long|high|thick|deep)", re.IGNORECASE),
    # width: 1200mm, thk: 4
    re.compile(
        rf"(?:width|length|height|depth|thickness|thk):\s*({_NUM})\s*({_UNIT})?",
        re.IGNORECASE,
    ),
]

# Two-operand form used for area computation; each operand may carry its own unit
AREA_PATTERN = re.compile(
    rf"({_NUM})\s*({_UNIT})?\s*{_SEP}\s*({_NUM})\s*({_UNIT})?",
    re.IGNORECASE,
)


# ── Quantity patterns ─────────────────────────────────────────────────────────
# Group 1 of every pattern is the numeric capture.

QUANTITY_PATTERNS: list[re.Pattern] = [
    # qty: 5, quantity: 12, no.: 3
    re.compile(rf"(?:qty|quantity|count|no\.?|number|qty\.):\s*({_NUM})", re.IGNORECASE),
    # 12 pcs, 5 units, 3 panels
    re.compile(
        rf"({_NUM})\s*(?:pcs|pieces|units|items|panels|sheets|nos?\.?|nr|ea|each)",
        re.IGNORECASE,
    ),
    # total: 40
    re.compile(rf"(?:total|sum|all):\s*({_NUM})", re.IGNORECASE),
    # 4 nr, 12 ea
    re.compile(r"\b(\d{1,4})\s*(?:nr|no\.?|nos?\.?|ea|each|num)\b", re.IGNORECASE),
    # Schedule cell holding only a 1–3 digit number; 4+ digits are usually dimensions
    re.compile(r"^\s*(\d{1,3})\s*$", re.MULTILINE),
]


# ── Table cell role inference ─────────────────────────────────────────────────

BARE_QUANTITY_CELL = re.compile(r"^\d{1,3}$")
SIZE_CELL = re.compile(r"\d+\s*[x×X*]\s*\d+")
LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")
