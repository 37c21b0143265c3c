"""
Extraction configuration — single source of truth for segmentation, unit
normalisation, merge separators and service limits.

Import from here in the parser, dedup, adapter and API modules rather than
hardcoding values.
"""
from __future__ import annotations

import os

# ── Segmentation ───────────────────────────────────────────────────────────────

# Lines shorter than this (after trimming) are never fed to the record builder
MIN_SPAN_LENGTH: int = 2


# ── Units ──────────────────────────────────────────────────────────────────────

# Unlabelled architectural CAD dimensions are millimetres by industry convention
DEFAULT_DIMENSION_UNIT: str = "mm"

# Multiplier that converts one unit of each supported length to metres
UNIT_TO_METERS: dict[str, float] = {
    "mm": 0.001,
    "cm": 0.01,
    "m":  1.0,
    "ft": 0.3048,
    "in": 0.0254,
}

# Unit label attached to dimension-derived quantities
AREA_UNIT: str = "m²"


# ── Separators ─────────────────────────────────────────────────────────────────

DIMENSION_SEPARATOR: str = ", "     # several dimension matches in one span
ANNOTATION_SEPARATOR: str = "; "    # merged annotations of collapsed duplicates
TABLE_CELL_SEPARATOR: str = " | "   # table row annotation when no description cell


# ── Service limits (environment) ───────────────────────────────────────────────

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json").lower()

# Callers must bound input size; the core itself has no timeout semantics
MAX_INPUT_CHARS: int = int(os.getenv("MAX_INPUT_CHARS", "2000000"))
MAX_UPLOAD_MB: float = float(os.getenv("MAX_UPLOAD_MB", "50"))

# ODA File Converter for .dwg → .dxf (auto-detected when empty)
ODA_CONVERTER_PATH: str = os.getenv("ODA_CONVERTER_PATH", "")

CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8000").split(",")
    if o.strip()
]


# ── Decoder adapters ───────────────────────────────────────────────────────────

SUPPORTED_PDF_EXTENSIONS: tuple[str, ...] = (".pdf",)
SUPPORTED_CAD_EXTENSIONS: tuple[str, ...] = (".dxf", ".dwg")
