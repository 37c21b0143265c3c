"""
Material record schema.

Every extraction path (free text, CAD table rows, PDF pages) produces
``Material`` instances; the deduplicator, quality assessor, CSV renderer and
API layer all consume them. Provenance is carried in a typed ``RawData`` model
rather than a free-form dict so trace keys cannot drift between call sites.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class Confidence(str, Enum):
    """How a material's quantity was derived. Ordered confirmed > estimated > missing."""
    CONFIRMED = "confirmed"   # explicit count / quantity match
    ESTIMATED = "estimated"   # area computed from dimensions
    MISSING = "missing"       # no quantity at all


class SourceKind(str, Enum):
    PDF = "pdf"
    DWG = "dwg"
    TEXT = "text"   # caller-supplied text with no declared origin


class ColumnRole(str, Enum):
    NONE = ""
    DESC = "desc"
    QTY = "qty"
    SIZE = "size"


class SourceTrace(BaseModel):
    """Where in the original drawing a record came from."""
    source: SourceKind
    method: str
    page_number: Optional[int] = None
    page_count: Optional[int] = None
    table_name: Optional[str] = None
    row_index: Optional[int] = None
    entity_type: Optional[str] = None     # TEXT, MTEXT, ACAD_TABLE, ...
    entity_count: Optional[int] = None


class RawData(BaseModel):
    """Provenance bag: canonical trace plus source-specific extras."""
    source_trace: Optional[SourceTrace] = None
    source_trace_count: Optional[int] = None   # set by the deduplicator
    area_sqm: Optional[float] = None           # set when quantity is a dimension estimate
    extras: Dict[str, Any] = Field(default_factory=dict)


class Material(BaseModel):
    """One Bill-of-Materials row."""
    material_type: Optional[str] = None
    dimensions: Optional[str] = None
    quantity: Optional[float] = None
    confidence: Confidence = Confidence.MISSING
    annotations: Optional[str] = None
    raw_data: RawData = Field(default_factory=RawData)
    id: Optional[str] = None   # assigned by the persistence layer

    model_config = {"json_schema_extra": {
        "example": {
            "material_type": "acp",
            "dimensions": "1200x600mm",
            "quantity": 12.0,
            "confidence": "confirmed",
            "annotations": "ACP cladding panel 1200x600mm 12 pcs",
            "raw_data": {
                "source_trace": {"source": "pdf", "method": "pdfplumber", "page_number": 3},
                "source_trace_count": 1,
                "extras": {},
            },
        }
    }}


class TableRow(BaseModel):
    """A structured CAD table row, optionally with pre-identified column roles."""
    cells: List[str]
    column_roles: Optional[List[ColumnRole]] = None
    table_name: Optional[str] = None
    row_index: int = 0

    @model_validator(mode="after")
    def _roles_match_cells(self) -> "TableRow":
        if self.column_roles and len(self.column_roles) != len(self.cells):
            raise ValueError(
                f"column_roles has {len(self.column_roles)} entries but row "
                f"{self.row_index} has {len(self.cells)} cells"
            )
        return self


# ── Quality assessment ────────────────────────────────────────────────────────

class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationViolation(BaseModel):
    material_index: int
    rule_id: str
    rule_name: str
    severity: Severity
    message: str


class DataQualityMetrics(BaseModel):
    total: int = 0
    with_material_type: int = 0
    with_dimensions: int = 0
    with_quantity: int = 0
    with_source_trace: int = 0
    confirmed: int = 0
    estimated: int = 0
    missing: int = 0
    fill_rate_material_type: float = 0.0   # percent, 0–100
    fill_rate_dimensions: float = 0.0
    fill_rate_quantity: float = 0.0
    fill_rate_complete: float = 0.0
