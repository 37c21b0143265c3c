"""Extraction API — text, table rows and drawing uploads → material records."""
import os
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from drawbom import config
from drawbom.models.material_schema import Material, TableRow
from drawbom.services.dedup_engine import deduplicate_materials
from drawbom.services.dwg_processor import DWGProcessorService
from drawbom.services.exceptions import DrawingDecodeError, UnsupportedDrawingError
from drawbom.services.material_parser import parse_material_data, parse_table_row
from drawbom.services.pdf_processor import PDFProcessorService
from drawbom.services.quality_engine import compute_data_quality_metrics, validate_materials
from drawbom.services.report_engine import materials_to_csv, summarize_quantities_by_type

logger = logging.getLogger("drawbom-api")

router = APIRouter(prefix="/api/extraction", tags=["Material Extraction"])


# ─── Request bodies ──────────────────────────────────────────────────────────

class TextExtractionRequest(BaseModel):
    text: str
    source_metadata: Optional[Dict[str, Any]] = None


class TableRowsRequest(BaseModel):
    rows: List[TableRow] = Field(default_factory=list)


class MaterialsRequest(BaseModel):
    materials: List[Material] = Field(default_factory=list)


def _dump(materials: List[Material]) -> List[dict]:
    return [m.model_dump(mode="json") for m in materials]


def _log_context(request: Request, **fields) -> Dict[str, Any]:
    """Logging extras for this request; keys are listed in logging_config.CONTEXT_FIELDS."""
    return {"request_id": getattr(request.state, "request_id", None), **fields}


# ─── Text / table rows ───────────────────────────────────────────────────────

@router.post("/text")
async def extract_text(body: TextExtractionRequest, request: Request):
    """Parse free text (e.g. a pasted schedule) and return deduplicated records."""
    if len(body.text) > config.MAX_INPUT_CHARS:
        raise HTTPException(413, f"Text exceeds {config.MAX_INPUT_CHARS} characters.")

    materials = deduplicate_materials(parse_material_data(body.text, body.source_metadata))
    request.state.material_count = len(materials)
    logger.info(
        f"Text extraction: {len(body.text)} chars → {len(materials)} material(s)",
        extra=_log_context(request, material_count=len(materials)),
    )
    return {
        "materials": _dump(materials),
        "count": len(materials),
        "quality": compute_data_quality_metrics(materials).model_dump(),
    }


@router.post("/table-rows")
async def extract_table_rows(body: TableRowsRequest, request: Request):
    """Parse structured CAD table rows; rows without any signal are skipped."""
    materials = [m for m in (parse_table_row(row) for row in body.rows) if m is not None]
    request.state.material_count = len(materials)
    return {"materials": _dump(materials), "count": len(materials)}


# ─── Drawing upload ──────────────────────────────────────────────────────────

@router.post("/upload")
async def upload_drawing(request: Request, file: UploadFile = File(...)):
    """Upload a PDF, DXF or DWG drawing and extract its material records."""
    filename = file.filename or ""
    ext = os.path.splitext(filename)[-1].lower()
    if ext not in config.SUPPORTED_PDF_EXTENSIONS + config.SUPPORTED_CAD_EXTENSIONS:
        raise HTTPException(400, "Only PDF, DXF or DWG files accepted.")

    data = await file.read()
    if len(data) > config.MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(413, f"File exceeds {config.MAX_UPLOAD_MB:g} MB upload limit.")

    kind = "pdf" if ext in config.SUPPORTED_PDF_EXTENSIONS else "dwg"
    started = datetime.now(timezone.utc)
    try:
        if kind == "pdf":
            materials = PDFProcessorService().process_bytes(data, filename)
        else:
            materials = DWGProcessorService().process_bytes(data, filename)
    except UnsupportedDrawingError as exc:
        raise HTTPException(400, str(exc))
    except DrawingDecodeError as exc:
        logger.error(
            f"Drawing decode error: {exc}",
            extra=_log_context(request, drawing_file=exc.filename or filename, drawing_kind=kind),
        )
        raise HTTPException(422, f"Drawing could not be read: {exc}")

    duration_ms = round((datetime.now(timezone.utc) - started).total_seconds() * 1000, 2)
    request.state.material_count = len(materials)
    logger.info(
        f"Upload {filename}: {len(materials)} material(s)",
        extra=_log_context(
            request,
            drawing_file=filename,
            drawing_kind=kind,
            material_count=len(materials),
            duration_ms=duration_ms,
        ),
    )
    return {
        "filename": filename,
        "materials": _dump(materials),
        "count": len(materials),
        "quality": compute_data_quality_metrics(materials).model_dump(),
    }


# ─── Reporting over a finished collection ────────────────────────────────────

@router.post("/quality")
async def assess_quality(body: MaterialsRequest):
    """Fill-rate metrics and advisory rule violations."""
    return {
        "metrics": compute_data_quality_metrics(body.materials).model_dump(),
        "violations": [v.model_dump(mode="json") for v in validate_materials(body.materials)],
    }


@router.post("/qto")
async def quantity_takeoff(body: MaterialsRequest):
    return summarize_quantities_by_type(body.materials)


@router.post("/export")
async def export_csv(body: MaterialsRequest):
    """Download the collection as CSV (one element per row)."""
    filename = f"materials_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.csv"
    return Response(
        content=materials_to_csv(body.materials),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
