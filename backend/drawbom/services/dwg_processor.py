"""
DWG/DXF Processor — CAD entity text → material records.

Flattens every text-bearing entity of a drawing into plain text lines plus
structured table rows, then hands both to the extraction core:

  TEXT / MTEXT      entity text (MTEXT formatting codes stripped)
  DIMENSION         override text, else the measured value ("<>" = measured)
  INSERT            attached ATTRIB values and tags
  ATTDEF            default text, tag and prompt
  LEADER            linked annotation MTEXT (once, even if also in the layout)
  ACAD_TABLE        cell text as TableRow objects; a header row assigns roles

Geometry is ignored: no scale, no layer semantics, no block transforms. Block
definitions are read once regardless of how many times they are inserted.

Dependencies:
  - ezdxf (required, >= 1.2 for the ACAD_TABLE content reader)
  - ODA File Converter (optional, for .dwg → .dxf conversion)
"""
import os
import shutil
import logging
import tempfile
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional

import ezdxf
from ezdxf.entities.acad_table import read_acad_table_content

from drawbom import config
from drawbom.models.material_schema import (
    ColumnRole,
    Confidence,
    Material,
    RawData,
    SourceKind,
    SourceTrace,
    TableRow,
)
from drawbom.services.dedup_engine import deduplicate_materials
from drawbom.services.exceptions import DrawingDecodeError, UnsupportedDrawingError
from drawbom.services.material_parser import parse_material_data, parse_table_row

logger = logging.getLogger("drawbom-dwg")

NO_TEXT_ANNOTATION = (
    "DWG file parsed successfully but no text entities found. "
    "The drawing may contain only geometry."
)

# Anonymous blocks that cache DIMENSION / ACAD_TABLE geometry; their text is
# read from the owning entity instead
_GEOMETRY_CACHE_BLOCK_PREFIXES = ("*D", "*T")

# Header words that identify a table column's role
_HEADER_ROLE_WORDS = (
    (ColumnRole.QTY, ("qty", "quantity", "count", "nos", "no.", "pcs")),
    (ColumnRole.SIZE, ("size", "dimension", "dim", "w x h")),
    (ColumnRole.DESC, ("description", "desc", "material", "item", "type", "name")),
)


@dataclass
class TextChunk:
    text: str
    entity_type: str
    layer: str = ""
    block_name: str = ""


@dataclass
class FlattenedDrawing:
    chunks: List[TextChunk] = field(default_factory=list)
    table_rows: List[TableRow] = field(default_factory=list)
    entity_count: int = 0

    @property
    def text(self) -> str:
        return "\n".join(c.text for c in self.chunks if c.text)


# ── DWG → DXF conversion ──────────────────────────────────────────────────────

def _find_oda_converter(configured: str = "") -> Optional[str]:
    """Locate ODA File Converter: configured path, common install dirs, then PATH."""
    configured = configured or config.ODA_CONVERTER_PATH
    if configured and os.path.isfile(configured):
        return configured

    candidates = [
        r"C:\Program Files\ODA\ODAFileConverter\ODAFileConverter.exe",
        "/usr/bin/ODAFileConverter",
        "/usr/local/bin/ODAFileConverter",
    ]
    for c in candidates:
        if os.path.isfile(c):
            return c
    return shutil.which("ODAFileConverter")


def convert_dwg_to_dxf(input_path: str, output_dir: str, oda_converter_path: str = "") -> str:
    """
    Convert a .dwg file to .dxf inside output_dir with ODA File Converter and
    return the .dxf path. The caller owns output_dir and removes it.
    Raises DrawingDecodeError if the converter is missing or produces nothing.
    """
    oda = _find_oda_converter(oda_converter_path)
    if not oda:
        raise DrawingDecodeError(
            "ODA File Converter not found. Install it or set ODA_CONVERTER_PATH "
            "to read .dwg files (.dxf files need no converter).",
            input_path,
        )

    input_dir = os.path.dirname(os.path.abspath(input_path))
    basename = os.path.basename(input_path)

    try:
        result = subprocess.run(
            [oda, input_dir, output_dir, "ACAD2018", "DXF", "0", "1", basename],
            capture_output=True,
            timeout=120,
        )
    except subprocess.TimeoutExpired as e:
        raise DrawingDecodeError("ODA File Converter timed out (120s limit)", input_path) from e

    for f in os.listdir(output_dir):
        if f.lower().endswith(".dxf"):
            return os.path.join(output_dir, f)
    raise DrawingDecodeError(
        f"ODA conversion produced no .dxf output. Exit code: {result.returncode}, "
        f"stderr: {result.stderr.decode(errors='replace')[:500]}",
        input_path,
    )


# ── Entity text helpers ───────────────────────────────────────────────────────

def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def _dimension_text(entity) -> str:
    override = _clean(entity.dxf.get("text", ""))
    if override and override != "<>":
        return override
    try:
        measurement = entity.get_measurement()
    except Exception as e:
        logger.debug(f"DIMENSION {entity.dxf.handle}: no measurement ({e})")
        return ""
    if isinstance(measurement, (int, float)):
        return f"{round(float(measurement), 3):g}"
    return ""


def _infer_header_roles(cells: List[str]) -> Optional[List[ColumnRole]]:
    """Column roles from a header row, or None when the row is not a header."""
    roles: List[ColumnRole] = []
    for cell in cells:
        lower = cell.lower().strip()
        role = ColumnRole.NONE
        for candidate, words in _HEADER_ROLE_WORDS:
            if any(lower.startswith(w) for w in words):
                role = candidate
                break
        roles.append(role)
    return roles if any(r != ColumnRole.NONE for r in roles) else None


def table_rows_from_cells(rows: List[List[str]], table_name: str) -> List[TableRow]:
    """
    Build TableRow objects from raw cell text. If the first row is a header,
    it is consumed and its roles are applied to every row of matching width.
    """
    if not rows:
        return []
    cleaned = [[_clean(c) for c in row] for row in rows]
    header_roles = _infer_header_roles(cleaned[0])
    start = 1 if header_roles else 0

    table_rows: List[TableRow] = []
    for row_index in range(start, len(cleaned)):
        cells = cleaned[row_index]
        if not any(cells):
            continue
        roles = header_roles if header_roles and len(header_roles) == len(cells) else None
        table_rows.append(TableRow(
            cells=cells, column_roles=roles, table_name=table_name, row_index=row_index,
        ))
    return table_rows


# ── Main processor class ──────────────────────────────────────────────────────

class DWGProcessorService:
    """
    CAD text flattener + extraction for .dxf (native ezdxf) and .dwg (via ODA).

    Unreadable files raise DrawingDecodeError; a readable drawing without any
    text yields one informational record instead of an empty list.
    """

    def __init__(self, oda_converter_path: str = ""):
        self.oda_converter_path = oda_converter_path

    def load_document(self, file_path: str):
        ext = os.path.splitext(file_path)[1].lower()
        if ext not in config.SUPPORTED_CAD_EXTENSIONS:
            raise UnsupportedDrawingError(
                f"Unsupported file format: {ext}. Expected .dwg or .dxf", file_path
            )
        if not os.path.isfile(file_path):
            raise DrawingDecodeError(f"File not found: {file_path}", file_path)

        if ext != ".dwg":
            return self._read_dxf(file_path, file_path)

        # The converted .dxf is removed with its directory once loaded
        with tempfile.TemporaryDirectory(prefix="drawbom_dwg_") as output_dir:
            dxf_path = convert_dwg_to_dxf(file_path, output_dir, self.oda_converter_path)
            return self._read_dxf(dxf_path, file_path)

    @staticmethod
    def _read_dxf(dxf_path: str, source_path: str):
        try:
            return ezdxf.readfile(dxf_path)
        except Exception as e:
            raise DrawingDecodeError(f"Failed to read DXF file: {e}", source_path) from e

    def flatten(self, doc) -> FlattenedDrawing:
        """Collect text chunks and table rows from all layouts and block definitions."""
        flat = FlattenedDrawing(entity_count=sum(len(layout) for layout in doc.layouts))
        seen_handles: set = set()

        for block in doc.blocks:
            if block.name.upper().startswith(_GEOMETRY_CACHE_BLOCK_PREFIXES):
                continue
            for entity in block:
                self._collect(doc, entity, block.name, flat, seen_handles)

        logger.debug(
            f"Flattened {len(flat.chunks)} text chunk(s), {len(flat.table_rows)} table row(s)"
        )
        return flat

    def _collect(self, doc, entity, block_name: str, flat: FlattenedDrawing, seen: set) -> None:
        dxf_type = entity.dxftype()
        layer = entity.dxf.get("layer", "")

        def add(text: str, entity_type: str = dxf_type) -> None:
            text = _clean(text)
            if text:
                flat.chunks.append(TextChunk(text, entity_type, layer, block_name))

        if dxf_type == "TEXT":
            add(entity.dxf.get("text", ""))
        elif dxf_type == "MTEXT":
            if entity.dxf.handle in seen:
                return
            seen.add(entity.dxf.handle)
            add(entity.plain_text())
        elif dxf_type == "DIMENSION":
            add(_dimension_text(entity))
        elif dxf_type == "INSERT":
            for attrib in entity.attribs:
                add(attrib.dxf.get("text", ""), "ATTRIB")
                add(attrib.dxf.get("tag", ""), "ATTRIB")
        elif dxf_type == "ATTDEF":
            add(entity.dxf.get("text", ""))
            add(entity.dxf.get("tag", ""))
            add(entity.dxf.get("prompt", ""))
        elif dxf_type == "LEADER":
            handle = entity.dxf.get("annotation_handle")
            annotation = doc.entitydb.get(handle) if handle else None
            if annotation is not None and annotation.dxftype() == "MTEXT" and handle not in seen:
                seen.add(handle)
                add(annotation.plain_text())
        elif dxf_type == "ACAD_TABLE":
            table_name = f"TABLE-{entity.dxf.handle}"
            try:
                rows = read_acad_table_content(entity)
            except Exception as e:
                logger.warning(f"{table_name}: table content unreadable ({e})")
                return
            flat.table_rows.extend(table_rows_from_cells(rows, table_name))

    def process_document(self, doc, filename: str = "") -> List[Material]:
        flat = self.flatten(doc)
        text = flat.text

        if not text.strip() and not flat.table_rows:
            logger.warning(f"No text entities found in drawing {filename}")
            return [Material(
                annotations=NO_TEXT_ANNOTATION,
                confidence=Confidence.MISSING,
                raw_data=RawData(
                    source_trace=SourceTrace(
                        source=SourceKind.DWG, method="ezdxf", entity_count=flat.entity_count,
                    ),
                    extras={"extracted": False, "filename": filename},
                ),
            )]

        materials: List[Material] = []
        if text.strip():
            materials.extend(parse_material_data(text, {
                "source": SourceKind.DWG.value,
                "method": "ezdxf",
                "entity_count": flat.entity_count,
                "filename": filename,
            }))
        for row in flat.table_rows:
            material = parse_table_row(row)
            if material is not None:
                materials.append(material)

        deduped = deduplicate_materials(materials)
        logger.info(
            f"Drawing {filename}: {flat.entity_count} entities, {len(flat.chunks)} text chunk(s), "
            f"{len(flat.table_rows)} table row(s) → {len(deduped)} material(s)"
        )
        return deduped

    def process_file(self, file_path: str) -> List[Material]:
        doc = self.load_document(file_path)
        return self.process_document(doc, os.path.basename(file_path))

    def process_bytes(self, data: bytes, filename: str = "upload.dxf") -> List[Material]:
        """Process uploaded bytes by spooling them to a temp file (ezdxf and ODA read paths)."""
        if not data:
            raise DrawingDecodeError("DWG file is empty or could not be read", filename)
        ext = os.path.splitext(filename)[1].lower()
        if ext not in config.SUPPORTED_CAD_EXTENSIONS:
            raise UnsupportedDrawingError(
                f"Unsupported file format: {ext}. Expected .dwg or .dxf", filename
            )

        tmp = tempfile.NamedTemporaryFile(delete=False, suffix=ext)
        try:
            tmp.write(data)
            tmp.close()
            doc = self.load_document(tmp.name)
            return self.process_document(doc, filename)
        finally:
            try:
                os.unlink(tmp.name)
            except OSError:
                logger.debug(f"Temp file already removed: {tmp.name}")
