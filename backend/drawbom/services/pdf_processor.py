"""
PDF Processor — PDF text layer → material records.

Two-stage text extraction:
  Stage 1 — pdfplumber page.extract_text() per page (layout-aware, keeps
            schedule rows on one line)
  Stage 2 — PyMuPDF page.get_text() for any page pdfplumber returns empty

Each page is parsed on its own so every record's source trace carries the page
it came from; the combined list is then deduplicated. Scanned (image-only)
PDFs produce a single informational record since OCR is out of scope.
"""
import io
import logging
from dataclasses import dataclass
from typing import List

import fitz          # PyMuPDF
import pdfplumber

from drawbom.models.material_schema import Confidence, Material, RawData, SourceKind, SourceTrace
from drawbom.services.dedup_engine import deduplicate_materials
from drawbom.services.exceptions import DrawingDecodeError
from drawbom.services.material_parser import parse_material_data

logger = logging.getLogger("drawbom-pdf")

NO_TEXT_ANNOTATION = (
    "PDF file processed but no text content found. This may be a scanned image PDF."
)


@dataclass
class PageText:
    page_number: int
    text: str
    method: str = "pdfplumber"   # "pdfplumber" | "pymupdf"


class PDFProcessorService:

    def extract_pages(self, pdf_bytes: bytes, filename: str = "upload.pdf") -> List[PageText]:
        """
        Return the text of every page (empty text for pages without a text layer).

        Raises DrawingDecodeError when the bytes are empty or not a readable PDF.
        """
        if not pdf_bytes:
            raise DrawingDecodeError("PDF file is empty or could not be read", filename)

        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [
                    PageText(page_number=page.page_number, text=(page.extract_text() or "").strip())
                    for page in pdf.pages
                ]
        except Exception as e:
            raise DrawingDecodeError(f"Failed to extract PDF: {e}", filename) from e

        if any(not p.text for p in pages):
            self._fill_empty_pages(pdf_bytes, pages)
        return pages

    def _fill_empty_pages(self, pdf_bytes: bytes, pages: List[PageText]) -> None:
        try:
            with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
                for page, fitz_page in zip(pages, doc):
                    if page.text:
                        continue
                    text = (fitz_page.get_text() or "").strip()
                    if text:
                        page.text = text
                        page.method = "pymupdf"
        except Exception as e:
            logger.warning(f"PyMuPDF fallback failed: {e}")

    def process_bytes(self, pdf_bytes: bytes, filename: str = "upload.pdf") -> List[Material]:
        """Extract, parse per page, and deduplicate."""
        pages = self.extract_pages(pdf_bytes, filename)
        page_count = len(pages)

        if not any(p.text for p in pages):
            logger.warning(f"No text extracted from PDF: {filename}")
            return [Material(
                annotations=NO_TEXT_ANNOTATION,
                confidence=Confidence.MISSING,
                raw_data=RawData(
                    source_trace=SourceTrace(
                        source=SourceKind.PDF, method="pdfplumber", page_count=page_count,
                    ),
                    extras={"has_text": False, "filename": filename},
                ),
            )]

        materials: List[Material] = []
        for page in pages:
            if not page.text:
                continue
            materials.extend(parse_material_data(page.text, {
                "source": SourceKind.PDF.value,
                "method": page.method,
                "page_number": page.page_number,
                "page_count": page_count,
                "filename": filename,
            }))

        deduped = deduplicate_materials(materials)
        logger.info(
            f"PDF {filename}: {page_count} page(s), {len(materials)} raw → {len(deduped)} material(s)"
        )
        return deduped

    def process_file(self, file_path: str) -> List[Material]:
        try:
            with open(file_path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise DrawingDecodeError(f"File not found or unreadable: {file_path}", file_path) from e
        return self.process_bytes(data, file_path)
