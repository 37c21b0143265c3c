"""
conftest.py — Shared pytest fixtures for the drawing BOM extraction test suite.

No network, database or converter fixtures are defined here. Drawings are
built in memory (ezdxf for DXF, PyMuPDF for PDF) so every test runs offline.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``drawbom.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any drawbom imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)


# ---------------------------------------------------------------------------
# Sample drawing text
# ---------------------------------------------------------------------------

@pytest.fixture
def schedule_text():
    """
    A small panel schedule as pdfplumber would return it.

      line 1: ACP, 1200x600mm, 12 pcs         → acp, confirmed 12
      line 2: glazing, 1500x1000, no count      → glass, estimated 1.5 m²
      line 3: steel, no dims, no count        → steel, missing
      line 4: title text, no signal           → dropped
    """
    return (
        "ACP cladding 1200x600mm 12 pcs\n"
        "Glazing 1500x1000\n"
        "Steel bracket\n"
        "\n"
        "General notes apply"
    )


@pytest.fixture
def pdf_metadata():
    return {
        "source": "pdf",
        "method": "pdfplumber",
        "page_number": 3,
        "pages": 5,
        "filename": "A-301.pdf",
    }


# ---------------------------------------------------------------------------
# Material records
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_materials():
    """
    Three records covering each confidence level:
      [0] acp    1200x600mm  12    confirmed  page 1
      [1] glass  1500x1000   1.5   estimated  page 2
      [2] —      —           —     missing    no trace
    """
    from drawbom.models.material_schema import (
        Confidence, Material, RawData, SourceKind, SourceTrace,
    )
    return [
        Material(
            material_type="acp",
            dimensions="1200x600mm",
            quantity=12.0,
            confidence=Confidence.CONFIRMED,
            annotations="ACP cladding 1200x600mm 12 pcs",
            raw_data=RawData(source_trace=SourceTrace(
                source=SourceKind.PDF, method="pdfplumber", page_number=1,
            )),
        ),
        Material(
            material_type="glass",
            dimensions="1500x1000",
            quantity=1.5,
            confidence=Confidence.ESTIMATED,
            annotations="Glazing 1500x1000",
            raw_data=RawData(
                source_trace=SourceTrace(source=SourceKind.PDF, method="pdfplumber", page_number=2),
                area_sqm=1.5,
            ),
        ),
        Material(
            confidence=Confidence.MISSING,
            raw_data=RawData(extras={"source": "manual"}),
        ),
    ]


# ---------------------------------------------------------------------------
# Drawings
# ---------------------------------------------------------------------------

@pytest.fixture
def dxf_doc():
    """Empty R2010 DXF document with the standard text and dimension styles set up."""
    import ezdxf
    return ezdxf.new("R2010", setup=True)


@pytest.fixture
def pdf_bytes():
    """
    Two-page PDF built with PyMuPDF:
      page 1: "ACP cladding 1200x600mm 12 pcs"
      page 2: "Glazing 1500x1000"
    """
    import fitz
    doc = fitz.open()
    for line in ("ACP cladding 1200x600mm 12 pcs", "Glazing 1500x1000"):
        page = doc.new_page()
        page.insert_text((72, 72), line, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def blank_pdf_bytes():
    """Single page PDF with no text layer (what a scanned sheet looks like)."""
    import fitz
    doc = fitz.open()
    doc.new_page()
    data = doc.tobytes()
    doc.close()
    return data
