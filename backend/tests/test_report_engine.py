"""
test_report_engine.py — CSV export and quantity take-off summary.
"""

import csv
import io

import pytest

from drawbom.models.material_schema import Confidence, Material
from drawbom.services.report_engine import (
    CSV_HEADERS,
    materials_to_csv,
    summarize_quantities_by_type,
)


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


class TestMaterialsToCsv:

    def test_header_row(self):
        assert _rows(materials_to_csv([]))[0] == CSV_HEADERS

    def test_one_row_per_material_with_element_ids(self, sample_materials):
        rows = _rows(materials_to_csv(sample_materials))
        assert len(rows) == 4
        assert [r[0] for r in rows[1:]] == ["E1", "E2", "E3"]

    def test_confirmed_row(self, sample_materials):
        row = dict(zip(CSV_HEADERS, _rows(materials_to_csv(sample_materials))[1]))
        assert row["Category"] == "acp"
        assert row["Type"] == "acp"
        assert row["Dimensions"] == "1200x600mm"
        assert row["Quantity"] == "12"
        assert row["Unit"] == "m²"
        assert row["Confidence"] == "confirmed"
        assert row["Annotations"] == "ACP cladding 1200x600mm 12 pcs"

    def test_source_is_trace_json_with_single_quotes(self, sample_materials):
        row = dict(zip(CSV_HEADERS, _rows(materials_to_csv(sample_materials))[1]))
        assert row["Source"] == "{'source': 'pdf', 'method': 'pdfplumber', 'page_number': 1}"

    def test_fractional_quantity_kept(self, sample_materials):
        row = dict(zip(CSV_HEADERS, _rows(materials_to_csv(sample_materials))[2]))
        assert row["Quantity"] == "1.5"
        assert row["Confidence"] == "estimated"

    def test_untyped_record(self, sample_materials):
        """No type → empty Category, 'unknown' Type; no trace → extras source."""
        row = dict(zip(CSV_HEADERS, _rows(materials_to_csv(sample_materials))[3]))
        assert row["Category"] == ""
        assert row["Type"] == "unknown"
        assert row["Quantity"] == ""
        assert row["Source"] == "manual"

    def test_commas_and_newlines_are_quoted(self):
        m = Material(material_type="glass", annotations='Glass, "low-e"\nsee note 4')
        rows = _rows(materials_to_csv([m]))
        assert len(rows) == 2
        assert rows[1][CSV_HEADERS.index("Annotations")] == 'Glass, "low-e"\nsee note 4'


class TestSummarizeQuantitiesByType:

    def test_per_type_totals(self, sample_materials):
        summary = summarize_quantities_by_type(sample_materials)
        assert list(summary) == ["acp", "glass", "unknown"]
        assert summary["acp"]["count"] == 1
        assert summary["acp"]["confirmed_quantity"] == 12.0
        assert summary["glass"]["estimated_quantity"] == 1.5
        assert summary["unknown"]["missing_quantity_count"] == 1

    def test_confirmed_and_estimated_summed_separately(self):
        """acp: 10 + 2 confirmed, 0.72 estimated → total 12.72."""
        materials = [
            Material(material_type="acp", quantity=10, confidence=Confidence.CONFIRMED),
            Material(material_type="acp", quantity=2, confidence=Confidence.CONFIRMED),
            Material(material_type="acp", quantity=0.72, confidence=Confidence.ESTIMATED),
        ]
        acp = summarize_quantities_by_type(materials)["acp"]
        assert acp["confirmed_quantity"] == 12.0
        assert acp["estimated_quantity"] == pytest.approx(0.72)
        assert acp["total_quantity"] == pytest.approx(12.72)

    def test_empty(self):
        assert summarize_quantities_by_type([]) == {}
