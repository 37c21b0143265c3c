"""
test_dedup_engine.py — Tests for deduplicate_materials.

Tests cover:
  - key construction (case, whitespace, 5 vs 5.0)
  - representative selection by confidence
  - annotation merging and trace counting
  - ordering, non-mutation and idempotence
"""

import pytest

from drawbom.models.material_schema import Confidence, Material, RawData, SourceKind, SourceTrace
from drawbom.services.dedup_engine import canonical_quantity, dedup_key, deduplicate_materials
from drawbom.services.material_parser import parse_material_data


def _material(material_type="acp", dimensions="1200x600mm", quantity=12.0,
              confidence=Confidence.CONFIRMED, annotations=None, page=None):
    trace = SourceTrace(source=SourceKind.PDF, method="pdfplumber", page_number=page) if page else None
    return Material(
        material_type=material_type,
        dimensions=dimensions,
        quantity=quantity,
        confidence=confidence,
        annotations=annotations,
        raw_data=RawData(source_trace=trace),
    )


class TestDedupKey:

    def test_type_is_case_and_space_insensitive(self):
        assert dedup_key(_material(material_type=" ACP ")) == dedup_key(_material(material_type="acp"))

    def test_integral_quantities_share_a_key(self):
        assert canonical_quantity(5) == canonical_quantity(5.0) == "5"

    def test_missing_quantity_key(self):
        assert canonical_quantity(None) == ""

    def test_dimensions_compared_exactly(self):
        assert dedup_key(_material(dimensions="1200x600mm")) != dedup_key(_material(dimensions="1200 x 600 mm"))


class TestDeduplicateMaterials:

    def test_repeated_callout_collapses(self):
        """Same callout on plan and elevation → one record, two traces."""
        materials = parse_material_data(
            "ACP panel 1200x600mm 12 pcs\nACP panel 1200x600mm 12 pcs",
            {"source": "pdf", "method": "pdfplumber", "page_number": 1},
        )
        [merged] = deduplicate_materials(materials)
        assert merged.annotations == "ACP panel 1200x600mm 12 pcs"
        assert merged.raw_data.source_trace_count == 2
        assert merged.raw_data.source_trace.page_number == 1

    def test_distinct_annotations_joined_in_order(self):
        group = [
            _material(annotations="Elevation A", page=1),
            _material(annotations="Elevation B", page=2),
            _material(annotations="Elevation A", page=3),
        ]
        [merged] = deduplicate_materials(group)
        assert merged.annotations == "Elevation A; Elevation B"
        assert merged.raw_data.source_trace_count == 3
        assert merged.raw_data.source_trace.page_number == 1

    def test_two_windows_merge(self):
        group = [
            _material("glass", "1200x600", 5, annotations="Window A", page=1),
            _material("glass", "1200x600", 5, annotations="Window B", page=2),
        ]
        result = deduplicate_materials(group)
        assert len(result) == 1
        assert result[0].annotations == "Window A; Window B"
        assert result[0].raw_data.source_trace_count == 2

    def test_highest_confidence_represents_group(self):
        """Keys match (same type, dims, qty) but confidences differ."""
        group = [
            _material(confidence=Confidence.MISSING, annotations="a"),
            _material(confidence=Confidence.CONFIRMED, annotations="b"),
            _material(confidence=Confidence.ESTIMATED, annotations="c"),
        ]
        [merged] = deduplicate_materials(group)
        assert merged.confidence == Confidence.CONFIRMED

    def test_tie_keeps_first(self):
        first = _material(annotations="first")
        first.id = "first-id"
        second = _material(annotations="second")
        second.id = "second-id"
        [merged] = deduplicate_materials([first, second])
        assert merged.id == "first-id"

    def test_no_trace_no_count(self):
        [merged] = deduplicate_materials([_material(), _material()])
        assert merged.raw_data.source_trace is None
        assert merged.raw_data.source_trace_count is None

    def test_group_order_is_first_seen(self):
        materials = [
            _material(material_type="glass", annotations="g1"),
            _material(material_type="acp", annotations="a1"),
            _material(material_type="glass", annotations="g2"),
        ]
        result = deduplicate_materials(materials)
        assert [m.material_type for m in result] == ["glass", "acp"]

    def test_different_quantities_not_merged(self):
        assert len(deduplicate_materials([_material(quantity=12), _material(quantity=13)])) == 2

    def test_input_not_mutated(self):
        materials = [_material(annotations="x", page=1), _material(annotations="y", page=2)]
        snapshot = [m.model_dump() for m in materials]
        deduplicate_materials(materials)
        assert [m.model_dump() for m in materials] == snapshot

    def test_idempotent(self):
        materials = [
            _material(annotations="x", page=1),
            _material(annotations="y", page=2),
            _material(material_type="glass", quantity=1.5, confidence=Confidence.ESTIMATED, page=1),
        ]
        once = deduplicate_materials(materials)
        twice = deduplicate_materials(once)
        assert [m.model_dump() for m in twice] == [m.model_dump() for m in once]
        assert twice[0].raw_data.source_trace_count == 2

    def test_empty(self):
        assert deduplicate_materials([]) == []

    @pytest.mark.parametrize("count", [1, 4])
    def test_record_count_never_grows(self, count):
        assert len(deduplicate_materials([_material()] * count)) == 1
