"""
test_quality_engine.py — Tests for validate_materials and
compute_data_quality_metrics.
"""

import pytest

from drawbom.models.material_schema import Confidence, Material, Severity
from drawbom.services.quality_engine import (
    DEFAULT_RULES,
    ValidationRule,
    compute_data_quality_metrics,
    validate_materials,
)


class TestValidateMaterials:

    def test_complete_record_passes_all_rules(self, sample_materials):
        violations = validate_materials([sample_materials[0]])
        assert violations == []

    def test_empty_record_fails_every_rule(self, sample_materials):
        """Record 2 has no type, dims, qty, trace or annotations → 5 violations."""
        violations = validate_materials(sample_materials)
        failing = [v for v in violations if v.material_index == 2]
        assert [v.rule_id for v in failing] == [r.id for r in DEFAULT_RULES]

    def test_severities(self, sample_materials):
        violations = {v.rule_id: v for v in validate_materials([sample_materials[2]])}
        assert violations["has-material-type"].severity == Severity.WARNING
        assert violations["has-quantity"].severity == Severity.WARNING
        assert violations["has-dimensions"].severity == Severity.INFO
        assert violations["has-source-trace"].severity == Severity.INFO
        assert violations["has-annotations"].severity == Severity.INFO

    def test_message_names_the_rule(self, sample_materials):
        [violation] = [
            v for v in validate_materials([sample_materials[2]]) if v.rule_id == "has-quantity"
        ]
        assert violation.message == "Missing: Quantity present"

    def test_zero_quantity_is_a_violation(self):
        m = Material(material_type="glass", quantity=0.0, confidence=Confidence.CONFIRMED)
        assert "has-quantity" in {v.rule_id for v in validate_materials([m])}

    def test_whitespace_type_is_a_violation(self):
        m = Material(material_type="  ")
        assert "has-material-type" in {v.rule_id for v in validate_materials([m])}

    def test_custom_rules(self, sample_materials):
        rules = (ValidationRule("is-confirmed", "Confirmed quantity",
                                lambda m: m.confidence == Confidence.CONFIRMED, Severity.ERROR),)
        violations = validate_materials(sample_materials, rules)
        assert [v.material_index for v in violations] == [1, 2]
        assert all(v.severity == Severity.ERROR for v in violations)

    def test_empty_collection(self):
        assert validate_materials([]) == []


class TestComputeDataQualityMetrics:

    def test_counts(self, sample_materials):
        metrics = compute_data_quality_metrics(sample_materials)
        assert metrics.total == 3
        assert metrics.with_material_type == 2
        assert metrics.with_dimensions == 2
        assert metrics.with_quantity == 2
        assert metrics.with_source_trace == 2
        assert (metrics.confirmed, metrics.estimated, metrics.missing) == (1, 1, 1)

    def test_fill_rates_are_percentages(self, sample_materials):
        """2 of 3 records → 66.67%; both typed records are complete."""
        metrics = compute_data_quality_metrics(sample_materials)
        assert metrics.fill_rate_material_type == pytest.approx(200 / 3)
        assert metrics.fill_rate_quantity == pytest.approx(200 / 3)
        assert metrics.fill_rate_complete == pytest.approx(200 / 3)

    def test_complete_requires_all_three_fields(self, sample_materials):
        no_dims = sample_materials[0].model_copy(update={"dimensions": None})
        metrics = compute_data_quality_metrics([no_dims])
        assert metrics.fill_rate_material_type == 100.0
        assert metrics.fill_rate_complete == 0.0

    def test_empty_collection_is_all_zero(self):
        metrics = compute_data_quality_metrics([])
        assert metrics.total == 0
        assert metrics.fill_rate_material_type == 0.0
        assert metrics.fill_rate_complete == 0.0
