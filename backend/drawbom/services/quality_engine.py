"""
Data Quality Engine — advisory rule checks and fill-rate metrics over a
finished material collection.

Nothing here transforms records. Rules are independent (every rule runs
against every record, no short-circuit) and none is fatal: missing quantity or
material type is a warning, missing dimensions / trace / annotations is
informational.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List

from drawbom.models.material_schema import (
    Confidence,
    DataQualityMetrics,
    Material,
    Severity,
    ValidationViolation,
)

logger = logging.getLogger("drawbom-quality")


@dataclass(frozen=True)
class ValidationRule:
    id: str
    name: str
    check: Callable[[Material], bool]
    severity: Severity


def _has_text(value) -> bool:
    return bool(value and value.strip())


def _has_positive_quantity(m: Material) -> bool:
    return m.quantity is not None and m.quantity > 0


DEFAULT_RULES: tuple[ValidationRule, ...] = (
    ValidationRule("has-material-type", "Material type identified",
                   lambda m: _has_text(m.material_type), Severity.WARNING),
    ValidationRule("has-dimensions", "Dimensions specified",
                   lambda m: _has_text(m.dimensions), Severity.INFO),
    ValidationRule("has-quantity", "Quantity present",
                   _has_positive_quantity, Severity.WARNING),
    ValidationRule("has-source-trace", "Source traceability",
                   lambda m: m.raw_data.source_trace is not None, Severity.INFO),
    ValidationRule("has-annotations", "Raw text/annotations",
                   lambda m: _has_text(m.annotations), Severity.INFO),
)


def validate_materials(
    materials: List[Material],
    rules: tuple[ValidationRule, ...] = DEFAULT_RULES,
) -> List[ValidationViolation]:
    """One violation per failing (record, rule) pair, in record then rule order."""
    violations: List[ValidationViolation] = []
    for index, material in enumerate(materials):
        for rule in rules:
            if rule.check(material):
                continue
            violations.append(ValidationViolation(
                material_index=index,
                rule_id=rule.id,
                rule_name=rule.name,
                severity=rule.severity,
                message=f"Missing: {rule.name}",
            ))
    if violations:
        logger.debug(f"{len(violations)} quality violation(s) across {len(materials)} material(s)")
    return violations


def _pct(count: int, total: int) -> float:
    return (count / total) * 100 if total else 0.0


def compute_data_quality_metrics(materials: List[Material]) -> DataQualityMetrics:
    """
    Fill-rate metrics (percent, 0–100) plus counts by confidence.

    An empty collection yields all-zero counts and rates.
    """
    total = len(materials)
    if total == 0:
        return DataQualityMetrics()

    with_material_type = sum(1 for m in materials if _has_text(m.material_type))
    with_dimensions = sum(1 for m in materials if _has_text(m.dimensions))
    with_quantity = sum(1 for m in materials if _has_positive_quantity(m))
    with_source_trace = sum(1 for m in materials if m.raw_data.source_trace is not None)
    complete = sum(
        1 for m in materials
        if _has_text(m.material_type) and _has_text(m.dimensions) and _has_positive_quantity(m)
    )

    return DataQualityMetrics(
        total=total,
        with_material_type=with_material_type,
        with_dimensions=with_dimensions,
        with_quantity=with_quantity,
        with_source_trace=with_source_trace,
        confirmed=sum(1 for m in materials if m.confidence == Confidence.CONFIRMED),
        estimated=sum(1 for m in materials if m.confidence == Confidence.ESTIMATED),
        missing=sum(1 for m in materials if m.confidence == Confidence.MISSING),
        fill_rate_material_type=_pct(with_material_type, total),
        fill_rate_dimensions=_pct(with_dimensions, total),
        fill_rate_quantity=_pct(with_quantity, total),
        fill_rate_complete=_pct(complete, total),
    )
