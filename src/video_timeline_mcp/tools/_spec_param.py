"""Shared spec-parameter handling for the tool sub-servers."""

from __future__ import annotations

from ..errors import SpecValidationError
from ..models.spec import VideoSpec
from ..models.timeline import ValidationReport
from ..timeline.validator import parse_spec, validate_spec
from ..types import coerce_json_param


def spec_payload(spec: dict | str) -> dict:
    """Return *spec* as a dict, decoding a JSON string if needed."""
    payload = coerce_json_param(spec, dict)
    if not isinstance(payload, dict):
        raise ValueError("spec must be a JSON object (invalid JSON string given)")
    return payload


def load_spec(spec: dict | str) -> VideoSpec:
    """Parse and validate *spec*; downstream stages only see valid specs.

    Raises:
        SpecValidationError: The spec breaks a structural rule.
        ValueError: The spec is not a JSON object.
    """
    report = validate_spec(spec_payload(spec))
    if not report.valid:
        raise SpecValidationError(report.issues)
    return report.spec


def parse_payload(spec: dict | str) -> VideoSpec:
    """Parse *spec* checking shape only; temporal rules are left to the caller.

    Raises:
        SpecValidationError: The payload does not match the spec schema.
    """
    parsed, issues = parse_spec(spec_payload(spec))
    if parsed is None:
        raise SpecValidationError(issues)
    return parsed


def report_dict(report: ValidationReport) -> dict:
    """Serialise a validation report without echoing the spec back."""
    return {
        "valid": report.valid,
        "issues": [i.model_dump(mode="json", exclude_none=True) for i in report.issues],
    }
