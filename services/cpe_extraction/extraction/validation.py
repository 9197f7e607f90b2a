"""
Shape Validator
===============

Re-checks a parsed model response against the extraction contract without
trusting the provider's own schema enforcement.

Every check runs independently and violations are accumulated in a fixed
order. Absent optional fields count as null. Booleans are never accepted
where a number is expected.

Version: 0.1.0
"""

import math
from collections.abc import Callable, Mapping
from typing import Any

from services.cpe_extraction.extraction.response import ParseResult


Predicate = Callable[[Any], bool]

JSON_PARSE_ERROR = "json_parse_error"

# Integers must fit a signed 64-bit store column
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return INT64_MIN <= value <= INT64_MAX
    return isinstance(value, float) and math.isfinite(value)


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def nullable(predicate: Predicate) -> Predicate:
    """Accept None in addition to whatever `predicate` accepts."""

    def check(value: Any) -> bool:
        return value is None or predicate(value)

    return check


string_or_null = nullable(is_string)
number_or_null = nullable(is_number)
boolean_or_null = nullable(is_boolean)


HOURS_FIELDS: dict[str, Predicate] = {
    "accrual_method": is_string,
    "total_required": number_or_null,
    "accrual_rate_hours": number_or_null,
    "accrual_rate_period": string_or_null,
    "prorating_rules": string_or_null,
}

DEADLINE_FIELDS: dict[str, Predicate] = {
    "completion_deadline_rule": string_or_null,
    "completion_deadline_anchor": string_or_null,
    "late_policy_summary": string_or_null,
}

CATEGORY_FIELDS: dict[str, Predicate] = {
    "category": is_string,
    "hours": number_or_null,
    "notes": string_or_null,
    "max_percent_allowed": number_or_null,
}

CARRYOVER_FIELDS: dict[str, Predicate] = {
    "allowed": boolean_or_null,
    "max_hours": number_or_null,
    "notes": string_or_null,
}

SPECIAL_FIELDS: dict[str, Predicate] = {
    "initial_license_rules": string_or_null,
    "inactive_status_rules": string_or_null,
    "reactivation_reinstatement_rules": string_or_null,
}

AUDIT_FIELDS: dict[str, Predicate] = {
    "audit_policy_summary": string_or_null,
    "record_retention_years": number_or_null,
}

OTHER_REQUIREMENT_FIELDS: dict[str, Predicate] = {
    "title": string_or_null,
    "details": string_or_null,
    "citation": string_or_null,
}


def _absent(rp: Mapping[str, Any], *keys: str) -> bool:
    return all(rp.get(k) is None for k in keys)


def _has_type(rp: Mapping[str, Any]) -> bool:
    return is_string(rp.get("type")) and bool(rp["type"])


def _has_rules(rp: Mapping[str, Any]) -> bool:
    return is_string(rp.get("start_rule")) and is_string(rp.get("end_rule"))


REPORTING_PERIOD_VARIANTS: dict[str, Predicate] = {
    "type_only": lambda rp: _has_type(rp) and _absent(rp, "start_rule", "end_rule", "length_months"),
    "rules": lambda rp: _has_type(rp) and _has_rules(rp) and _absent(rp, "length_months"),
    "fixed_length": lambda rp: _has_type(rp) and _has_rules(rp) and is_number(rp.get("length_months")),
}


def reporting_period_variants(rp: Mapping[str, Any]) -> list[str]:
    """Names of the reporting-period variants `rp` conforms to."""
    return [name for name, matches in REPORTING_PERIOD_VARIANTS.items() if matches(rp)]


def _check_fields(
    prefix: str,
    obj: Mapping[str, Any],
    fields: Mapping[str, Predicate],
    required: tuple[str, ...] = (),
) -> list[str]:
    errors = []
    for name, predicate in fields.items():
        if not predicate(obj.get(name)):
            suffix = "missing/invalid" if name in required else "invalid"
            errors.append(f"{prefix}.{name} {suffix}")
    return errors


def _check_optional_object(name: str, value: Any, fields: Mapping[str, Predicate]) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, dict):
        return [f"{name} invalid"]
    return _check_fields(name, value, fields)


def _check_entries(
    name: str,
    value: Any,
    fields: Mapping[str, Predicate] | None,
    required: tuple[str, ...] = (),
) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        return [f"{name} invalid"]

    errors = []
    for idx, entry in enumerate(value):
        label = f"{name}[{idx}]"
        if not isinstance(entry, dict):
            errors.append(f"{label} invalid")
        elif fields:
            errors.extend(_check_fields(label, entry, fields, required))
    return errors


def check_state_code(payload: Mapping[str, Any]) -> list[str]:
    code = payload.get("state_code")
    if not is_string(code) or len(code) != 2:
        return ["state_code missing/invalid"]
    return []


def check_reporting_period(payload: Mapping[str, Any]) -> list[str]:
    rp = payload.get("reporting_period")
    if not isinstance(rp, dict):
        return ["reporting_period missing"]

    matched = reporting_period_variants(rp)
    if not matched:
        return ["reporting_period invalid shape"]
    if len(matched) > 1:
        return [f"reporting_period ambiguous shape ({', '.join(matched)})"]
    return []


def check_hours(payload: Mapping[str, Any]) -> list[str]:
    hours = payload.get("hours")
    if not isinstance(hours, dict):
        return ["hours missing"]
    return _check_fields("hours", hours, HOURS_FIELDS, required=("accrual_method",))


def check_scalars(payload: Mapping[str, Any]) -> list[str]:
    errors = []
    if not string_or_null(payload.get("state_name")):
        errors.append("state_name invalid")
    if not string_or_null(payload.get("plain_english_summary")):
        errors.append("plain_english_summary invalid")
    if not number_or_null(payload.get("extraction_confidence")):
        errors.append("extraction_confidence invalid")
    if not boolean_or_null(payload.get("needs_human_review")):
        errors.append("needs_human_review invalid")
    return errors


def validate_shape(payload: Mapping[str, Any]) -> list[str]:
    """
    List every way `payload` departs from the extraction contract.

    Args:
        payload: Parsed model response (may be empty)

    Returns:
        Human-readable violations; empty when fully conformant
    """
    return [
        *check_state_code(payload),
        *check_reporting_period(payload),
        *check_hours(payload),
        *_check_optional_object("deadlines", payload.get("deadlines"), DEADLINE_FIELDS),
        *_check_entries(
            "category_requirements",
            payload.get("category_requirements"),
            CATEGORY_FIELDS,
            required=("category",),
        ),
        *_check_entries("delivery_constraints", payload.get("delivery_constraints"), None),
        *_check_optional_object("carryover", payload.get("carryover"), CARRYOVER_FIELDS),
        *_check_optional_object("special", payload.get("special"), SPECIAL_FIELDS),
        *_check_optional_object("audit_and_records", payload.get("audit_and_records"), AUDIT_FIELDS),
        *_check_entries("other_requirements", payload.get("other_requirements"), OTHER_REQUIREMENT_FIELDS),
        *check_scalars(payload),
    ]


def collect_violations(result: ParseResult, payload: Mapping[str, Any]) -> list[str]:
    """
    Violations for a parse outcome.

    A parse failure is reported as the single `json_parse_error` violation;
    otherwise `payload` (the parsed value after state-code normalization)
    is validated.
    """
    if not result.ok:
        return [JSON_PARSE_ERROR]
    return validate_shape(payload)
