"""
Record Normalizer
=================

Flattens a (possibly partial) extracted requirement plus request metadata
into the fixed-column persisted record. No validation happens here.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from services.cpe_extraction.models import ExtractionRequest, PersistedRequirement
from shared.config import ExtractionSettings


# Sentinel for storage columns that cannot be null
UNKNOWN = "other"

CATEGORY_KEYS = ("category", "hours", "notes", "max_percent_allowed")
OTHER_REQUIREMENT_KEYS = ("title", "details", "citation")


def _section(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _entries(value: Any, keys: tuple[str, ...]) -> list[Any]:
    if not isinstance(value, list):
        return []
    return [{**dict.fromkeys(keys), **item} if isinstance(item, dict) else item for item in value]


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def normalize_record(
    payload: dict[str, Any],
    request: ExtractionRequest,
    *,
    needs_review: bool,
    model_name: str,
    config: ExtractionSettings,
    extracted_at: datetime | None = None,
) -> PersistedRequirement:
    """
    Build the persisted record for one extraction.

    Args:
        payload: Parsed model output after state-code normalization
            (empty when parsing failed)
        request: Original extraction request
        needs_review: Computed review flag
        model_name: Model actually used
        config: Extraction configuration (schema version)
        extracted_at: Timestamp to stamp; defaults to now (UTC)

    Returns:
        PersistedRequirement with every optional column explicitly set
    """
    reporting = _section(payload, "reporting_period")
    hours = _section(payload, "hours")
    deadlines = _section(payload, "deadlines")
    carryover = _section(payload, "carryover")
    special = _section(payload, "special")
    audit = _section(payload, "audit_and_records")

    delivery = payload.get("delivery_constraints")

    return PersistedRequirement.model_construct(
        state_code=request.state_code,
        state_name=_first(payload.get("state_name"), request.state_name),
        schema_version=config.schema_version,
        effective_date=request.effective_date.isoformat() if request.effective_date else None,
        source_title=request.source_title,
        source_url=request.source_url,
        source_text=request.source_text,
        extracted_json={**payload, "schema_version": config.schema_version},
        extracted_at=extracted_at or datetime.now(UTC),
        model_name=model_name,
        extraction_confidence=payload.get("extraction_confidence"),
        needs_human_review=needs_review,
        reporting_period_type=_first(reporting.get("type"), UNKNOWN),
        reporting_period_length_months=reporting.get("length_months"),
        reporting_period_start_rule=reporting.get("start_rule"),
        reporting_period_end_rule=reporting.get("end_rule"),
        reporting_period_examples=reporting.get("examples"),
        total_hours_required=hours.get("total_required"),
        accrual_method=_first(hours.get("accrual_method"), UNKNOWN),
        accrual_rate_hours=hours.get("accrual_rate_hours"),
        accrual_rate_period=hours.get("accrual_rate_period"),
        prorating_rules=hours.get("prorating_rules"),
        completion_deadline_rule=deadlines.get("completion_deadline_rule"),
        completion_deadline_anchor=deadlines.get("completion_deadline_anchor"),
        late_policy_summary=deadlines.get("late_policy_summary"),
        category_requirements=_entries(payload.get("category_requirements"), CATEGORY_KEYS),
        delivery_constraints=list(delivery) if isinstance(delivery, list) else [],
        carryover_allowed=carryover.get("allowed"),
        carryover_max_hours=carryover.get("max_hours"),
        carryover_notes=carryover.get("notes"),
        initial_license_rules=special.get("initial_license_rules"),
        inactive_status_rules=special.get("inactive_status_rules"),
        reactivation_reinstatement_rules=special.get("reactivation_reinstatement_rules"),
        audit_policy_summary=audit.get("audit_policy_summary"),
        record_retention_years=audit.get("record_retention_years"),
        other_requirements=_entries(payload.get("other_requirements"), OTHER_REQUIREMENT_KEYS),
        plain_english_summary=payload.get("plain_english_summary"),
    )
