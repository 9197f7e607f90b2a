"""
CPE Extraction Models
=====================

Request, persisted-record and response models for the extraction service.

Version: 0.1.0
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from services.cpe_extraction.errors import InvalidFieldError, MissingFieldError


REQUIRED_REQUEST_FIELDS = ("state_code", "source_text")


class ExtractionRequest(BaseModel):
    """Caller input for a single-jurisdiction extraction."""

    model_config = ConfigDict(protected_namespaces=())

    state_code: str = Field(..., pattern=r"^[A-Z]{2}$", description="2-letter jurisdiction code")
    source_text: str = Field(..., min_length=1, description="Full statute/rule text")
    state_name: str | None = None
    source_title: str | None = None
    source_url: str | None = None
    effective_date: date | None = None
    model_name: str | None = Field(default=None, description="Allow-listed model override")

    @field_validator("state_code", mode="before")
    @classmethod
    def normalize_state_code(cls, v: Any) -> Any:
        """Trim and upper-case the jurisdiction code."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator(
        "state_name",
        "source_title",
        "source_url",
        "effective_date",
        "model_name",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty optional strings as absent."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_payload(cls, payload: Any) -> "ExtractionRequest":
        """
        Build a request from a raw JSON body.

        Args:
            payload: Decoded request body

        Raises:
            MissingFieldError: A required field is absent or empty
            InvalidFieldError: A field is present but malformed
        """
        if not isinstance(payload, dict):
            raise InvalidFieldError("body")

        for key in REQUIRED_REQUEST_FIELDS:
            value = payload.get(key)
            if value is None or value == "" or (isinstance(value, str) and not value.strip()):
                raise MissingFieldError(key)

        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            errors = e.errors()
            loc = errors[0].get("loc", ()) if errors else ()
            raise InvalidFieldError(str(loc[0]) if loc else "body") from e


class PersistedRequirement(BaseModel):
    """
    Flat, storage-ready CPE requirement record.

    One record per state code. Records are built from model output without
    validation (see `normalize_record`), so column values are not guaranteed
    to match their annotations when the model misbehaved; the
    `needs_human_review` flag is what marks such records.
    """

    model_config = ConfigDict(protected_namespaces=())

    state_code: str
    state_name: str | None = None
    schema_version: str
    effective_date: str | None = None
    source_title: str | None = None
    source_url: str | None = None
    source_text: str
    extracted_json: dict[str, Any] = Field(default_factory=dict)
    extracted_at: datetime
    model_name: str
    extraction_confidence: float | None = None
    needs_human_review: bool = True

    # Reporting period
    reporting_period_type: str = "other"
    reporting_period_length_months: float | None = None
    reporting_period_start_rule: str | None = None
    reporting_period_end_rule: str | None = None
    reporting_period_examples: list[Any] | None = None

    # Hours
    total_hours_required: float | None = None
    accrual_method: str = "other"
    accrual_rate_hours: float | None = None
    accrual_rate_period: str | None = None
    prorating_rules: str | None = None

    # Deadlines
    completion_deadline_rule: str | None = None
    completion_deadline_anchor: str | None = None
    late_policy_summary: str | None = None

    category_requirements: list[dict[str, Any]] = Field(default_factory=list)
    delivery_constraints: list[Any] = Field(default_factory=list)

    # Carryover
    carryover_allowed: bool | None = None
    carryover_max_hours: float | None = None
    carryover_notes: str | None = None

    # Special statuses
    initial_license_rules: str | None = None
    inactive_status_rules: str | None = None
    reactivation_reinstatement_rules: str | None = None

    # Audit and records
    audit_policy_summary: str | None = None
    record_retention_years: float | None = None

    other_requirements: list[dict[str, Any]] = Field(default_factory=list)
    plain_english_summary: str | None = None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "PersistedRequirement":
        """Rebuild a record from a stored MongoDB document."""
        fields = {k: v for k, v in doc.items() if k != "_id"}
        return cls.model_construct(**fields)

    def to_document(self) -> dict[str, Any]:
        """Convert to a MongoDB document keyed by state code."""
        doc = self.model_dump(warnings=False)
        doc["_id"] = self.state_code
        return doc

    def to_response(self) -> dict[str, Any]:
        """JSON-safe representation for API responses."""
        return self.model_dump(mode="json", warnings=False)

    def to_extracted(self) -> dict[str, Any]:
        """
        Re-nest the flat columns into the extracted-requirement shape.

        Every optional field is present, holding None when it was absent.
        """
        reporting_period: dict[str, Any] = {
            "type": self.reporting_period_type,
            "length_months": self.reporting_period_length_months,
            "start_rule": self.reporting_period_start_rule,
            "end_rule": self.reporting_period_end_rule,
        }
        if self.reporting_period_examples is not None:
            reporting_period["examples"] = self.reporting_period_examples

        return {
            "state_code": self.state_code,
            "state_name": self.state_name,
            "reporting_period": reporting_period,
            "hours": {
                "total_required": self.total_hours_required,
                "accrual_method": self.accrual_method,
                "accrual_rate_hours": self.accrual_rate_hours,
                "accrual_rate_period": self.accrual_rate_period,
                "prorating_rules": self.prorating_rules,
            },
            "deadlines": {
                "completion_deadline_rule": self.completion_deadline_rule,
                "completion_deadline_anchor": self.completion_deadline_anchor,
                "late_policy_summary": self.late_policy_summary,
            },
            "category_requirements": list(self.category_requirements),
            "delivery_constraints": list(self.delivery_constraints),
            "carryover": {
                "allowed": self.carryover_allowed,
                "max_hours": self.carryover_max_hours,
                "notes": self.carryover_notes,
            },
            "special": {
                "initial_license_rules": self.initial_license_rules,
                "inactive_status_rules": self.inactive_status_rules,
                "reactivation_reinstatement_rules": self.reactivation_reinstatement_rules,
            },
            "audit_and_records": {
                "audit_policy_summary": self.audit_policy_summary,
                "record_retention_years": self.record_retention_years,
            },
            "other_requirements": list(self.other_requirements),
            "plain_english_summary": self.plain_english_summary,
            "extraction_confidence": self.extraction_confidence,
            # The column holds the computed flag; the model's own hint lives in the payload
            "needs_human_review": self.extracted_json.get("needs_human_review"),
        }


class ExtractionResponse(BaseModel):
    """Successful extraction response body."""

    data: dict[str, Any]
    raw: dict[str, Any]
    needs_human_review: bool
    violations: list[str] = Field(default_factory=list)
