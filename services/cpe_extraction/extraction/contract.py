"""
Extraction Contract
===================

The fixed instructions and strict output schema sent to the model. Field
names and nullability here are the public shape of the extracted record;
renaming or loosening them is a breaking change for record consumers.

Version: 0.1.0
"""

from dataclasses import dataclass, field
from typing import Any

from shared.llm import LLMMessage


CONTRACT_INSTRUCTIONS = """You are a CPA regulatory analyst. Interpret the pasted statute/rule text and fill the CPA CPE schema. Do NOT use keyword rules; reason like a human analyst.
- If unclear, leave fields null and set needs_human_review true.
- Capture edge cases in other_requirements.
- Respond with JSON ONLY matching this contract:
{
  "state_code": "CO",
  "state_name": "Colorado",
  "reporting_period": {
    "type": "fixed_multi_year_window",
    "length_months": 24,
    "start_rule": "January 1 of an even-numbered year",
    "end_rule": "December 31 of an odd-numbered year"
  },
  "hours": {
    "total_required": 80,
    "accrual_method": "per_quarter_active",
    "accrual_rate_hours": 10,
    "accrual_rate_period": "calendar_quarter",
    "prorating_rules": "Accrues 10 hours for every full calendar quarter the certificate is active."
  },
  "deadlines": {
    "completion_deadline_rule": "December 31 of odd-numbered years",
    "completion_deadline_anchor": "end_of_reporting_period",
    "late_policy_summary": null
  },
  "category_requirements": [
    {"category": "ethics", "hours": 4, "notes": "Four hours ethics; two may be CR&R.", "max_percent_allowed": null},
    {"category": "personal_development", "hours": null, "notes": "No more than 20% of CPE can be personal development.", "max_percent_allowed": 20}
  ],
  "delivery_constraints": [],
  "carryover": {"allowed": null, "max_hours": null, "notes": null},
  "special": {
    "initial_license_rules": null,
    "inactive_status_rules": null,
    "reactivation_reinstatement_rules": null
  },
  "audit_and_records": {
    "audit_policy_summary": "Board may audit; documentation retained minimum 5 years from end of year completed.",
    "record_retention_years": 5
  },
  "other_requirements": [],
  "plain_english_summary": "Colorado CPAs in active status accrue 10 CPE hours per full active calendar quarter during the 2-year reporting period (Jan 1 even year to Dec 31 odd year), totaling 80 hours per full period. CPE must be completed by Dec 31 of the odd year.",
  "extraction_confidence": 0.85
}
reporting_period takes exactly one of three shapes: {type}, {type, start_rule, end_rule} or {type, length_months, start_rule, end_rule}.
Rules: Never guess; keep nulls when absent. Only describe the jurisdiction the text belongs to. Capture edge cases in other_requirements. Respond with JSON only."""


def _nullable(kind: str) -> dict[str, Any]:
    return {"type": [kind, "null"]}


def _object(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": required or [],
    }


REPORTING_PERIOD_VARIANTS: list[dict[str, Any]] = [
    _object({"type": {"type": "string"}}, ["type"]),
    _object(
        {
            "type": {"type": "string"},
            "start_rule": {"type": "string"},
            "end_rule": {"type": "string"},
        },
        ["type", "start_rule", "end_rule"],
    ),
    _object(
        {
            "type": {"type": "string"},
            "length_months": {"type": "number"},
            "start_rule": {"type": "string"},
            "end_rule": {"type": "string"},
        },
        ["type", "length_months", "start_rule", "end_rule"],
    ),
]


CONTRACT_SCHEMA: dict[str, Any] = {
    "name": "cpa_cpe_contract",
    "strict": True,
    "schema": _object(
        {
            "state_code": {"type": "string", "pattern": "^[A-Z]{2}$"},
            "state_name": _nullable("string"),
            "reporting_period": {"anyOf": REPORTING_PERIOD_VARIANTS},
            "hours": _object(
                {
                    "total_required": _nullable("number"),
                    "accrual_method": {"type": "string"},
                    "accrual_rate_hours": _nullable("number"),
                    "accrual_rate_period": _nullable("string"),
                    "prorating_rules": _nullable("string"),
                },
                ["accrual_method"],
            ),
            "deadlines": _object(
                {
                    "completion_deadline_rule": _nullable("string"),
                    "completion_deadline_anchor": _nullable("string"),
                    "late_policy_summary": _nullable("string"),
                }
            ),
            "category_requirements": {
                "type": "array",
                "items": _object(
                    {
                        "category": {"type": "string"},
                        "hours": _nullable("number"),
                        "notes": _nullable("string"),
                        "max_percent_allowed": _nullable("number"),
                    },
                    ["category"],
                ),
            },
            "delivery_constraints": {"type": "array", "items": {"type": "object"}},
            "carryover": _object(
                {
                    "allowed": _nullable("boolean"),
                    "max_hours": _nullable("number"),
                    "notes": _nullable("string"),
                }
            ),
            "special": _object(
                {
                    "initial_license_rules": _nullable("string"),
                    "inactive_status_rules": _nullable("string"),
                    "reactivation_reinstatement_rules": _nullable("string"),
                }
            ),
            "audit_and_records": _object(
                {
                    "audit_policy_summary": _nullable("string"),
                    "record_retention_years": _nullable("number"),
                }
            ),
            "other_requirements": {
                "type": "array",
                "items": _object(
                    {
                        "title": _nullable("string"),
                        "details": _nullable("string"),
                        "citation": _nullable("string"),
                    }
                ),
            },
            "plain_english_summary": _nullable("string"),
            "extraction_confidence": _nullable("number"),
            "needs_human_review": _nullable("boolean"),
        },
        ["state_code", "reporting_period", "hours"],
    ),
}


@dataclass(frozen=True)
class ExtractionContract:
    """Instructions plus the strict output schema for one extraction call."""

    instructions: str
    schema: dict[str, Any] = field(hash=False)

    def messages(self, source_text: str) -> list[LLMMessage]:
        """Build the conversation for a given statute text."""
        return [
            LLMMessage(role="system", content=self.instructions),
            LLMMessage(role="user", content=source_text),
        ]


def build_contract() -> ExtractionContract:
    """Return the extraction contract."""
    return ExtractionContract(instructions=CONTRACT_INSTRUCTIONS, schema=CONTRACT_SCHEMA)
