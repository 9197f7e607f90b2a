"""
Test Configuration
==================

Pytest fixtures and test doubles for the CPE extraction tests.
"""

import copy
import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment before settings are loaded
os.environ["ENVIRONMENT"] = "testing"
os.environ["OPENAI_API_KEY"] = ""

from shared.config import ExtractionSettings
from shared.llm import LLMMessage, LLMProvider, LLMResponse, LLMUsage


COLORADO_TEXT = (
    "CPAs must complete 80 hours every two years ending Dec 31 of odd years. "
    "Licensees accrue 10 hours for every full calendar quarter the certificate is active. "
    "At least 4 hours must be in ethics."
)


# ============================================================================
# Test doubles
# ============================================================================


class FakeProvider(LLMProvider):
    """LLM provider returning canned content, or raising a canned error."""

    def __init__(
        self,
        content: str = "",
        error: Exception | None = None,
        model: str = "gpt-4.1-mini",
        schema_support: bool = True,
    ) -> None:
        self.content = content
        self.error = error
        self._model = model
        self._schema_support = schema_support
        self.calls: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return self._model

    @property
    def supports_response_schema(self) -> bool:
        return self._schema_support

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        self.calls.append(
            {
                "messages": messages,
                "temperature": temperature,
                "response_schema": response_schema,
            }
        )
        if self.error is not None:
            raise self.error
        return LLMResponse(
            content=self.content,
            model=self._model,
            provider=self.name,
            usage=LLMUsage(prompt_tokens=100, completion_tokens=50, total_tokens=150),
            finish_reason="stop",
        )


class _Cursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, key: str, direction: int) -> "_Cursor":
        self._docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    def skip(self, n: int) -> "_Cursor":
        self._docs = self._docs[n:]
        return self

    def limit(self, n: int) -> "_Cursor":
        self._docs = self._docs[:n]
        return self

    def __aiter__(self) -> "_Cursor":
        self._iter = iter(self._docs)
        return self

    async def __anext__(self) -> dict[str, Any]:
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration from None


class InMemoryCollection:
    """Minimal async stand-in for a Motor collection."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.writes = 0

    @staticmethod
    def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
        return all(doc.get(k) == v for k, v in query.items())

    async def find_one_and_replace(
        self,
        query: dict[str, Any],
        replacement: dict[str, Any],
        upsert: bool = False,
        return_document: Any = None,
    ) -> dict[str, Any] | None:
        key = query["_id"]
        if key not in self.docs and not upsert:
            return None
        self.writes += 1
        self.docs[key] = copy.deepcopy({**replacement, "_id": key})
        return copy.deepcopy(self.docs[key])

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self.docs.values():
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def count_documents(self, query: dict[str, Any]) -> int:
        return sum(1 for doc in self.docs.values() if self._matches(doc, query))

    def find(self, query: dict[str, Any]) -> _Cursor:
        return _Cursor([copy.deepcopy(d) for d in self.docs.values() if self._matches(d, query)])


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def extraction_config() -> ExtractionSettings:
    """Default extraction configuration."""
    return ExtractionSettings()


@pytest.fixture
def colorado_payload() -> dict[str, Any]:
    """A fully-typed, high-confidence model response for Colorado."""
    return {
        "state_code": "CO",
        "state_name": "Colorado",
        "reporting_period": {
            "type": "fixed_multi_year_window",
            "length_months": 24,
            "start_rule": "January 1 of an even-numbered year",
            "end_rule": "December 31 of an odd-numbered year",
        },
        "hours": {
            "total_required": 80,
            "accrual_method": "per_quarter_active",
            "accrual_rate_hours": 10,
            "accrual_rate_period": "calendar_quarter",
            "prorating_rules": "Accrues 10 hours per full active calendar quarter.",
        },
        "deadlines": {
            "completion_deadline_rule": "December 31 of odd-numbered years",
            "completion_deadline_anchor": "end_of_reporting_period",
            "late_policy_summary": None,
        },
        "category_requirements": [
            {"category": "ethics", "hours": 4, "notes": "Four hours ethics.", "max_percent_allowed": None},
        ],
        "delivery_constraints": [],
        "carryover": {"allowed": False, "max_hours": None, "notes": None},
        "special": {
            "initial_license_rules": None,
            "inactive_status_rules": None,
            "reactivation_reinstatement_rules": None,
        },
        "audit_and_records": {
            "audit_policy_summary": "Documentation retained 5 years.",
            "record_retention_years": 5,
        },
        "other_requirements": [
            {"title": "Proration", "details": "Partial periods prorate by quarter.", "citation": None},
        ],
        "plain_english_summary": "80 hours per two-year period ending Dec 31 of odd years.",
        "extraction_confidence": 0.92,
        "needs_human_review": False,
    }


@pytest.fixture
def colorado_body() -> dict[str, Any]:
    """Extraction request body for Colorado."""
    return {
        "state_code": "CO",
        "state_name": "Colorado",
        "source_text": COLORADO_TEXT,
        "source_title": "Colorado CPE Rules",
        "source_url": "https://example.gov/co/cpe",
        "effective_date": "2025-01-01",
    }


@pytest.fixture
def collection() -> InMemoryCollection:
    """Empty in-memory requirements collection."""
    return InMemoryCollection()


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provider whose `content` tests can set before calling the API."""
    return FakeProvider()


@pytest_asyncio.fixture
async def api_client(
    collection: InMemoryCollection,
    fake_provider: FakeProvider,
    extraction_config: ExtractionSettings,
) -> AsyncGenerator[AsyncClient, None]:
    """Test client for the CPE extraction service with store and model faked."""
    from services.cpe_extraction.extraction import ExtractionPipeline, ModelInvoker
    from services.cpe_extraction.main import app
    from services.cpe_extraction.repository import (
        RequirementRepository,
        get_requirement_repository,
    )
    from services.cpe_extraction.routes.extraction import get_extraction_pipeline

    repository = RequirementRepository(collection)  # type: ignore[arg-type]

    def override_repository() -> RequirementRepository:
        return repository

    def override_pipeline() -> ExtractionPipeline:
        return ExtractionPipeline(
            invoker=ModelInvoker(extraction_config, provider_factory=lambda model: fake_provider),
            repository=repository,
            config=extraction_config,
        )

    app.dependency_overrides[get_requirement_repository] = override_repository
    app.dependency_overrides[get_extraction_pipeline] = override_pipeline

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
