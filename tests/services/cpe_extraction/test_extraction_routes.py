"""
Tests for the CPE Extraction API
================================

Covers the extraction endpoint's status codes and error bodies, and the
requirement read endpoints.

Version: 0.1.0
"""

import json
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from pymongo.errors import PyMongoError

from shared.llm import LLMRequestError
from tests.conftest import FakeProvider, InMemoryCollection


EXTRACT_URL = "/api/v1/regulatory/cpa/extract"
REQUIREMENTS_URL = "/api/v1/regulatory/cpa/requirements"


# ============================================================================
# Extraction Endpoint Tests
# ============================================================================


class TestExtractEndpoint:
    """Tests for POST /extract."""

    @pytest.mark.asyncio
    async def test_successful_extraction(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
    ) -> None:
        """Test a clean extraction returns the stored record and the raw payload."""
        fake_provider.content = json.dumps(colorado_payload)

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 200
        body = response.json()
        assert body["needs_human_review"] is False
        assert body["violations"] == []
        assert body["raw"] == colorado_payload
        assert body["data"]["state_code"] == "CO"
        assert body["data"]["total_hours_required"] == 80
        assert body["data"]["effective_date"] == "2025-01-01"
        assert body["data"]["extracted_json"]["schema_version"] == "cpa_cpe_v1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["state_code", "source_text"])
    async def test_missing_required_field(
        self,
        field: str,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
    ) -> None:
        """Test a missing required field is a 400 naming the field."""
        del colorado_body[field]

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 400
        assert response.json() == {"error": f"Missing field: {field}"}
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_blank_source_text(
        self,
        api_client: AsyncClient,
        colorado_body: dict[str, Any],
    ) -> None:
        """Test whitespace-only text counts as missing."""
        colorado_body["source_text"] = "   "

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing field: source_text"}

    @pytest.mark.asyncio
    async def test_invalid_state_code(
        self,
        api_client: AsyncClient,
        colorado_body: dict[str, Any],
    ) -> None:
        """Test a malformed state code is a 400."""
        colorado_body["state_code"] = "Colorado"

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid field: state_code"}

    @pytest.mark.asyncio
    async def test_non_object_body(self, api_client: AsyncClient) -> None:
        """Test a JSON array body is rejected."""
        response = await api_client.post(EXTRACT_URL, json=["CO"])

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid field: body"}

    @pytest.mark.asyncio
    async def test_lowercase_state_code_accepted(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
        collection: InMemoryCollection,
    ) -> None:
        """Test the request state code is upper-cased."""
        fake_provider.content = json.dumps(colorado_payload)
        colorado_body["state_code"] = "co"

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 200
        assert list(collection.docs) == ["CO"]

    @pytest.mark.asyncio
    async def test_missing_credentials(
        self,
        api_client: AsyncClient,
        colorado_body: dict[str, Any],
        collection: InMemoryCollection,
        extraction_config: Any,
    ) -> None:
        """Test missing provider credentials are a 500."""
        from services.cpe_extraction.extraction import ExtractionPipeline, ModelInvoker
        from services.cpe_extraction.main import app
        from services.cpe_extraction.repository import RequirementRepository
        from services.cpe_extraction.routes.extraction import get_extraction_pipeline
        from shared.llm import LLMConfigurationError

        def factory(model: str) -> FakeProvider:
            raise LLMConfigurationError("OPENAI_API_KEY not configured")

        app.dependency_overrides[get_extraction_pipeline] = lambda: ExtractionPipeline(
            invoker=ModelInvoker(extraction_config, provider_factory=factory),
            repository=RequirementRepository(collection),  # type: ignore[arg-type]
            config=extraction_config,
        )

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 500
        assert response.json() == {"error": "OPENAI_API_KEY not configured"}
        assert collection.docs == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "message"),
        [
            (401, "Incorrect API key provided"),
            (429, "Rate limit exceeded"),
            (502, "LLM provider unreachable: Connection error."),
        ],
    )
    async def test_provider_error_passthrough(
        self,
        status_code: int,
        message: str,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        collection: InMemoryCollection,
    ) -> None:
        """Test provider failures keep their status and message."""
        fake_provider.error = LLMRequestError(message, status_code=status_code)

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == status_code
        assert response.json() == {"error": message}
        assert collection.docs == {}

    @pytest.mark.asyncio
    async def test_persistence_failure(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
        collection: InMemoryCollection,
    ) -> None:
        """Test a store failure is a 500 with a fixed message."""
        fake_provider.content = json.dumps(colorado_payload)
        collection.find_one_and_replace = AsyncMock(side_effect=PyMongoError("connection refused"))  # type: ignore[method-assign]

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save extracted data"}

    @pytest.mark.asyncio
    async def test_nan_confidence_needs_review(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
    ) -> None:
        """Test a NaN confidence is treated as unparseable output."""
        fake_provider.content = json.dumps(colorado_payload).replace("0.92", "NaN")

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 200
        body = response.json()
        assert body["needs_human_review"] is True
        assert body["violations"] == ["json_parse_error"]

    @pytest.mark.asyncio
    async def test_unencodable_record(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
        collection: InMemoryCollection,
    ) -> None:
        """Test a record the store cannot encode is a persistence failure."""
        colorado_payload["hours"]["total_required"] = 10**29
        fake_provider.content = json.dumps(colorado_payload)
        collection.find_one_and_replace = AsyncMock(  # type: ignore[method-assign]
            side_effect=OverflowError("MongoDB can only handle up to 8-byte ints")
        )

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save extracted data"}

    @pytest.mark.asyncio
    async def test_unparseable_output_is_saved_for_review(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        collection: InMemoryCollection,
    ) -> None:
        """Test garbage model output still succeeds, flagged for review."""
        fake_provider.content = '{"state_code": "CO", "hours": '

        response = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert response.status_code == 200
        body = response.json()
        assert body["needs_human_review"] is True
        assert body["violations"] == ["json_parse_error"]
        assert body["data"]["accrual_method"] == "other"
        assert collection.docs["CO"]["needs_human_review"] is True

    @pytest.mark.asyncio
    async def test_repeat_extraction_keeps_one_record(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
        collection: InMemoryCollection,
    ) -> None:
        """Test re-extracting a state replaces its record."""
        fake_provider.content = json.dumps(colorado_payload)

        first = await api_client.post(EXTRACT_URL, json=colorado_body)
        second = await api_client.post(EXTRACT_URL, json=colorado_body)

        assert first.status_code == second.status_code == 200
        assert len(collection.docs) == 1
        assert collection.writes == 2


# ============================================================================
# Requirement Read Endpoint Tests
# ============================================================================


class TestRequirementEndpoints:
    """Tests for the requirement read endpoints."""

    async def _extract(
        self,
        client: AsyncClient,
        provider: FakeProvider,
        body: dict[str, Any],
        payload: dict[str, Any],
    ) -> None:
        provider.content = json.dumps(payload)
        response = await client.post(EXTRACT_URL, json=body)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_get_by_state(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
    ) -> None:
        """Test a stored requirement can be fetched case-insensitively."""
        await self._extract(api_client, fake_provider, colorado_body, colorado_payload)

        response = await api_client.get(f"{REQUIREMENTS_URL}/co")

        assert response.status_code == 200
        assert response.json()["state_code"] == "CO"
        assert response.json()["total_hours_required"] == 80

    @pytest.mark.asyncio
    async def test_get_unknown_state(self, api_client: AsyncClient) -> None:
        """Test an unknown state is a 404."""
        response = await api_client.get(f"{REQUIREMENTS_URL}/NY")

        assert response.status_code == 404
        assert response.json() == {"error": "Requirement not found: NY"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("params", "field"),
        [({"page": 0}, "page"), ({"page_size": 500}, "page_size"), ({"needs_review": "maybe"}, "needs_review")],
    )
    async def test_invalid_query_parameter(
        self,
        params: dict[str, Any],
        field: str,
        api_client: AsyncClient,
    ) -> None:
        """Test malformed query parameters use the common error body."""
        response = await api_client.get(REQUIREMENTS_URL, params=params)

        assert response.status_code == 400
        assert response.json() == {"error": f"Invalid field: {field}"}

    @pytest.mark.asyncio
    async def test_list_with_review_filter(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
    ) -> None:
        """Test listing filters by the review flag."""
        await self._extract(api_client, fake_provider, colorado_body, colorado_payload)
        await self._extract(
            api_client,
            fake_provider,
            {**colorado_body, "state_code": "TX", "state_name": "Texas"},
            {**colorado_payload, "state_code": "TX", "extraction_confidence": 0.4},
        )

        all_items = (await api_client.get(REQUIREMENTS_URL)).json()
        flagged = (await api_client.get(REQUIREMENTS_URL, params={"needs_review": "true"})).json()

        assert all_items["total"] == 2
        assert flagged["total"] == 1
        assert flagged["items"][0]["state_code"] == "TX"

    @pytest.mark.asyncio
    async def test_list_pagination(
        self,
        api_client: AsyncClient,
        fake_provider: FakeProvider,
        colorado_body: dict[str, Any],
        colorado_payload: dict[str, Any],
    ) -> None:
        """Test page size and page count."""
        for code in ("CO", "TX", "WA"):
            await self._extract(
                api_client,
                fake_provider,
                {**colorado_body, "state_code": code},
                {**colorado_payload, "state_code": code},
            )

        response = await api_client.get(REQUIREMENTS_URL, params={"page": 2, "page_size": 2})

        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["items"]) == 1
        # Most recently extracted first
        assert body["items"][0]["state_code"] == "CO"


# ============================================================================
# Health Endpoint Tests
# ============================================================================


class TestHealthEndpoints:
    """Tests for service health endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, api_client: AsyncClient) -> None:
        response = await api_client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "CPE Requirement Extraction Service"

    @pytest.mark.asyncio
    async def test_unknown_path(self, api_client: AsyncClient) -> None:
        """Test routing errors use the common error body."""
        response = await api_client.get("/api/v1/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    @pytest.mark.asyncio
    async def test_wrong_method(self, api_client: AsyncClient) -> None:
        response = await api_client.get(EXTRACT_URL)

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}

    @pytest.mark.asyncio
    async def test_health_without_api_key(self, api_client: AsyncClient) -> None:
        """Test a missing API key degrades health."""
        from shared.database.mongodb import MongoDBClient

        with patch.object(
            MongoDBClient,
            "health_check",
            AsyncMock(return_value={"status": "healthy", "latency_ms": 1.0}),
        ):
            response = await api_client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "degraded"
        assert body["components"]["mongodb"]["status"] == "healthy"
        assert body["components"]["llm"]["status"] == "unconfigured"
