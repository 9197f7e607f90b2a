"""
CPE Regulatory Test Suite
=========================

Test organization:
- tests/unit/                      - Shared library tests (no external dependencies)
- tests/services/cpe_extraction/   - Extraction pipeline, repository and API tests

The MongoDB collection and the LLM provider are replaced by in-memory
doubles (see conftest.py), so no database or API key is needed.

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
"""
