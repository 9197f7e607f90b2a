"""
CPE Extraction Routes
=====================

API route handlers for the CPE Extraction Service.

Routes:
- extraction: Run the LLM extraction pipeline for a state
- requirements: Read stored requirement records
"""

from services.cpe_extraction.routes import extraction, requirements


__all__ = ["extraction", "requirements"]
