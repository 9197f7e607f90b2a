"""
CPE Regulatory Services
=======================

Services:
- cpe_extraction: LLM-based extraction of CPA continuing-education
  requirements from state statute/rule text
"""

__all__ = [
    "cpe_extraction",
]
