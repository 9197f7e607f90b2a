"""
CPE Extraction Service
======================

Turns pasted statute/rule text for one U.S. jurisdiction into a validated,
normalized record of CPA continuing professional education requirements.

Features:
- Fixed extraction contract with a strict JSON output schema
- Schema-enforced LLM invocation
- Independent shape validation of the model output
- Human-review flagging from multiple signals
- Flat, idempotent persistence keyed by state code

Port: 8001
"""

__version__ = "0.1.0"
