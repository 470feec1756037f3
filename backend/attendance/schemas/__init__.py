"""API Schemas — Pydantic models for request validation and response shaping.

Invariants:
    - Validation happens here, before a request reaches a service
    - Response models carry the stable result codes verbatim
"""
