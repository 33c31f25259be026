"""Pydantic Schemas: request payloads and token responses at the wire boundary.

Invariants:
    - Schemas describe the backend contract; they never perform IO
    - Outbound payloads are serialized with model_dump(exclude_none=...) per endpoint contract

Design Decisions:
    - Separate from core/normalize: schemas are wire contracts, normalizers are shape mapping
"""
