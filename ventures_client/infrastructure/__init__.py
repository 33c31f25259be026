"""Infrastructure Layer: HTTP executor, token lifecycle, durable stores, logging.

Invariants:
    - Every external call (HTTP, SQL) is wrapped with error mapping to core/errors.py
    - Only token_store.py reads or writes the session storage keys

Design Decisions:
    - Resilient wrappers over raw clients: services never touch httpx or SQLAlchemy directly
"""
