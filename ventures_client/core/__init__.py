"""Core Layer: pure client logic, no IO, no async, no HTTP.

Invariants:
    - No module in core/ imports from services/, infrastructure/, db/ or models/
    - All functions are pure and deterministic (clocks are injected)

Design Decisions:
    - Functional core separated from the imperative shell: normalizers and
      rules are tested without a transport
"""
