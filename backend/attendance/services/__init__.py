"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services own IO (database, clock, tasks); decisions are delegated to core/
    - Every multi-record write goes through TransactionRunner

Design Decisions:
    - Services are plain classes built once in api/dependencies.py (no DI container)
"""
