"""Infrastructure Layer — database connectivity, transactions, and logging setup.

Invariants:
    - Infrastructure code never decides check-in or session outcomes

Design Decisions:
    - Kept apart from services/ so tests can swap the engine without touching business code
"""
