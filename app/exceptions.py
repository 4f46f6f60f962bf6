# app/exceptions.py
"""
Ledger exception hierarchy.

Business rejections are returned as values (see app.services.invariants.Rejection);
exceptions here are reserved for infrastructure failures the caller may retry.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""
    pass


class LedgerNotOpen(LedgerError):
    """The storage handle was used before open() or after close()."""
    pass


class LedgerUnavailable(LedgerError):
    """Transient storage failure (connection loss, lock timeout, deadlock)."""
    def __init__(self, transition: str, entity_id=None):
        self.transition = transition
        self.entity_id = entity_id
        super().__init__(f"Ledger unavailable during {transition} on {entity_id}")
