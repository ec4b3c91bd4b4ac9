"""
FieldSync Bootstrap — System Errors
=====================================
If a ledger invariant is violated at startup,
the system must refuse to live.
"""


class SystemBootstrapError(Exception):
    """
    Raised when a critical invariant is violated during boot.

    If this exception is raised:
    - System MUST NOT start
    - No fallback
    - No warning-only mode
    - Error message must be explicit
    """

    def __init__(self, invariant: str, detail: str):
        self.invariant = invariant
        self.detail = detail
        super().__init__(
            f"FIELDSYNC BOOTSTRAP FAILURE — {invariant}: {detail}"
        )
