"""
FieldSync Ledger Store — Errors
=================================
Infrastructure failures of the shared ledger store.

These are distinct from business-rule failures (core.commands.errors):
a store error means "retry", a business error means "fix the input".
"""


class LedgerStoreError(Exception):
    """Base error for ledger store operations."""
    pass


class InvalidPath(LedgerStoreError):
    """Path is not 'collection' or 'collection/id'."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Ledger path '{path}' must be 'collection' or 'collection/id'."
        )


class StoreIOError(LedgerStoreError):
    """
    Transient infrastructure failure.

    Nothing was written. The caller may retry the same operation
    with the same inputs.
    """

    code = "STORE_IO_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


class VersionConflict(StoreIOError):
    """A conditional write found a different version than expected."""

    code = "VERSION_CONFLICT"

    def __init__(self, path: str, expected: int, actual: int):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Version conflict at '{path}': expected version {expected}, "
            f"found {actual}. The record changed concurrently; "
            f"no changes were applied."
        )
