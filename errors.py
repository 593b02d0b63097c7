# ─────────────────────────────────────────────────────────────────
# errors.py - Error Taxonomy
#
# Every expected failure of a request has its own exception class
# carrying the HTTP status it maps to. main.py registers a single
# handler for AgroGoError that turns any of these into
#   {"error": "<message>", ...details}
# Anything that is NOT an AgroGoError is treated as an internal
# error: logged in full, answered with a generic 500.
# ─────────────────────────────────────────────────────────────────

from typing import Any, Optional


class AgroGoError(Exception):
    """Base class for failures that are reported back to the caller."""

    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, **self.details}


class NotFound(AgroGoError):
    status_code = 404


class UnknownColumn(AgroGoError):
    status_code = 400

    def __init__(self, table: str, column: str):
        super().__init__(f"Unknown column '{column}' for table {table}")
        self.table = table
        self.column = column


class MissingPrimaryKey(AgroGoError):
    status_code = 400

    def __init__(self, table: str, primary_key: str):
        super().__init__(f"Missing primary key '{primary_key}' for table {table}")
        self.primary_key = primary_key


class NoMatch(AgroGoError):
    status_code = 404


class AmbiguousMatch(AgroGoError):
    status_code = 409


class IncompleteEntry(AgroGoError):
    status_code = 400


class InvalidValue(AgroGoError):
    status_code = 400


class InvalidLimit(AgroGoError):
    status_code = 400


class InvalidMac(AgroGoError):
    status_code = 400


class InvalidSchedule(AgroGoError):
    """A stored schedule row cannot be turned into device actions."""

    status_code = 422


class InsertFailed(AgroGoError):
    """Constraint violation at the store. The cause is logged, never returned."""

    status_code = 500

    def __init__(self, table: str):
        super().__init__(f"Failed to insert entry into {table}")
        self.table = table

    def to_payload(self) -> dict[str, Any]:
        return {"error": "Failed to insert entry."}


class Unauthorized(AgroGoError):
    status_code = 401
