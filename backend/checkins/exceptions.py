"""
Checkins Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for each failure kind on the
       request and persistence path.
How:   Each exception carries a client-safe message and a context dict.
       Global handlers (registered in main.py) map them to HTTP status codes.
       Context is logged server-side and never returned for store failures.

Exception Hierarchy:
    CheckinsError (base)
    ├── PayloadTooLargeError          → 413 Payload Too Large
    ├── MalformedRequestError         → 400 Bad Request
    ├── PoolError                     → 500 (empty body)
    │   ├── PoolExhaustedError        (no free connection within the timeout)
    │   └── ConnectFailedError        (could not open a connection)
    └── PersistenceError              → 500 (empty body)
        ├── ConstraintViolationError  (integrity error from the store)
        ├── ConnectivityError         (connection lost mid-query)
        └── QueryTimeoutError         (round trip exceeded the query timeout)
"""

from typing import Any, Dict, List, Optional


class CheckinsError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Human-readable description
        context:  Additional debug info (logged, not returned for 5xx)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class PayloadTooLargeError(CheckinsError):
    """
    Raised when a request body exceeds the payload ceiling.

    Checked before any parsing: on the declared Content-Length first,
    then on the bytes actually read.
    HTTP: 413 Payload Too Large
    """

    def __init__(
        self,
        limit: int,
        size: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["limit_bytes"] = limit
        if size is not None:
            ctx["size_bytes"] = size
        super().__init__(
            message=f"Request body exceeds the maximum of {limit} bytes",
            context=ctx,
        )
        self.limit = limit
        self.size = size


class MalformedRequestError(CheckinsError):
    """
    Raised when a body is not valid JSON or does not match the check-in shape.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "malformed_request",
            "message": "Request body does not match the check-in schema",
            "details": {"fields": ["user_id"]}
        }
    """

    def __init__(
        self,
        message: str = "Request body does not match the check-in schema",
        fields: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = fields
        super().__init__(message=message, context=ctx)
        self.fields = fields or []


class PoolError(CheckinsError):
    """Base for connection-pool failures. HTTP: 500 Internal Server Error."""


class PoolExhaustedError(PoolError):
    """
    Raised when no pooled connection frees up within the acquisition timeout.

    Every slot is held by an in-flight request; instead of waiting forever
    the caller gets this after `timeout` seconds.
    """

    def __init__(
        self,
        max_size: int,
        timeout: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx.update({"max_size": max_size, "timeout": timeout})
        super().__init__(
            message=f"No database connection available within {timeout}s (pool size {max_size})",
            context=ctx,
        )
        self.max_size = max_size
        self.timeout = timeout


class ConnectFailedError(PoolError):
    """Raised when the pool cannot open a connection to the store."""

    def __init__(
        self,
        message: str = "Could not connect to the database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceError(CheckinsError):
    """
    Raised when a query against the store fails.

    HTTP: 500 Internal Server Error

    The subclasses only refine the cause for logging; the HTTP contract is
    the same for all of them. Detailed error info (SQL, constraint names) is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConstraintViolationError(PersistenceError):
    """The store rejected the write (duplicate key, NOT NULL, check...)."""


class ConnectivityError(PersistenceError):
    """The connection dropped or the server went away during the query."""


class QueryTimeoutError(PersistenceError):
    """The query did not complete within the configured round-trip timeout."""

    def __init__(
        self,
        timeout: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["timeout"] = timeout
        super().__init__(
            message=f"Database query exceeded {timeout}s",
            context=ctx,
        )
        self.timeout = timeout
