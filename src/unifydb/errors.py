# src/unifydb/errors.py
"""
Structured exceptions for document store operations
"""
from __future__ import annotations


class CloudDBError(Exception):
    """Base exception for all database errors"""

    pass


class NoSQLError(CloudDBError):
    """Document store operation failed"""

    pass


class ConnectionError(CloudDBError):
    """Connection to service failed or is not established"""

    pass


class ValidationError(CloudDBError):
    """Input validation failed"""

    pass


class UnifyDBError(Exception):
    """Base exception for unifydb configuration problems."""

    pass


class AdapterConfigurationError(UnifyDBError):
    """Raised when the required adapter is missing or misconfigured."""

    pass
