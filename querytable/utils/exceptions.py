"""
Centralized exception hierarchy for querytable.

All custom exceptions inherit from QueryTableError so callers can catch
package errors with a single except clause. The formatting functions
themselves never raise; these are used by the parser facade and the
backend client.
"""

from typing import Optional


class QueryTableError(Exception):
    """Base exception for all querytable errors."""
    pass


class ResultSyntaxError(QueryTableError):
    """Raised when a raw result string cannot be parsed."""

    def __init__(self, message: str, text: str = None):
        self.text = text
        msg = f"Result syntax error: {message}"
        if text:
            snippet = text if len(text) <= 80 else text[:80] + "..."
            msg += f"\nResult: {snippet}"
        super().__init__(msg)


class BackendError(QueryTableError):
    """Raised when the SQL QA backend returns an error response."""

    def __init__(self, status_code: Optional[int], detail: str):
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            super().__init__(f"Backend error: {detail}")
        else:
            super().__init__(f"Backend error ({status_code}): {detail}")


class ConfigError(QueryTableError):
    """Raised when an environment setting has an invalid value."""

    def __init__(self, key: str, value: str, expected: str):
        self.key = key
        self.value = value
        super().__init__(f"Invalid value '{value}' for {key}: expected {expected}")
