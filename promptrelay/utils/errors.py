"""Custom exception classes."""

from typing import Optional

from fastapi import HTTPException, status


class RelayError(Exception):
    """Base exception for prompt relay errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(RelayError):
    """Missing secret/credential or unknown tier key."""

    pass


class DependencyError(RelayError):
    """The dynamic prompt source failed or answered non-2xx."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class CriticalDependencyFailure(RelayError):
    """Prompt acquisition failed; the run was aborted before any LLM call."""

    def __init__(self, cause: DependencyError):
        super().__init__(
            f"Prompt acquisition failed: {cause.message}",
            {"status_code": cause.status_code},
        )
        self.cause = cause


class GenerationError(RelayError):
    """Base class for failures of a single LLM invocation."""

    pass


class InvocationError(GenerationError):
    """LLM endpoint answered non-2xx (or could not be reached)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class EmptyResponseError(GenerationError):
    """LLM endpoint answered 2xx but produced no usable text."""

    def __init__(self, finish_reason: Optional[str] = None):
        reason = finish_reason or "unknown"
        super().__init__(
            f"LLM returned no content (finish_reason={reason})",
            {"finish_reason": finish_reason},
        )
        self.finish_reason = finish_reason


class ExhaustedAllStrategies(RelayError):
    """Every attempt on every configured tier failed."""

    def __init__(
        self,
        last_error: Optional[Exception],
        final_error: Optional[Exception] = None,
    ):
        parts = [f"standard attempts: {last_error}"]
        if final_error is not None:
            parts.append(f"last-resort tier: {final_error}")
        super().__init__("All update strategies failed (" + "; ".join(parts) + ")")
        self.last_error = last_error
        self.final_error = final_error

    @property
    def errors(self) -> list[Exception]:
        """Underlying failures in the order they occurred."""
        return [e for e in (self.last_error, self.final_error) if e is not None]


class CacheError(RelayError):
    """Error reading from or writing to the content cache backend."""

    pass


def http_error(
    status_code: int,
    message: str,
    headers: dict | None = None,
) -> HTTPException:
    """Create an HTTPException with the given parameters."""
    return HTTPException(
        status_code=status_code,
        detail=message,
        headers=headers,
    )


def unauthorized(message: str = "Not authenticated") -> HTTPException:
    """Create a 401 Unauthorized exception."""
    return http_error(
        status.HTTP_401_UNAUTHORIZED,
        message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden(message: str = "Not authorized") -> HTTPException:
    """Create a 403 Forbidden exception."""
    return http_error(status.HTTP_403_FORBIDDEN, message)


def internal_error(message: str = "Internal server error") -> HTTPException:
    """Create a 500 Internal Server Error exception."""
    return http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
