"""
Redis Infrastructure Exceptions

Cache-specific exceptions. Every one of them is an ``InternalError``: a cache
that cannot be read or invalidated must fail the request rather than serve or
leave stale data.
"""

from typing import Optional

from ...core.exceptions import InternalError


class CacheException(InternalError):
    """Base exception for cache-related errors.

    Never swallow cache exceptions - always preserve context.
    """

    default_code = "CACHE_ERROR"


class CacheConnectionException(CacheException):
    """Raised when the Redis connection fails or is lost."""

    def __init__(
        self,
        message: str = "Redis connection failed",
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_CONNECTION_ERROR", details=details
        )
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error


class CacheOperationTimeoutException(CacheException):
    """Raised when a Redis operation exceeds its time budget."""

    def __init__(
        self, operation: str, timeout_seconds: float, key: Optional[str] = None
    ):
        details = {"operation": operation, "timeout_seconds": timeout_seconds}
        if key:
            details["key"] = key

        super().__init__(
            message=f"Redis operation '{operation}' timed out after {timeout_seconds}s",
            error_code="CACHE_TIMEOUT_ERROR",
            details=details,
        )


class CacheCircuitBreakerOpenException(CacheException):
    """Raised when the Redis circuit breaker is open."""

    def __init__(
        self, message: str = "Redis circuit breaker is open - service unavailable"
    ):
        super().__init__(
            message=message,
            error_code="CACHE_CIRCUIT_BREAKER_OPEN",
            details={"service_status": "unavailable"},
        )


class CacheSerializationException(CacheException):
    """Raised when a cached payload cannot be encoded or decoded."""

    def __init__(self, key: str, original_error: Optional[Exception] = None):
        details = {"key": key}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message=f"Cache payload for '{key}' could not be (de)serialized",
            error_code="CACHE_SERIALIZATION_ERROR",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error


class CacheInvalidationException(CacheException):
    """Raised when invalidation fails after a committed store mutation."""

    def __init__(
        self,
        mutation: str,
        original_error: Optional[Exception] = None,
    ):
        details = {"mutation": mutation}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=f"Cache invalidation failed after {mutation}",
            error_code="CACHE_INVALIDATION_FAILED",
            details=details,
        )
        if original_error:
            self.__cause__ = original_error
