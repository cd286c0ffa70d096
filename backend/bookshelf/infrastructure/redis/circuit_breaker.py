"""
Redis Circuit Breaker Implementation

Implements circuit breaker pattern for Redis operations to prevent cascading
failures. Every call is also bounded by an operation timeout so that a hung
cache fails the request instead of blocking it.
"""

import time
import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar
from dataclasses import dataclass

import structlog

from .exceptions import CacheCircuitBreakerOpenException

logger = structlog.get_logger()

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    # Failure threshold - number of failures before opening
    failure_threshold: int = 5

    # Recovery timeout - seconds to wait before trying again
    recovery_timeout: float = 60.0

    # Success threshold - number of successes needed to close circuit
    success_threshold: int = 3

    # Timeout for individual operations
    operation_timeout: float = 5.0

    # Monitor these exception types as failures
    failure_exceptions: tuple = (
        ConnectionError,
        TimeoutError,
        OSError,
    )


@dataclass
class CircuitBreakerMetrics:
    """Metrics for circuit breaker monitoring."""

    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    timeout_calls: int = 0
    circuit_opens: int = 0
    last_failure_time: Optional[float] = None
    last_success_time: Optional[float] = None


class RedisCircuitBreaker:
    """
    Circuit breaker for Redis operations.

    Stops calling Redis once the failure threshold is reached and lets a
    limited number of probe calls through after the recovery timeout.
    """

    def __init__(self, config: CircuitBreakerConfig):
        self.config = config
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[float] = None
        self.last_state_change_time = time.time()
        self.metrics = CircuitBreakerMetrics()
        self._lock = asyncio.Lock()

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Execute a coroutine function with circuit breaker protection.

        Raises:
            CacheCircuitBreakerOpenException: If circuit is open
            asyncio.TimeoutError: If the call exceeds ``operation_timeout``
            Exception: Original exception from function call
        """
        async with self._lock:
            if self.state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitState.HALF_OPEN
                    self.last_state_change_time = time.time()
                    logger.info(
                        "Circuit breaker transitioning to HALF_OPEN",
                        failure_count=self.failure_count,
                    )
                else:
                    self.metrics.total_calls += 1
                    raise CacheCircuitBreakerOpenException()

        self.metrics.total_calls += 1
        start_time = time.time()

        try:
            result = await asyncio.wait_for(
                func(*args, **kwargs), timeout=self.config.operation_timeout
            )
        except asyncio.TimeoutError:
            self.metrics.timeout_calls += 1
            await self._record_failure("timeout")
            logger.warning(
                "Circuit breaker: operation timed out",
                execution_time=time.time() - start_time,
                timeout=self.config.operation_timeout,
                state=self.state.value,
            )
            raise
        except Exception as e:
            if not isinstance(e, self.config.failure_exceptions):
                # Non-failure exceptions don't affect circuit state
                raise

            await self._record_failure(type(e).__name__)
            logger.warning(
                "Circuit breaker: operation failed",
                exception_type=type(e).__name__,
                failure_count=self.failure_count,
                state=self.state.value,
            )
            raise

        await self._record_success()
        return result

    async def _record_success(self) -> None:
        """Record successful operation."""
        async with self._lock:
            self.metrics.successful_calls += 1
            self.metrics.last_success_time = time.time()

            if self.state == CircuitState.HALF_OPEN:
                self.success_count += 1
                if self.success_count >= self.config.success_threshold:
                    self.state = CircuitState.CLOSED
                    self.failure_count = 0
                    self.success_count = 0
                    self.last_state_change_time = time.time()
                    logger.info("Circuit breaker: circuit closed after recovery")
            elif self.state == CircuitState.CLOSED and self.failure_count > 0:
                self.failure_count -= 1

    async def _record_failure(self, failure_type: str) -> None:
        """Record failed operation."""
        async with self._lock:
            self.metrics.failed_calls += 1
            self.metrics.last_failure_time = time.time()
            self.last_failure_time = time.time()

            if self.state == CircuitState.HALF_OPEN:
                # Immediate opening on failure in half-open state
                self.state = CircuitState.OPEN
                self.success_count = 0
                self.last_state_change_time = time.time()
                self.metrics.circuit_opens += 1
                logger.warning(
                    "Circuit breaker: reopened after failure in half-open state",
                    failure_type=failure_type,
                )

            elif self.state == CircuitState.CLOSED:
                self.failure_count += 1
                if self.failure_count >= self.config.failure_threshold:
                    self.state = CircuitState.OPEN
                    self.last_state_change_time = time.time()
                    self.metrics.circuit_opens += 1
                    logger.warning(
                        "Circuit breaker: circuit opened due to failure threshold",
                        failure_count=self.failure_count,
                        threshold=self.config.failure_threshold,
                        failure_type=failure_type,
                    )

    def _should_attempt_reset(self) -> bool:
        """Check if enough time has passed to attempt circuit reset."""
        if self.last_failure_time is None:
            return True
        return time.time() - self.last_failure_time >= self.config.recovery_timeout

    def get_status(self) -> dict:
        """Get current circuit breaker status for monitoring."""
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "last_failure_time": self.last_failure_time,
            "metrics": {
                "total_calls": self.metrics.total_calls,
                "successful_calls": self.metrics.successful_calls,
                "failed_calls": self.metrics.failed_calls,
                "timeout_calls": self.metrics.timeout_calls,
                "circuit_opens": self.metrics.circuit_opens,
            },
        }

    async def reset(self) -> None:
        """Manually reset circuit breaker to closed state."""
        async with self._lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.success_count = 0
            self.last_failure_time = None
            self.last_state_change_time = time.time()

            logger.info("Circuit breaker manually reset to CLOSED state")
