"""
Redis Infrastructure Module

Connection pooling, circuit breaker protection and the cache exception
taxonomy.
"""

from .connection_factory import RedisConnectionFactory, redis_connection_factory
from .circuit_breaker import (
    RedisCircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    CircuitBreakerMetrics,
)
from .exceptions import (
    CacheException,
    CacheConnectionException,
    CacheOperationTimeoutException,
    CacheCircuitBreakerOpenException,
    CacheSerializationException,
    CacheInvalidationException,
)

__all__ = [
    "RedisConnectionFactory",
    "redis_connection_factory",
    "RedisCircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "CircuitBreakerMetrics",
    "CacheException",
    "CacheConnectionException",
    "CacheOperationTimeoutException",
    "CacheCircuitBreakerOpenException",
    "CacheSerializationException",
    "CacheInvalidationException",
]
