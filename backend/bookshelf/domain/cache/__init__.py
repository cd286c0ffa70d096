"""
Cache Domain Module

Key derivation, the cache repository port and the invalidation policy for
the read-through cache.
"""
