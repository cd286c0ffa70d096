"""
Bookshelf Global Constants

Centralized location for all system-wide constants used across the application.
"""

# Application Constants
APP_NAME = "Bookshelf API"
APP_VERSION = "0.1.0"

# Upper bounds for cache entry lifetimes (seconds)
MAX_LIST_TTL_SECONDS = 300
MAX_ENTITY_TTL_SECONDS = 3600

# Popular books query bounds
MAX_POPULAR_LIMIT = 100

# Page counts are stored in a signed 32-bit INTEGER column
MAX_PAGES = 2_147_483_647
