"""
Application configuration and constants for the Campus Bus Tracker API Server.

This module centralizes environment-based configuration, route and bus
identifier formats, freshness policy, password hashing cost and other constants.

Configuration values can be overridden via environment variables.
"""

from os import environ


# ---------------------------------------------------------------------------
# Application metadata
# ---------------------------------------------------------------------------
API_TITLE = "Campus Bus Tracker API Server"
API_VERSION = "1.0.0"


# ---------------------------------------------------------------------------
# PostgreSQL configuration
# ---------------------------------------------------------------------------
PSQL_DB_DRIVER = environ.get("PSQL_DB_DRIVER", "postgresql")
PSQL_DB_USERNAME = environ.get("PSQL_DB_USERNAME", "postgres")
PSQL_DB_PORT = environ.get("PSQL_DB_PORT", "5432")
PSQL_DB_PASSWORD = environ.get("PSQL_DB_PASSWORD", "password")
PSQL_DB_HOST = environ.get("PSQL_DB_HOST", "localhost")
PSQL_DB_NAME = environ.get("PSQL_DB_NAME", "postgres")

# Full SQLAlchemy URL, takes precedence over the PSQL_DB_* parts when set
DB_URL = environ.get("DB_URL")


# ---------------------------------------------------------------------------
# OpenObserve configuration
# ---------------------------------------------------------------------------
OPENOBSERVE_ENABLED = environ.get("OPENOBSERVE_ENABLED", "true").lower() == "true"
OPENOBSERVE_PROTOCOL = environ.get("OPENOBSERVE_PROTOCOL", "http")
OPENOBSERVE_HOST = environ.get("OPENOBSERVE_HOST", "localhost")
OPENOBSERVE_PORT = environ.get("OPENOBSERVE_PORT", "5080")
OPENOBSERVE_USERNAME = environ.get("OPENOBSERVE_USERNAME", "admin@campusbus.com")
OPENOBSERVE_PASSWORD = environ.get("OPENOBSERVE_PASSWORD", "password")
OPENOBSERVE_ORG = environ.get("OPENOBSERVE_ORG", "campus")
OPENOBSERVE_STREAM = environ.get("OPENOBSERVE_STREAM", "campus-bus-tracker")
OPENOBSERVE_TIMEOUT = 5  # HTTP timeout (in seconds)


# ---------------------------------------------------------------------------
# Argon2 work factor
# ---------------------------------------------------------------------------
ARGON2_TIME_COST = int(environ.get("ARGON2_TIME_COST", "3"))
ARGON2_MEMORY_COST = int(environ.get("ARGON2_MEMORY_COST", "65536"))  # KiB
ARGON2_PARALLELISM = int(environ.get("ARGON2_PARALLELISM", "4"))


# ---------------------------------------------------------------------------
# Location freshness
# ---------------------------------------------------------------------------
# Maximum age of a bus location before it stops being served (in seconds)
LOCATION_FRESHNESS_WINDOW = int(environ.get("LOCATION_FRESHNESS_WINDOW", "300"))


# ---------------------------------------------------------------------------
# Route and bus identifiers
# ---------------------------------------------------------------------------
ROUTE_NAME_PREFIX = "Route "
BUS_NUMBER_PREFIX = "BUS"
DEFAULT_ROUTE_NAME = "Route Unknown"  # Placeholder when a stop cannot be resolved
DEFAULT_BUS_NUMBER = "BUS000"


# ---------------------------------------------------------------------------
# Regex constants (input validation)
# ---------------------------------------------------------------------------
REGEX_PHONE = r"[0-9]{10}"
REGEX_USN = r"[A-Za-z0-9]+"


# ---------------------------------------------------------------------------
# Account constraints
# ---------------------------------------------------------------------------
MIN_ACADEMIC_YEAR = 1
MAX_ACADEMIC_YEAR = 4
