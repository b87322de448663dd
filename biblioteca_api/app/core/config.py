"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with no configuration at all, backed by a local SQLite
file.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Biblioteca API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "3000"))

    # Path to the SQLite database file.  A relative path is resolved
    # against the ``biblioteca_api`` package directory by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "biblioteca.db")

    # Borrow quotas for the roles seeded by the initial migration.  Roles
    # created later through the API carry their own quota.
    default_member_quota: int = int(os.getenv("DEFAULT_MEMBER_QUOTA", "3"))
    default_staff_quota: int = int(os.getenv("DEFAULT_STAFF_QUOTA", "10"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
