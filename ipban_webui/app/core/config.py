"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields.  Values
are read when an instance is constructed, so tests (or an embedding
process) can adjust the environment and build a fresh ``Settings``
without reloading this module.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = field(default_factory=lambda: _env("PROJECT_NAME", "IPBan Web UI"))
    api_version: str = field(default_factory=lambda: _env("API_VERSION", "1.0.0"))
    debug: bool = field(default_factory=lambda: _env("DEBUG", "false").lower() in {"1", "true", "yes"})
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))

    # Optional path of a log file.  When empty only console logging is
    # configured.
    log_file: str = field(default_factory=lambda: _env("LOG_FILE", ""))

    # Location of the IPBan XML configuration document edited by the
    # config endpoints.
    config_path: str = field(default_factory=lambda: _env("IPBAN_CONFIG_PATH", "ipban.config"))

    # Location of the IPBan SQLite database that the ban engine writes to.
    database_path: str = field(default_factory=lambda: _env("IPBAN_DATABASE_PATH", "ipban.sqlite"))

    # Base directory for the scratch space that stages configuration writes.
    # The space itself is a dedicated subdirectory of it.  When empty the
    # directory of ``config_path`` is used so that the final rename stays
    # on the same filesystem.
    scratch_dir: str = field(default_factory=lambda: _env("IPBAN_SCRATCH_DIR", ""))

    host: str = field(default_factory=lambda: _env("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(_env("PORT", "8000")))

    def resolved_scratch_dir(self) -> str:
        """Return the scratch base directory, deriving it from ``config_path`` if unset."""
        if self.scratch_dir:
            return self.scratch_dir
        return str(Path(self.config_path).resolve().parent)


# Instantiate settings once so other modules can import a default without
# repeatedly reading environment variables.  ``create_app`` accepts an
# explicit instance which takes precedence.
settings = Settings()
