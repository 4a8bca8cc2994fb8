# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Core configuration - centralized config for the lattice package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from lattice.core.config import get_config
    config = get_config()

    stale_days = config.stale_days
    log_level = config.log_level
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import MAX_CHAIN_DEPTH, STALE_TENTATIVE_DAYS


class LatticeSettings(BaseSettings):
    """Core configuration settings for the lattice engine.

    Settings can be configured via environment variables with the
    LATTICE_ prefix or a local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # VAULT SETTINGS
    # ==========================================================================

    vault_path: str = Field(
        default=".",
        description="Path to the lattice vault directory",
        validation_alias="LATTICE_VAULT",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LATTICE_LOG_LEVEL",
    )
    log_format: str = Field(
        default="text",
        description="Log format for stderr: 'text' or 'json'",
        validation_alias="LATTICE_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="LATTICE_LOG_FILE",
    )

    # ==========================================================================
    # ENGINE SETTINGS
    # ==========================================================================

    stale_days: int = Field(
        default=STALE_TENTATIVE_DAYS,
        description="Age in days after which a Tentative node is reported stale",
        validation_alias="LATTICE_STALE_DAYS",
    )
    max_chain_depth: int = Field(
        default=MAX_CHAIN_DEPTH,
        description="Absolute depth ceiling for proof-chain traversal",
        validation_alias="LATTICE_MAX_CHAIN_DEPTH",
    )
    related_max_hops: int = Field(
        default=2,
        description="Hop radius for connectivity search",
        validation_alias="LATTICE_RELATED_MAX_HOPS",
    )
    related_limit: int = Field(
        default=20,
        description="Default number of connectivity results",
        validation_alias="LATTICE_RELATED_LIMIT",
    )
    stdin_timeout: float = Field(
        default=30.0,
        description="Seconds to wait for a proposition on stdin",
        validation_alias="LATTICE_STDIN_TIMEOUT",
    )
    auto_commit: bool = Field(
        default=False,
        description="Commit consolidation results when the vault is a git repository",
        validation_alias="LATTICE_AUTO_COMMIT",
    )


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: LatticeSettings | None = None


def get_config() -> LatticeSettings:
    """Get the global configuration instance.

    Returns:
        The singleton LatticeSettings instance.
    """
    global _config
    if _config is None:
        _config = LatticeSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
