# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""CLI configuration: vault location and output format.

Loads from ~/.lattice/cli.toml with environment variable and flag overrides.
Precedence: CLI flags > env vars > config file > defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_CONFIG_PATH = Path.home() / ".lattice" / "cli.toml"
_DEFAULT_VAULT = "."
_DEFAULT_OUTPUT = "text"
_OUTPUT_FORMATS = ("json", "text")


@dataclass
class CLIConfig:
    """CLI configuration loaded from file, env, and flags."""

    vault: str = _DEFAULT_VAULT
    output: str = _DEFAULT_OUTPUT

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        vault: str | None = None,
        output: str | None = None,
    ) -> CLIConfig:
        """Load config with precedence: flags > env > file > defaults."""
        config = cls()

        # 1. Load from file
        path = config_path or _DEFAULT_CONFIG_PATH
        if path.exists():
            config._load_from_file(path)

        # 2. Override from env
        if env_vault := os.environ.get("LATTICE_VAULT"):
            config.vault = env_vault
        if out := os.environ.get("LATTICE_OUTPUT"):
            if out in _OUTPUT_FORMATS:
                config.output = out

        # 3. Override from flags (highest precedence)
        if vault is not None:
            config.vault = vault
        if output is not None:
            config.output = output

        return config

    def _load_from_file(self, path: Path) -> None:
        """Parse TOML config file."""
        import tomllib

        with open(path, "rb") as f:
            data = tomllib.load(f)
        if "vault" in data:
            self.vault = str(data["vault"])
        if "output" in data and data["output"] in _OUTPUT_FORMATS:
            self.output = str(data["output"])

    @property
    def vault_path(self) -> Path:
        return Path(self.vault).expanduser().resolve()


_config: CLIConfig | None = None


def get_cli_config() -> CLIConfig:
    """Get the current CLI config singleton."""
    global _config
    if _config is None:
        _config = CLIConfig.load()
    return _config


def set_cli_config(config: CLIConfig) -> None:
    """Set the CLI config singleton (called from main after parsing args)."""
    global _config
    _config = config


def reset_cli_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
