# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Vault bootstrap: folder scaffolding, the node template and the marker file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_TAGS,
    LEVEL_FOLDERS,
    LEVEL_ORDER,
    NODE_TEMPLATE_FILE,
    TAGS_JSON_FILE,
    TEMPLATES_FOLDER,
    VAULT_MARKER,
)
from .exceptions import StoreUnavailableError, VaultNotInitializedError

logger = logging.getLogger(__name__)

NODE_TEMPLATE = """---
title: "{{title}}"
level: principle
reduces_to: []
status: Tentative/Hypothesis
tags: []
created: "{{date}}"
---

**Proposition:** State the claim in one or two sentences.
"""


@dataclass
class InitResult:
    """What init_vault created (everything else already existed)."""

    vault_path: Path
    created: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"vault_path": str(self.vault_path), "created": list(self.created)}


def resolve_vault_path(path: str | Path | None = None) -> Path:
    """Resolve a vault path argument, falling back to LATTICE_VAULT."""
    if path is None:
        from .config import get_config

        path = get_config().vault_path
    return Path(path).expanduser().resolve()


def is_vault_initialized(vault_path: Path) -> bool:
    return (vault_path / VAULT_MARKER).exists()


def require_vault(vault_path: Path) -> None:
    """Raise VaultNotInitializedError unless the vault marker exists."""
    if not is_vault_initialized(vault_path):
        raise VaultNotInitializedError(str(vault_path))


def init_vault(vault_path: Path) -> InitResult:
    """Create the vault layout. Idempotent: existing files are left alone."""
    result = InitResult(vault_path=vault_path)
    try:
        vault_path.mkdir(parents=True, exist_ok=True)

        for level in LEVEL_ORDER:
            folder = vault_path / LEVEL_FOLDERS[level]
            if not folder.exists():
                folder.mkdir()
                result.created.append(f"{LEVEL_FOLDERS[level]}/")

        templates = vault_path / TEMPLATES_FOLDER
        templates.mkdir(exist_ok=True)
        template_path = templates / NODE_TEMPLATE_FILE
        if not template_path.exists():
            template_path.write_text(NODE_TEMPLATE, encoding="utf-8")
            result.created.append(f"{TEMPLATES_FOLDER}/{NODE_TEMPLATE_FILE}")

        tags_path = vault_path / TAGS_JSON_FILE
        if not tags_path.exists():
            tags_path.write_text(json.dumps(sorted(DEFAULT_TAGS), indent=2) + "\n", encoding="utf-8")
            result.created.append(TAGS_JSON_FILE)

        marker = vault_path / VAULT_MARKER
        if not marker.exists():
            marker.write_text("", encoding="utf-8")
            result.created.append(VAULT_MARKER)
    except OSError as e:
        raise StoreUnavailableError(f"Cannot initialize vault at '{vault_path}': {e}", str(vault_path)) from e

    if result.created:
        logger.info(f"Initialized vault at {vault_path}: created {', '.join(result.created)}")
    else:
        logger.debug(f"Vault at {vault_path} already initialized")
    return result
