"""Global test fixtures for the lattice test suite."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from lattice.core.config import clear_config_cache
from lattice.core.constants import Level, Status, is_bedrock
from lattice.core.models import Node
from lattice.core.store import EntityStore
from lattice.core.tags import TagVocabulary
from lattice.core.vault import init_vault

# Fixed "current time" used by every time-sensitive test
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all LATTICE_ environment variables."""
    for key in list(os.environ.keys()):
        if key.startswith("LATTICE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_config():
    """Reset the settings singletons before and after each test."""
    from lattice.cli.config import reset_cli_config

    clear_config_cache()
    reset_cli_config()
    yield
    clear_config_cache()
    reset_cli_config()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo whatever configure_logging did to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


# ============================================================================
# In-memory graphs
# ============================================================================


@pytest.fixture
def make_node() -> Callable[..., Node]:
    """Factory for detached Node objects with short, readable slugs."""

    def _make(
        slug: str,
        level: Level | str = Level.PRINCIPLE,
        status: Status | None = None,
        reduces_to: Iterable[str] = (),
        tags: Iterable[str] = (),
        created: datetime | None = None,
        title: str | None = None,
    ) -> Node:
        level = Level(level)
        if status is None:
            status = Status.VALIDATED if is_bedrock(level) else Status.TENTATIVE
        return Node(
            slug=slug,
            title=title or slug.replace("-", " ").title(),
            level=level,
            status=status,
            reduces_to=list(reduces_to),
            tags=list(tags),
            proposition=f"Proposition of {slug}",
            created=created or NOW - timedelta(days=1),
        )

    return _make


@pytest.fixture
def graph() -> Callable[..., dict[str, Node]]:
    """Build a slug -> Node mapping from nodes made by ``make_node``."""

    def _graph(*nodes: Node) -> dict[str, Node]:
        return {node.slug: node for node in nodes}

    return _graph


# ============================================================================
# On-disk vaults
# ============================================================================


@pytest.fixture
def vault(tmp_path) -> Path:
    """An initialized, empty vault."""
    path = tmp_path / "vault"
    init_vault(path)
    return path


@pytest.fixture
def store(vault) -> EntityStore:
    return EntityStore.open(vault)


@pytest.fixture
def vocabulary(vault) -> TagVocabulary:
    return TagVocabulary.load(vault)


@pytest.fixture
def add_node(store) -> Callable[..., Node]:
    """Write a node straight through the store, bypassing the rule checks.

    Nodes get distinct ``created`` timestamps one minute apart so their
    slugs never collide and their age order matches creation order.
    """
    counter = {"n": 0}

    def _add(
        title: str,
        level: Level | str = Level.PRINCIPLE,
        status: Status | None = None,
        reduces_to: Iterable[str] = (),
        tags: Iterable[str] = (),
        created: datetime | None = None,
        proposition: str | None = None,
    ) -> Node:
        counter["n"] += 1
        level = Level(level)
        if status is None:
            status = Status.VALIDATED if is_bedrock(level) else Status.TENTATIVE
        node = Node(
            slug="",
            title=title,
            level=level,
            status=status,
            reduces_to=list(reduces_to),
            tags=list(tags),
            proposition=proposition or f"{title} is true.",
            created=created or NOW - timedelta(days=1, minutes=60 - counter["n"]),
        )
        store.create(node)
        return node

    return _add
