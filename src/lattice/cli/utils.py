"""Utility functions for the lattice CLI."""

from __future__ import annotations

import logging
import sys
import threading
from datetime import UTC, datetime
from typing import TextIO

from ..core.exceptions import ValidationException
from ..core.frontmatter import clean_ref
from ..core.store import EntityStore
from ..core.tags import TagVocabulary
from .config import get_cli_config

logger = logging.getLogger(__name__)


def open_vault() -> tuple[EntityStore, TagVocabulary]:
    """Load the configured vault and its tag vocabulary."""
    vault_path = get_cli_config().vault_path
    store = EntityStore.open(vault_path)
    return store, TagVocabulary.load(vault_path)


def split_csv(value: str | None) -> list[str]:
    """Split ``a, b,c`` into ``["a", "b", "c"]``."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def clean_refs(values: list[str] | None) -> list[str]:
    return [clean_ref(value) for value in values or [] if clean_ref(value)]


def format_age(dt: datetime) -> str:
    """Format datetime as human-readable age."""
    if not dt:
        return "?"

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    now = datetime.now(UTC)
    delta = now - dt

    if delta.days > 365:
        return f"{delta.days // 365}y"
    elif delta.days > 30:
        return f"{delta.days // 30}mo"
    elif delta.days > 0:
        return f"{delta.days}d"
    elif delta.seconds > 3600:
        return f"{delta.seconds // 3600}h"
    elif delta.seconds > 60:
        return f"{delta.seconds // 60}m"
    else:
        return "now"


def read_stdin(timeout: float, stream: TextIO | None = None) -> str:
    """Read all of stdin, giving up after ``timeout`` seconds.

    The read runs in a daemon thread; on timeout the thread is abandoned.
    """
    stream = stream or sys.stdin
    if stream.isatty():
        print(
            f"Reading proposition from stdin. Pipe input or press Ctrl+D when done. Timeout: {timeout:g}s.",
            file=sys.stderr,
        )

    chunks: list[str] = []
    reader = threading.Thread(target=lambda: chunks.append(stream.read()), daemon=True)
    reader.start()
    reader.join(timeout)
    if reader.is_alive():
        raise ValidationException(
            f"Stdin read timed out after {timeout:g} seconds. Pipe input or pass --proposition text directly.",
            field="proposition",
        )
    return "".join(chunks)
