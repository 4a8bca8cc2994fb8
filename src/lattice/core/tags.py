# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Controlled tag vocabulary backed by ``tags.json``.

The vocabulary is passed into validation as a plain membership lookup
(``tag in vocabulary``) so the engine never reaches for global state.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from .constants import TAGS_JSON_FILE, Status
from .exceptions import LatticeException, RogueTagError, StoreUnavailableError, ValidationException
from .models import Node

logger = logging.getLogger(__name__)


def clean_tag(tag: str) -> str:
    return tag.strip().lower()


class TagVocabulary:
    """The master list of allowed tags."""

    def __init__(self, tags: Iterable[str] = (), path: Path | None = None):
        self.tags: set[str] = {clean_tag(t) for t in tags if clean_tag(t)}
        self.path = path

    @classmethod
    def load(cls, vault_path: Path) -> TagVocabulary:
        path = vault_path / TAGS_JSON_FILE
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StoreUnavailableError(
                f"tags.json not found at '{path}'. Is the vault initialized?", str(path)
            ) from e
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read '{path}': {e}", str(path)) from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(f"tags.json is malformed: {e}", str(path)) from e
        if not isinstance(data, list):
            raise StoreUnavailableError("tags.json is malformed: expected a JSON array of strings", str(path))
        return cls((str(t) for t in data), path=path)

    def save(self) -> None:
        if self.path is None:
            raise StoreUnavailableError("Tag vocabulary has no backing file")
        try:
            self.path.write_text(json.dumps(sorted(self.tags), indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write '{self.path}': {e}", str(self.path)) from e

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and clean_tag(tag) in self.tags

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.tags))

    def __len__(self) -> int:
        return len(self.tags)

    def validate(self, tags: Iterable[str], slug: str | None = None) -> None:
        """Raise RogueTagError on the first tag outside the vocabulary."""
        for tag in tags:
            if tag not in self:
                raise RogueTagError(tag, slug)

    def add(self, tag: str, reason: Node) -> bool:
        """Add a tag justified by a validated node.

        Returns:
            False when the tag already existed, True when it was added.
        """
        tag = clean_tag(tag)
        if not tag:
            raise ValidationException("Tag name must not be empty", field="tag")
        if tag in self.tags:
            return False
        if reason.status != Status.VALIDATED:
            raise LatticeException(
                f"Reason node '{reason.slug}' is not Integrated/Validated (status: {reason.status})",
                {"tag": tag, "reason": reason.slug, "status": str(reason.status)},
            )
        self.tags.add(tag)
        self.save()
        logger.info(f"Added tag '{tag}' (justified by {reason.slug})")
        return True

    def remove(self, tag: str, nodes: Iterable[Node]) -> None:
        """Remove an unused tag."""
        tag = clean_tag(tag)
        if tag not in self.tags:
            raise ValidationException(f"Tag '{tag}' not found in master list", field="tag", value=tag)
        users = [node.slug for node in nodes if tag in node.tags]
        if users:
            raise LatticeException(
                f"Cannot remove tag '{tag}': used by {len(users)} node(s)",
                {"tag": tag, "used_by": users},
            )
        self.tags.discard(tag)
        self.save()
        logger.info(f"Removed tag '{tag}'")
