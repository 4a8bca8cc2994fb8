# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Entity store: one markdown file per node, one folder per level.

The whole vault is loaded into memory at the start of every invocation.
Nothing is cached between invocations and the reverse (incoming) edge index
is recomputed on demand, never persisted.

Every write goes through this module so it can be logged by the mutation
logger. Multi-file operations built on top of it (merge, undo, auto-fix) are
sequential and unjournaled.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from .constants import LEVEL_FOLDERS, LEVEL_ORDER, TRASH_FOLDER, UNDONE_MERGES_FOLDER, Level
from .exceptions import (
    AmbiguousMatchError,
    DuplicateSlugError,
    LatticeException,
    NotFoundError,
    StoreUnavailableError,
)
from .frontmatter import (
    FIELD_ORDER,
    filename_to_slug,
    generate_filename,
    node_frontmatter,
    parse_node_file,
    read_text,
    render_document,
    render_node,
    split_document,
)
from .logging import mutation_logger
from .models import Node
from .vault import require_vault

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 10


class EntityStore:
    """Slug-keyed in-memory view of a vault, plus the write primitives."""

    def __init__(self, vault_path: Path):
        self.vault_path = vault_path
        self.nodes: dict[str, Node] = {}

    @classmethod
    def open(cls, vault_path: Path) -> EntityStore:
        """Require an initialized vault and load every node in it."""
        require_vault(vault_path)
        store = cls(vault_path)
        store.load()
        return store

    # =========================================================================
    # Loading and lookup
    # =========================================================================

    def load(self) -> dict[str, Node]:
        """(Re)load all nodes from the level folders.

        Files that fail to parse are logged and skipped so the rest of the
        vault stays usable.
        """
        nodes: dict[str, Node] = {}
        for level in LEVEL_ORDER:
            folder = self.folder_for(level)
            if not folder.is_dir():
                continue
            for path in sorted(folder.glob("*.md")):
                try:
                    node = parse_node_file(path)
                except LatticeException as e:
                    logger.warning(f"Skipping malformed node '{path.name}': {e.message}")
                    continue
                if node.slug in nodes:
                    logger.warning(f"Skipping duplicate slug '{node.slug}' at {path}")
                    continue
                nodes[node.slug] = node
        self.nodes = nodes
        logger.debug(f"Loaded {len(nodes)} nodes from {self.vault_path}")
        return nodes

    def __contains__(self, slug: object) -> bool:
        return slug in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self.nodes.values()))

    def get(self, slug: str) -> Node:
        node = self.nodes.get(slug)
        if node is None:
            raise NotFoundError("Node", slug)
        return node

    def resolve(self, query: str) -> Node:
        """Find a node by exact slug or a unique partial match.

        Order: exact slug, slug without ``.md``, unique slug prefix, unique
        slug substring, unique title substring.

        Raises:
            AmbiguousMatchError: Several candidates and no unique match.
            NotFoundError: Nothing matched (exit code 3).
        """
        q = query.strip().lower()
        if q in self.nodes:
            return self.nodes[q]
        q = filename_to_slug(q)
        if q in self.nodes:
            return self.nodes[q]

        prefix = [slug for slug in self.nodes if slug.lower().startswith(q)]
        if len(prefix) == 1:
            return self.nodes[prefix[0]]

        substring = [slug for slug in self.nodes if q in slug.lower()]
        if len(substring) == 1:
            return self.nodes[substring[0]]

        titles = [slug for slug, node in self.nodes.items() if q in node.title.lower()]
        if len(titles) == 1:
            return self.nodes[titles[0]]

        candidates = list(dict.fromkeys(prefix + substring + titles))
        if candidates:
            raise AmbiguousMatchError(query, candidates[:MAX_CANDIDATES])
        raise NotFoundError("Node", query, exit_code=3)

    def incoming(self) -> dict[str, list[str]]:
        """Reverse edge index: slug -> slugs of nodes that reduce to it."""
        index: dict[str, list[str]] = {slug: [] for slug in self.nodes}
        for node in self.nodes.values():
            for target in node.reduces_to:
                if target in index and node.slug not in index[target]:
                    index[target].append(node.slug)
        return index

    def dependents_of(self, slug: str) -> list[str]:
        return self.incoming().get(slug, [])

    # =========================================================================
    # Paths
    # =========================================================================

    def folder_for(self, level: Level) -> Path:
        return self.vault_path / LEVEL_FOLDERS[level]

    @property
    def trash_dir(self) -> Path:
        return self.vault_path / TRASH_FOLDER

    @property
    def undone_dir(self) -> Path:
        return self.trash_dir / UNDONE_MERGES_FOLDER

    def read_path(self, path: Path) -> Node:
        """Parse a node file outside the live set (e.g. from the trash)."""
        return parse_node_file(path)

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, node: Node) -> Path:
        """Persist a new node, assigning its slug and path.

        The slug is derived from ``node.created`` (now if unset) and the
        title. The file is opened in exclusive-create mode so a concurrent
        writer that raced us to the same slug is detected.
        """
        if node.created is None:
            node.created = datetime.now(UTC)
        filename = generate_filename(node.title, node.created)
        slug = filename_to_slug(filename)
        if slug in self.nodes:
            raise DuplicateSlugError(slug)

        folder = self.folder_for(node.level)
        path = folder / filename
        node.slug = slug
        node.file_path = path
        content = render_node(node)
        try:
            folder.mkdir(parents=True, exist_ok=True)
            with open(path, "x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError as e:
            raise DuplicateSlugError(slug) from e
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write node file '{path}': {e}", str(path)) from e

        self.nodes[slug] = node
        mutation_logger.log_mutation("create", slug, str(path), node_frontmatter(node))
        return path

    def save(self, node: Node, changes: list[str] | None = None) -> None:
        """Write a node's frontmatter back to its file.

        The body and any frontmatter keys the engine does not manage are
        preserved; managed optional keys that are unset on the node are
        removed.
        """
        path = self._path_of(node)
        data, body = split_document(read_text(path), str(path))
        managed = node_frontmatter(node)
        for key in FIELD_ORDER:
            # An unparseable created value stays as the user wrote it
            if key != "created" or key in managed:
                data.pop(key, None)
        data = {**managed, **data}
        self._write(path, render_document(data, body))
        mutation_logger.log_mutation("update", node.slug, str(path), {"changes": changes or []})

    def delete(self, node: Node) -> Path:
        path = self._path_of(node)
        try:
            path.unlink()
        except OSError as e:
            raise StoreUnavailableError(f"Cannot delete node file '{path}': {e}", str(path)) from e
        self.nodes.pop(node.slug, None)
        mutation_logger.log_mutation("delete", node.slug, str(path))
        return path

    def move(self, node: Node, folder: Path) -> Path:
        """Move a node's file into ``folder`` and drop it from the live set."""
        source = self._path_of(node)
        destination = folder / source.name
        self._rename(source, destination)
        node.file_path = destination
        self.nodes.pop(node.slug, None)
        mutation_logger.log_mutation("move", node.slug, str(destination), {"from": str(source)})
        return destination

    def restore(self, source: Path, destination: Path) -> Node:
        """Move a file back into a level folder and add it to the live set."""
        self._rename(source, destination)
        node = parse_node_file(destination)
        self.nodes[node.slug] = node
        mutation_logger.log_mutation("restore", node.slug, str(destination), {"from": str(source)})
        return node

    def _path_of(self, node: Node) -> Path:
        if node.file_path is None:
            raise StoreUnavailableError(f"Node '{node.slug}' has no file path")
        return node.file_path

    def _write(self, path: Path, content: str) -> None:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write node file '{path}': {e}", str(path)) from e

    def _rename(self, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            source.rename(destination)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot move '{source}' to '{destination}': {e}", str(source)) from e
