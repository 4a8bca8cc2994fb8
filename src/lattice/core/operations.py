# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Node operations: create, update, delete and the list queries.

Every mutation is fully validated against the loaded graph before anything
is written.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from .chains import find_tentative_children
from .constants import LEVEL_ORDER, Level, Status
from .exceptions import MissingReductionError, ValidationException
from .models import CreatedNode, DeleteResult, Node, UpdateResult
from .reduction import validate_reduction_links
from .requests import NodeCreate, NodeUpdate
from .rules import check_delete, check_parents_validated, resolve_status
from .store import EntityStore
from .tags import TagVocabulary

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^(\d+)([dh])$")


# =============================================================================
# Mutations
# =============================================================================


def create_node(
    store: EntityStore,
    vocabulary: TagVocabulary,
    request: NodeCreate,
    now: datetime | None = None,
) -> CreatedNode:
    """Validate and persist a new node.

    Bedrock nodes are always stored Validated and can carry no edges.
    Non-bedrock nodes need at least one edge and start Tentative unless
    Validated is requested, in which case every direct parent must already
    be Validated.
    """
    vocabulary.validate(request.tags)

    node = Node(
        slug="",
        title=request.title,
        level=request.level,
        status=Status.TENTATIVE,
        reduces_to=list(request.reduces_to),
        tags=list(request.tags),
        proposition=request.proposition,
        created=now or datetime.now(UTC),
    )

    if node.is_bedrock:
        if request.status == Status.TENTATIVE:
            raise ValidationException(
                f"{request.level} nodes are bedrock and always Integrated/Validated",
                field="status",
                value=request.status,
            )
        # Rank 0 can never reduce to anything, so any edge is a level mismatch
        validate_reduction_links(None, node.level, node.reduces_to, store.nodes)
        node.status = Status.VALIDATED
    else:
        if not node.reduces_to:
            raise MissingReductionError(node.level)
        validate_reduction_links(None, node.level, node.reduces_to, store.nodes)
        if request.status == Status.VALIDATED:
            check_parents_validated(None, node.reduces_to, store.nodes)
            node.status = Status.VALIDATED

    path = store.create(node)
    logger.info(f"Created {node.level} node {node.slug}")
    return CreatedNode(slug=node.slug, path=path)


def update_node(
    store: EntityStore,
    vocabulary: TagVocabulary,
    slug: str,
    request: NodeUpdate,
) -> UpdateResult:
    """Apply a partial update to a node's status, tags and edges."""
    if request.is_empty:
        raise ValidationException(
            "No updates specified. Use --status, --add-tag, --remove-tag, --add-reduces-to, or --remove-reduces-to."
        )

    node = store.get(slug)
    changes: list[str] = []

    tags = list(node.tags)
    vocabulary.validate(request.add_tags, node.slug)
    tags += [tag for tag in request.add_tags if tag not in tags]
    tags = [tag for tag in tags if tag not in request.remove_tags]
    if tags != node.tags:
        changes.append(f"tags: {', '.join(tags) or '(none)'}")

    links = list(node.reduces_to)
    new_links = [link for link in request.add_links if link not in links]
    validate_reduction_links(node.slug, node.level, new_links, store.nodes)
    links += new_links
    links = [link for link in links if link not in request.remove_links]
    links_changed = links != node.reduces_to
    if links_changed:
        changes.append(f"reduces_to: {', '.join(links) or '(empty)'}")

    status = node.status
    if links_changed or request.status is not None:
        status = resolve_status(node, links, request.status, store.nodes)
    if status != node.status:
        change = f"status: {node.status} -> {status}"
        if not links and request.status is None:
            change += " (no reduces_to links remain)"
        changes.append(change)

    if not changes:
        raise ValidationException(f"Update leaves '{node.slug}' unchanged")

    promoted = status == Status.VALIDATED and node.status == Status.TENTATIVE
    node.tags = tags
    node.reduces_to = links
    node.status = status
    store.save(node, changes)
    logger.info(f"Updated {node.slug}: {'; '.join(changes)}")

    hints = [child.slug for child in find_tentative_children(node.slug, store.nodes)] if promoted else []
    return UpdateResult(slug=node.slug, changes=changes, promotion_hints=hints)


def delete_node(store: EntityStore, slug: str) -> DeleteResult:
    """Delete a node if it is Tentative or nothing reduces to it."""
    node = store.get(slug)
    check_delete(node, store.dependents_of(node.slug))
    path = store.delete(node)
    logger.info(f"Deleted {node.slug}")
    return DeleteResult(slug=node.slug, path=path)


# =============================================================================
# Queries
# =============================================================================


def _level_index(node: Node) -> int:
    return LEVEL_ORDER.index(node.level)


def list_nodes(
    nodes: Iterable[Node],
    level: Level | None = None,
    status: Status | None = None,
    tag: str | None = None,
) -> list[Node]:
    """Filter nodes, ordered by level (percepts first, applications last)."""
    results = list(nodes)
    if level is not None:
        results = [n for n in results if n.level == level]
    if status is not None:
        results = [n for n in results if n.status == status]
    if tag:
        tag = tag.strip().lower()
        results = [n for n in results if tag in n.tags]
    return sorted(results, key=_level_index)


def parse_duration(value: str) -> timedelta:
    """Parse ``7d`` or ``48h`` into a timedelta."""
    match = _DURATION_RE.match(value.strip().lower())
    if not match:
        raise ValidationException(
            f"Invalid duration '{value}'. Use e.g. 7d (days) or 48h (hours)",
            field="older_than",
            value=value,
        )
    amount, unit = int(match.group(1)), match.group(2)
    return timedelta(days=amount) if unit == "d" else timedelta(hours=amount)


def _created_key(node: Node) -> datetime:
    return node.created or datetime.min.replace(tzinfo=UTC)


def list_tentative(
    nodes: Iterable[Node],
    older_than: str | None = None,
    now: datetime | None = None,
) -> list[Node]:
    """Tentative nodes, oldest first, optionally older than a duration."""
    results = [n for n in nodes if n.status == Status.TENTATIVE]
    if older_than:
        cutoff = (now or datetime.now(UTC)) - parse_duration(older_than)
        results = [n for n in results if n.created is not None and n.created < cutoff]
    return sorted(results, key=_created_key)
