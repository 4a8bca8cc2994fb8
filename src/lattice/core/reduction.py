# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Reduction-link validation: existence, cycle freedom and rank ordering.

Edges point from a node to the lower-rank parents that ground it
(``reduces_to``). A node at rank R may only reduce to nodes at rank < R.
Axioms and percepts share rank 0 so neither can reduce to the other.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .constants import Level, rank_of
from .exceptions import CycleDetectedError, LevelMismatchError, TargetNotFoundError
from .models import Node


def validate_level_order(
    source_level: Level,
    target_level: Level,
    source: str | None = None,
    target: str | None = None,
) -> None:
    """Raise LevelMismatchError unless rank(source) > rank(target)."""
    if rank_of(source_level) <= rank_of(target_level):
        raise LevelMismatchError(source_level, target_level, source, target)


def would_create_cycle(source: str, target: str, nodes: Mapping[str, Node]) -> bool:
    """True if adding source -> target would close a loop.

    Walks ``reduces_to`` from the target; if the source is reachable the
    target already depends on the source.
    """
    if source == target:
        return True

    visited: set[str] = set()
    stack = [target]
    while stack:
        current = stack.pop()
        if current == source:
            return True
        if current in visited:
            continue
        visited.add(current)
        node = nodes.get(current)
        if node is None:
            continue
        stack.extend(node.reduces_to)
    return False


def validate_reduction_links(
    source_slug: str | None,
    source_level: Level,
    reduces_to: Iterable[str],
    nodes: Mapping[str, Node],
) -> None:
    """Validate every candidate edge before any of them is written.

    ``source_slug`` is None for a node that does not exist yet; nothing can
    reach such a node so only existence and rank are checked.

    Raises:
        TargetNotFoundError: A target is not in the loaded node set.
        CycleDetectedError: The target already reaches the source.
        LevelMismatchError: The edge does not strictly decrease in rank.
    """
    for target_slug in reduces_to:
        target = nodes.get(target_slug)
        if target is None:
            raise TargetNotFoundError(target_slug, source_slug)
        if source_slug is not None and would_create_cycle(source_slug, target_slug, nodes):
            raise CycleDetectedError(source_slug, target_slug)
        validate_level_order(source_level, target.level, source_slug, target_slug)


def build_incoming_links(nodes: Mapping[str, Node]) -> dict[str, list[str]]:
    """Reverse edge index over existing nodes: slug -> dependents."""
    incoming: dict[str, list[str]] = {slug: [] for slug in nodes}
    for slug, node in nodes.items():
        for target in node.reduces_to:
            if target in incoming and slug not in incoming[target]:
                incoming[target].append(slug)
    return incoming
