# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Connectivity search: structurally related nodes for a free-text query.

Relatedness is purely structural. A query is resolved to one or more seed
nodes, then every seed expands a bounded-radius neighbourhood both down
(``reduces_to``, toward bedrock) and up (the reverse index, toward
dependents). Every node reached is itself re-expanded in both directions.

The shape of the path that reached a node is tracked as it grows:

    seed      --down--> ancestor     seed      --up--> dependent
    ancestor  --down--> ancestor     ancestor  --up--> sibling
    dependent --up----> dependent    dependent --down--> relative
    sibling   --up----> sibling      sibling   --down--> relative

A node carries every label it was reached under. Scoring favours nodes
reachable from many seeds, then short distances, then validated and more
actionable nodes.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field

from .constants import LEVEL_BONUS, REACH_WEIGHT, VALIDATED_BONUS, Status
from .exceptions import NotFoundError
from .models import Node, RelatedNode, RelatedResult
from .reduction import build_incoming_links

logger = logging.getLogger(__name__)

SEED = "seed"
ANCESTOR = "ancestor"
DEPENDENT = "dependent"
SIBLING = "sibling"
RELATIVE = "relative"

RELATION_ORDER = (ANCESTOR, DEPENDENT, SIBLING, RELATIVE)

# (shape so far, direction) -> shape after the step
_TRANSITIONS: dict[tuple[str, str], str] = {
    (SEED, "down"): ANCESTOR,
    (SEED, "up"): DEPENDENT,
    (ANCESTOR, "down"): ANCESTOR,
    (ANCESTOR, "up"): SIBLING,
    (DEPENDENT, "up"): DEPENDENT,
    (DEPENDENT, "down"): RELATIVE,
    (SIBLING, "up"): SIBLING,
    (SIBLING, "down"): RELATIVE,
    (RELATIVE, "up"): RELATIVE,
    (RELATIVE, "down"): RELATIVE,
}


@dataclass
class _Reach:
    """What one seed's expansion learned about one node."""

    distance: int
    shapes: set[str] = field(default_factory=set)


def resolve_seeds(query: str, nodes: Mapping[str, Node]) -> tuple[list[str], str]:
    """Resolve a query to seed slugs.

    Tried in order until one yields results: exact slug or a unique slug
    substring (single seed), exact tag (every tagged node), title substring
    (every matching node).

    Returns:
        (seed slugs, how they were found: "slug", "tag" or "title")

    Raises:
        NotFoundError: Nothing matched.
    """
    q = query.strip().lower()
    if q in nodes:
        return [q], "slug"
    slug_matches = [slug for slug in nodes if q in slug.lower()]
    if len(slug_matches) == 1:
        return slug_matches, "slug"

    tagged = [slug for slug, node in nodes.items() if q in node.tags]
    if tagged:
        return tagged, "tag"

    titled = [slug for slug, node in nodes.items() if q in node.title.lower()]
    if titled:
        return titled, "title"

    raise NotFoundError("Seed", query, exit_code=3)


def _expand(
    seed: str,
    nodes: Mapping[str, Node],
    incoming: Mapping[str, list[str]],
    max_hops: int,
) -> dict[str, _Reach]:
    """Breadth-first expansion from one seed over (node, shape) states."""
    reached: dict[str, _Reach] = {}
    visited: set[tuple[str, str]] = {(seed, SEED)}
    queue: deque[tuple[str, str, int]] = deque([(seed, SEED, 0)])

    while queue:
        current, shape, distance = queue.popleft()
        if distance >= max_hops:
            continue
        steps = [("down", target) for target in nodes[current].reduces_to if target in nodes]
        steps += [("up", dependent) for dependent in incoming.get(current, [])]
        for direction, neighbour in steps:
            if neighbour == seed:
                continue
            next_shape = _TRANSITIONS[(shape, direction)]
            state = (neighbour, next_shape)
            if state in visited:
                continue
            visited.add(state)
            reach = reached.get(neighbour)
            if reach is None:
                reach = reached[neighbour] = _Reach(distance=distance + 1)
            reach.shapes.add(next_shape)
            queue.append((neighbour, next_shape, distance + 1))
    return reached


def score_node(node: Node, reach_count: int, min_distance: int) -> float:
    score = reach_count * REACH_WEIGHT + 1.0 / min_distance
    if node.status == Status.VALIDATED:
        score += VALIDATED_BONUS
    score += LEVEL_BONUS.get(node.level, 0.0)
    return score


def find_related(
    query: str,
    nodes: Mapping[str, Node],
    max_hops: int = 2,
    limit: int = 20,
) -> RelatedResult:
    """Score every node in the union of the seeds' neighbourhoods.

    Seeds themselves are reported separately, never as results. Ties keep
    the order in which nodes were first encountered.
    """
    seeds, source = resolve_seeds(query, nodes)
    incoming = build_incoming_links(nodes)
    seed_set = set(seeds)

    reach_count: dict[str, int] = {}
    min_distance: dict[str, int] = {}
    relations: dict[str, set[str]] = {}

    for seed in seeds:
        for slug, reach in _expand(seed, nodes, incoming, max_hops).items():
            if slug in seed_set:
                continue
            reach_count[slug] = reach_count.get(slug, 0) + 1
            min_distance[slug] = min(min_distance.get(slug, reach.distance), reach.distance)
            relations.setdefault(slug, set()).update(reach.shapes)

    results = []
    for slug in reach_count:
        node = nodes[slug]
        results.append(
            RelatedNode(
                slug=slug,
                title=node.title,
                level=node.level,
                status=node.status,
                score=score_node(node, reach_count[slug], min_distance[slug]),
                reach_count=reach_count[slug],
                min_distance=min_distance[slug],
                relations=[label for label in RELATION_ORDER if label in relations[slug]],
            )
        )
    results.sort(key=lambda r: r.score, reverse=True)

    logger.debug(f"Related search '{query}': {len(seeds)} seed(s) via {source}, {len(results)} result(s)")
    return RelatedResult(query=query, seeds=seeds, seed_source=source, results=results[:limit])
