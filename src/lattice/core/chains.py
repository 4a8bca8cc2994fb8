# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Proof-chain traversal and hollow-chain detection."""

from __future__ import annotations

from collections.abc import Mapping

from .constants import MAX_CHAIN_DEPTH, Status
from .exceptions import NotFoundError
from .models import ChainKind, ChainNode, HollowChain, Node


def build_chain(slug: str, nodes: Mapping[str, Node], max_depth: int = MAX_CHAIN_DEPTH) -> ChainNode:
    """Build the proof tree under ``slug`` by walking ``reduces_to``.

    Missing targets become ``broken`` leaves and a node already on the
    current path becomes a ``cycle`` leaf. Past ``max_depth`` the walk stops
    with a ``truncated`` leaf. Shared ancestors are repeated once per path,
    since each path is an independent proof. Bedrock nodes are always leaves.
    """
    if slug not in nodes:
        raise NotFoundError("Node", slug)

    def walk(current: str, path: frozenset[str], depth: int) -> ChainNode:
        if current in path:
            return ChainNode(slug=current, kind=ChainKind.CYCLE)
        node = nodes.get(current)
        if node is None:
            return ChainNode(slug=current, kind=ChainKind.BROKEN)
        if depth > max_depth:
            return ChainNode(slug=current, kind=ChainKind.TRUNCATED)

        tree = ChainNode(slug=node.slug, title=node.title, level=node.level, status=node.status)
        if node.is_bedrock:
            return tree
        next_path = path | {current}
        tree.children = [walk(parent, next_path, depth + 1) for parent in node.reduces_to]
        return tree

    return walk(slug, frozenset(), 0)


def chain_reaches_bedrock(slug: str, nodes: Mapping[str, Node]) -> bool:
    """True if some ancestor of ``slug`` (or ``slug`` itself) is bedrock."""
    visited: set[str] = set()
    stack = [slug]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        visited.add(current)
        node = nodes.get(current)
        if node is None:
            continue
        if node.is_bedrock:
            return True
        stack.extend(node.reduces_to)
    return False


def find_hollow_chains(nodes: Mapping[str, Node]) -> list[HollowChain]:
    """Validated non-bedrock nodes with a Tentative node anywhere below them.

    The walk covers the entire ancestor set and keeps going past Tentative
    and Validated ancestors alike.
    """
    results: list[HollowChain] = []
    for node in nodes.values():
        if node.is_bedrock or node.status != Status.VALIDATED:
            continue

        weak_links: list[str] = []
        visited: set[str] = set()
        stack = list(reversed(node.reduces_to))
        while stack:
            current = stack.pop()
            if current in visited or current == node.slug:
                continue
            visited.add(current)
            ancestor = nodes.get(current)
            if ancestor is None:
                continue
            if ancestor.status == Status.TENTATIVE:
                weak_links.append(ancestor.slug)
            stack.extend(reversed(ancestor.reduces_to))

        if weak_links:
            results.append(HollowChain(slug=node.slug, title=node.title, level=node.level, weak_links=weak_links))
    return results


def find_tentative_children(slug: str, nodes: Mapping[str, Node]) -> list[Node]:
    """Tentative nodes that reduce directly to ``slug`` (promotion hints)."""
    return [node for node in nodes.values() if node.status == Status.TENTATIVE and slug in node.reduces_to]
