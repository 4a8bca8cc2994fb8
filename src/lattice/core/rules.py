# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Status transition and deletion rules.

Promotion (Tentative -> Validated) requires every direct parent to be
Validated; callers promote bottom-up. Demotion is unrestricted. Bedrock
status is derived and cannot be set.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from .constants import Status
from .exceptions import (
    DeleteBlockedError,
    MissingReductionError,
    UnvalidatedParentError,
    ValidationException,
)
from .models import Node


def check_parents_validated(slug: str | None, reduces_to: Sequence[str], nodes: Mapping[str, Node]) -> None:
    """Raise UnvalidatedParentError on the first Tentative direct parent.

    Missing parents are left to the reduction validator.
    """
    for parent_slug in reduces_to:
        parent = nodes.get(parent_slug)
        if parent is None:
            continue
        if parent.status == Status.TENTATIVE:
            raise UnvalidatedParentError(slug, parent_slug)


def check_promotion(node: Node, reduces_to: Sequence[str], nodes: Mapping[str, Node]) -> None:
    """Check a non-bedrock node may become Validated with the given edges."""
    if not reduces_to:
        raise MissingReductionError(node.level, node.slug)
    check_parents_validated(node.slug, reduces_to, nodes)


def resolve_status(
    node: Node,
    reduces_to: Sequence[str],
    requested: Status | None,
    nodes: Mapping[str, Node],
) -> Status:
    """Status a node ends up with after an update to ``reduces_to``/status.

    Raises:
        ValidationException: A status was requested for a bedrock node.
        MissingReductionError: Validated was requested with no edges.
        UnvalidatedParentError: Promotion with a Tentative direct parent.
    """
    if node.is_bedrock:
        if requested is not None:
            raise ValidationException(
                f"Cannot change status of bedrock node '{node.slug}' ({node.level}): "
                "bedrock is always Integrated/Validated",
                field="status",
                value=requested,
            )
        return Status.VALIDATED

    if not reduces_to:
        # A rule with no evidence cannot stay validated
        if requested == Status.VALIDATED:
            raise MissingReductionError(node.level, node.slug)
        return Status.TENTATIVE

    if requested == Status.VALIDATED and node.status == Status.TENTATIVE:
        check_promotion(node, reduces_to, nodes)
    return requested or node.status


def check_delete(node: Node, dependents: Sequence[str]) -> None:
    """Deletion is allowed if the node is Tentative or nothing reduces to it."""
    if node.status == Status.VALIDATED and dependents:
        raise DeleteBlockedError(node.slug, list(dependents))
