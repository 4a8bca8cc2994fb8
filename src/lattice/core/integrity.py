# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Full-graph integrity scan and the narrow auto-fix for abandoned drafts.

The scan is independent of any single operation and defends against
hand-edited files: it re-checks every edge, every tag and every node's
reduction, then runs a global Kahn-style cycle check.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Container, Mapping
from datetime import UTC, datetime

from .constants import STALE_TENTATIVE_DAYS, Status
from .models import IntegrityReport, IssueType, Node, ValidationIssue
from .store import EntityStore

logger = logging.getLogger(__name__)


def find_cycle_members(nodes: Mapping[str, Node]) -> list[str]:
    """Slugs left with nonzero in-degree after Kahn's algorithm drains.

    Edges to absent nodes are ignored.
    """
    in_degree = {slug: 0 for slug in nodes}
    for node in nodes.values():
        for target in node.reduces_to:
            if target in in_degree:
                in_degree[target] += 1

    queue = deque(slug for slug, degree in in_degree.items() if degree == 0)
    processed = 0
    while queue:
        current = queue.popleft()
        processed += 1
        for target in nodes[current].reduces_to:
            if target in in_degree:
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

    if processed == len(nodes):
        return []
    return [slug for slug, degree in in_degree.items() if degree > 0]


def is_stale(node: Node, now: datetime, stale_days: int = STALE_TENTATIVE_DAYS) -> bool:
    """Tentative, non-bedrock and older than the threshold by ``created``."""
    if node.is_bedrock or node.status != Status.TENTATIVE:
        return False
    age = node.age_days(now)
    return age is not None and age > stale_days


def scan_graph(
    nodes: Mapping[str, Node],
    vocabulary: Container[str],
    now: datetime | None = None,
    stale_days: int = STALE_TENTATIVE_DAYS,
) -> IntegrityReport:
    """Audit every node and return all issues found."""
    now = now or datetime.now(UTC)
    report = IntegrityReport(node_count=len(nodes))
    issues = report.issues

    for slug, node in nodes.items():
        for target in node.reduces_to:
            target_node = nodes.get(target)
            if target_node is None:
                issues.append(
                    ValidationIssue(
                        IssueType.BROKEN_LINK,
                        slug,
                        f"Broken link: reduces_to target '{target}' does not exist",
                        target,
                    )
                )
            elif node.rank <= target_node.rank:
                issues.append(
                    ValidationIssue(
                        IssueType.LEVEL_MISMATCH,
                        slug,
                        f"Level mismatch: {node.level} reduces to {target_node.level} ({target})",
                        target,
                    )
                )

        if not node.is_bedrock and not node.reduces_to:
            issues.append(
                ValidationIssue(
                    IssueType.MISSING_REDUCTION,
                    slug,
                    f"Non-bedrock node (level: {node.level}) has no reduces_to links",
                )
            )

        for tag in node.tags:
            if tag not in vocabulary:
                issues.append(ValidationIssue(IssueType.ROGUE_TAG, slug, f"Rogue tag '{tag}' not in tags.json", tag))

        if is_stale(node, now, stale_days):
            days = int(node.age_days(now) or 0)
            issues.append(
                ValidationIssue(
                    IssueType.STALE_TENTATIVE,
                    slug,
                    f"Tentative for {days} days (>{stale_days} day threshold)",
                )
            )

    for slug in find_cycle_members(nodes):
        issues.append(ValidationIssue(IssueType.CYCLE, slug, "Node is part of a cycle in the reduction graph"))

    logger.debug(f"Integrity scan: {report}")
    return report


def find_abandoned_drafts(
    nodes: Mapping[str, Node],
    now: datetime | None = None,
    stale_days: int = STALE_TENTATIVE_DAYS,
) -> list[Node]:
    """Stale Tentative nodes with no reduces_to edges at all.

    Nodes with partial chains are never considered abandoned.
    """
    now = now or datetime.now(UTC)
    return [node for node in nodes.values() if not node.reduces_to and is_stale(node, now, stale_days)]


def auto_fix(
    store: EntityStore,
    vocabulary: Container[str],
    dry_run: bool = False,
    now: datetime | None = None,
    stale_days: int = STALE_TENTATIVE_DAYS,
) -> IntegrityReport:
    """Delete abandoned drafts, then re-scan.

    In dry-run mode the same deletion set is reported and nothing is
    deleted; the report then describes the graph as it currently is.
    """
    now = now or datetime.now(UTC)
    drafts = find_abandoned_drafts(store.nodes, now, stale_days)

    if not dry_run:
        for node in drafts:
            store.delete(node)
            logger.info(f"Auto-fix deleted abandoned draft {node.slug}")

    report = scan_graph(store.nodes, vocabulary, now, stale_days)
    report.fixed = [node.slug for node in drafts]
    report.dry_run = dry_run
    return report


def new_structural_issues(before: IntegrityReport, after: IntegrityReport) -> list[ValidationIssue]:
    """Structural issues present in ``after`` that ``before`` did not have."""
    existing = {issue.key() for issue in before.structural_issues}
    return [issue for issue in after.structural_issues if issue.key() not in existing]
