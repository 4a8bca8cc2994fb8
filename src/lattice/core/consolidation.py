# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Consolidation of near-duplicate nodes: grouping, merge and undo.

Nothing here is ever deleted. Merged members move to ``99-Trash/`` stamped
with a back-reference to the canonical node; an undone canonical node moves
to ``99-Trash/Undone-Merges/``.

Merge and undo stage their whole plan and validate the resulting in-memory
graph before writing. The writes themselves are sequential file moves and
rewrites with no journal: an interruption mid-commit leaves the vault
partially consolidated (the mutation log records every step taken).
"""

from __future__ import annotations

import logging
import secrets
import subprocess
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from .config import get_config
from .constants import STATUS_ALIASES, Level, Status, rank_of
from .exceptions import (
    AlreadyGroupedError,
    AlreadyMergedError,
    DuplicateSlugError,
    GraphIntegrityError,
    LevelMismatchError,
    NotAMergeError,
    NotFoundError,
    ValidationException,
)
from .frontmatter import filename_to_slug, generate_filename
from .integrity import new_structural_issues, scan_graph
from .models import GroupResult, IntegrityReport, MergedFromEntry, MergeResult, Node, UndoResult
from .requests import MergeRequest
from .store import EntityStore
from .tags import TagVocabulary

logger = logging.getLogger(__name__)


def generate_group_id(now: datetime | None = None) -> str:
    """Group id in the form ``DG-YYYYMMDDHHMM-XXX``."""
    now = now or datetime.now(UTC)
    return f"DG-{now.strftime('%Y%m%d%H%M')}-{secrets.randbelow(1000):03d}"


def _created_key(node: Node) -> datetime:
    return node.created or datetime.min.replace(tzinfo=UTC)


# =============================================================================
# Groups
# =============================================================================


def group_members(nodes: Iterable[Node], group_id: str) -> list[Node]:
    return [node for node in nodes if node.deduplication_group == group_id]


def create_group(
    store: EntityStore,
    slugs: list[str],
    dry_run: bool = False,
    now: datetime | None = None,
) -> GroupResult:
    """Tag two or more same-rank, ungrouped nodes with a new group id."""
    slugs = list(dict.fromkeys(slugs))
    if len(slugs) < 2:
        raise ValidationException("A deduplication group needs at least two nodes", field="node")

    members = [store.get(slug) for slug in slugs]
    first = members[0]
    for node in members:
        if node.rank != first.rank:
            raise LevelMismatchError(first.level, node.level, first.slug, node.slug)
        if node.deduplication_group:
            raise AlreadyGroupedError(node.slug, node.deduplication_group)

    group_id = generate_group_id(now)
    if not dry_run:
        for node in members:
            node.deduplication_group = group_id
            store.save(node, [f"deduplication_group: {group_id}"])
        logger.info(f"Created deduplication group {group_id} with {len(members)} nodes")
    return GroupResult(group_id=group_id, members=[node.slug for node in members])


def remove_group(store: EntityStore, group_id: str, dry_run: bool = False) -> GroupResult:
    """Clear a group id from its members. An unknown group is not an error."""
    members = group_members(store, group_id)
    if not dry_run:
        for node in members:
            node.deduplication_group = None
            store.save(node, ["deduplication_group: (removed)"])
        if members:
            logger.info(f"Removed deduplication group {group_id}")
    return GroupResult(group_id=group_id, members=[node.slug for node in members])


def show_group(store: EntityStore, group_id: str) -> list[Node]:
    """Members of a group, oldest first."""
    members = group_members(store, group_id)
    if not members:
        raise NotFoundError("Group", group_id)
    return sorted(members, key=_created_key)


def find_candidates(
    nodes: Iterable[Node],
    level: Level,
    after: datetime | None = None,
    max_candidates: int = 100,
) -> list[Node]:
    """Same-level nodes newest first, for external duplicate review."""
    results = [
        node
        for node in nodes
        if node.level == level and (after is None or (node.created is not None and node.created > after))
    ]
    results.sort(key=_created_key, reverse=True)
    return results[:max_candidates]


# =============================================================================
# Merge
# =============================================================================


def _rewrite_refs(
    nodes: Mapping[str, Node],
    old_slugs: set[str],
    new_slug: str,
    skip: set[str],
) -> dict[str, list[str]]:
    """New ``reduces_to`` for every node pointing at one of ``old_slugs``."""
    plan: dict[str, list[str]] = {}
    for slug, node in nodes.items():
        if slug in skip or not old_slugs.intersection(node.reduces_to):
            continue
        rewritten = [new_slug if ref in old_slugs else ref for ref in node.reduces_to]
        plan[slug] = list(dict.fromkeys(rewritten))
    return plan


def _check_staged(
    store: EntityStore,
    vocabulary: TagVocabulary,
    staged: Mapping[str, Node],
    now: datetime,
    action: str,
) -> IntegrityReport:
    """Validate a staged graph against the live one; return the live report."""
    before = scan_graph(store.nodes, vocabulary, now)
    after = scan_graph(staged, vocabulary, now)
    introduced = new_structural_issues(before, after)
    if introduced:
        raise GraphIntegrityError(
            f"{action} would leave the graph invalid ({len(introduced)} new issue(s)); nothing was written",
            [issue.to_dict() for issue in introduced],
        )
    return before


def _verify_committed(
    store: EntityStore,
    vocabulary: TagVocabulary,
    before: IntegrityReport,
    now: datetime,
    action: str,
) -> None:
    after = scan_graph(store.nodes, vocabulary, now)
    introduced = new_structural_issues(before, after)
    if introduced:
        raise GraphIntegrityError(
            f"Validation failed after {action}", [issue.to_dict() for issue in introduced]
        )


def _collect_members(store: EntityStore, request: MergeRequest) -> list[Node]:
    members: list[Node] = []
    if request.group_id:
        members = group_members(store, request.group_id)
        if not members:
            raise NotFoundError("Group", request.group_id)
    for slug in request.slugs:
        node = store.get(slug)
        if node.slug not in {member.slug for member in members}:
            members.append(node)
    if not members:
        raise ValidationException("No nodes to merge: give a group id or at least one node", field="slugs")
    return members


def merge_nodes(
    store: EntityStore,
    vocabulary: TagVocabulary,
    request: MergeRequest,
    now: datetime | None = None,
) -> MergeResult:
    """Fold a group and/or explicit nodes into one new canonical node.

    The canonical node starts Tentative, inherits the first member's edges
    and the union of the members' tags. Every member is stamped and moved to
    the trash, and every edge that pointed at a member is redirected to the
    canonical node.

    Raises:
        AlreadyMergedError: A member was merged before.
        LevelMismatchError: Members differ in rank, or differ from ``level``.
        GraphIntegrityError: The merged graph would be structurally invalid.
    """
    now = now or datetime.now(UTC)
    members = _collect_members(store, request)
    first = members[0]
    for node in members:
        if node.merged_into:
            raise AlreadyMergedError(node.slug, node.merged_into)
        if node.rank != first.rank:
            raise LevelMismatchError(first.level, node.level, first.slug, node.slug)
    if rank_of(request.level) != first.rank:
        raise LevelMismatchError(request.level, first.level, None, first.slug)
    if len(members) > 10:
        logger.warning(f"Merging {len(members)} nodes. Large merges increase the risk of error")

    merged_date = now.isoformat()
    member_slugs = [node.slug for node in members]
    entries = [
        MergedFromEntry(
            id=node.slug,
            original_path=str(node.file_path),
            original_status=str(node.status),
            trashed_path="",
        )
        for node in members
    ]
    tags = list(dict.fromkeys(tag for node in members for tag in node.tags))
    canonical = Node(
        slug=filename_to_slug(generate_filename(request.title, now)),
        title=request.title,
        level=request.level,
        status=Status.VALIDATED if first.is_bedrock else Status.TENTATIVE,
        reduces_to=list(first.reduces_to),
        tags=tags,
        proposition=request.proposition,
        created=now,
        merged_from=entries,
        merged_reason=request.reason,
        merged_date=merged_date,
        merged_group_id=request.group_id,
    )
    if canonical.slug in store:
        raise DuplicateSlugError(canonical.slug)

    rewrites = _rewrite_refs(store.nodes, set(member_slugs), canonical.slug, set(member_slugs))

    staged = {slug: node for slug, node in store.nodes.items() if slug not in member_slugs}
    for slug, refs in rewrites.items():
        staged[slug] = replace(staged[slug], reduces_to=refs)
    staged[canonical.slug] = canonical
    before = _check_staged(store, vocabulary, staged, now, "Merge")

    result = MergeResult(
        canonical_slug=canonical.slug,
        canonical_path=None,
        merged=member_slugs,
        rewritten=list(rewrites),
        dry_run=request.dry_run,
    )
    if request.dry_run:
        return result

    if first.is_bedrock:
        logger.warning("Merging bedrock nodes (axiom/percept). These are foundations; proceed only if certain")

    result.canonical_path = store.create(canonical)
    logger.info(f"Created canonical node {canonical.slug}")

    for node, entry in zip(members, entries, strict=True):
        node.merged_into = canonical.slug
        node.trashed_on = merged_date
        node.original_status = str(node.status)
        node.original_path = str(node.file_path)
        node.deduplication_group = None
        store.save(node, [f"merged_into: {canonical.slug}"])
        entry.trashed_path = str(store.move(node, store.trash_dir))
        result.trashed_paths.append(entry.trashed_path)

    store.save(canonical, ["merged_from"])

    for slug, refs in rewrites.items():
        node = store.get(slug)
        node.reduces_to = refs
        store.save(node, [f"reduces_to: {', '.join(refs)}"])

    _verify_committed(store, vocabulary, before, now, "merge")

    if request.auto_commit or get_config().auto_commit:
        result.committed = git_commit(
            store.vault_path, f"Merge {len(members)} nodes into {canonical.slug}: {canonical.title}"
        )
    logger.info(f"Merged {len(members)} nodes into {canonical.slug}")
    return result


# =============================================================================
# Undo
# =============================================================================


def _restored_status(node: Node, original: str) -> Status:
    if node.is_bedrock:
        return Status.VALIDATED
    return STATUS_ALIASES.get(original.strip().lower(), node.status)


def undo_merge(
    store: EntityStore,
    vocabulary: TagVocabulary,
    slug: str,
    reason: str | None = None,
    dry_run: bool = False,
    auto_commit: bool = False,
    now: datetime | None = None,
) -> UndoResult:
    """Reverse a merge.

    The canonical node moves to ``99-Trash/Undone-Merges/``, every member is
    restored to its original path and status, and every edge that pointed at
    the canonical node is redirected to the oldest restored member.

    Raises:
        NotAMergeError: The node carries no merge metadata.
        GraphIntegrityError: The restored graph would be structurally invalid.
    """
    now = now or datetime.now(UTC)
    canonical = store.get(slug)
    if not canonical.merged_from:
        raise NotAMergeError(canonical.slug)

    # Read every trashed member up front so a missing file fails before any write
    restored: list[tuple[MergedFromEntry, Node]] = []
    for entry in canonical.merged_from:
        trashed = store.read_path(Path(entry.trashed_path))
        restored.append((entry, trashed))

    oldest = min((node for _, node in restored), key=_created_key)
    rewrites = _rewrite_refs(store.nodes, {canonical.slug}, oldest.slug, {canonical.slug})

    staged = {s: node for s, node in store.nodes.items() if s != canonical.slug}
    for entry, node in restored:
        staged[node.slug] = replace(node, status=_restored_status(node, entry.original_status), merged_into=None)
    for s, refs in rewrites.items():
        staged[s] = replace(staged[s], reduces_to=refs)
    before = _check_staged(store, vocabulary, staged, now, "Undo")

    result = UndoResult(
        canonical_slug=canonical.slug,
        restored=[node.slug for _, node in restored],
        redirect_target=oldest.slug,
        rewritten=list(rewrites),
        dry_run=dry_run,
    )
    if dry_run:
        return result

    if canonical.is_bedrock:
        logger.warning("Undoing a merge of bedrock nodes (axiom/percept). Proceed only if certain")

    canonical.undone_merge = {"reason": reason, "date": now.isoformat()}
    store.save(canonical, ["undone_merge"])
    store.move(canonical, store.undone_dir)

    for entry, _ in restored:
        node = store.restore(Path(entry.trashed_path), Path(entry.original_path))
        node.status = _restored_status(node, entry.original_status)
        node.merged_into = None
        node.trashed_on = None
        node.original_status = None
        node.original_path = None
        node.deduplication_group = None
        store.save(node, [f"status: {node.status}", "merge fields cleared"])

    for s, refs in rewrites.items():
        node = store.get(s)
        node.reduces_to = refs
        store.save(node, [f"reduces_to: {', '.join(refs)}"])

    _verify_committed(store, vocabulary, before, now, "undo")

    if auto_commit or get_config().auto_commit:
        result.committed = git_commit(store.vault_path, f"Undo merge of {canonical.slug}: {canonical.title}")
    logger.info(f"Undid merge of {canonical.slug}; references now point at {oldest.slug}")
    return result


# =============================================================================
# Git
# =============================================================================


def git_commit(vault_path: Path, message: str) -> bool:
    """Commit every change in the vault if it is a git repository.

    Returns:
        True if a commit was made. Git failures are logged, not raised: the
        vault itself is already consistent at this point.
    """
    if not (vault_path / ".git").exists():
        logger.debug(f"{vault_path} is not a git repository; skipping commit")
        return False

    try:
        for cmd in (["git", "add", "-A"], ["git", "commit", "-m", message]):
            result = subprocess.run(cmd, cwd=vault_path, capture_output=True, text=True, timeout=60)
            if result.returncode != 0:
                logger.warning(f"git {cmd[1]} failed: {result.stderr.strip()}")
                return False
    except FileNotFoundError:
        logger.warning("git executable not found; skipping commit")
        return False
    except subprocess.SubprocessError as e:
        logger.warning(f"git commit failed: {e}")
        return False
    return True
