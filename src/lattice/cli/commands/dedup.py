# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Deduplication commands: candidates, group create/remove/show, merge, undo.

Duplicate detection is left to an external reviewer (human or LLM):
``candidates`` prints same-level nodes for review, ``group create`` records
the judgement, and ``merge`` folds a group into one canonical node.
``undo`` reverses a merge from its canonical node.
"""

from __future__ import annotations

import argparse

from ...core.consolidation import create_group, find_candidates, merge_nodes, remove_group, show_group, undo_merge
from ...core.constants import Level
from ...core.exceptions import ValidationException
from ...core.frontmatter import normalize_created
from ...core.requests import MergeRequest
from ..output import format_candidates, format_group, output_result
from ..utils import open_vault

_LEVEL_CHOICES = [str(level) for level in Level]


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the dedup command group on the CLI parser."""
    dedup_parser = subparsers.add_parser("dedup", help="Find, group, merge, and unmerge near-duplicate nodes")
    dedup_sub = dedup_parser.add_subparsers(dest="dedup_command", required=True)

    # candidates
    cand_parser = dedup_sub.add_parser("candidates", help="List same-level nodes for duplicate review")
    cand_parser.add_argument("--level", "-l", required=True, choices=_LEVEL_CHOICES, help="Level to review")
    cand_parser.add_argument("--after", help="Only nodes created after this ISO date")
    cand_parser.add_argument("--max-candidates", type=int, default=100, help="Maximum nodes to list (default: 100)")
    cand_parser.set_defaults(func=cmd_dedup_candidates)

    # group
    group_parser = dedup_sub.add_parser("group", help="Manage deduplication groups")
    group_sub = group_parser.add_subparsers(dest="group_command", required=True)

    group_create = group_sub.add_parser("create", help="Group two or more same-rank nodes")
    group_create.add_argument(
        "--node", "-n", action="append", dest="nodes", default=[], required=True, help="Member node (repeatable)"
    )
    group_create.add_argument("--dry-run", action="store_true", help="Report the group without writing")
    group_create.set_defaults(func=cmd_group_create)

    group_remove = group_sub.add_parser("remove", help="Dissolve a group")
    group_remove.add_argument("group_id", help="Group id (DG-...)")
    group_remove.add_argument("--dry-run", action="store_true", help="Report members without writing")
    group_remove.set_defaults(func=cmd_group_remove)

    group_show = group_sub.add_parser("show", help="Show a group's members for review")
    group_show.add_argument("group_id", help="Group id (DG-...)")
    group_show.set_defaults(func=cmd_group_show)

    # merge
    merge_parser = dedup_sub.add_parser("merge", help="Merge nodes into one new canonical node")
    merge_parser.add_argument("--title", required=True, help="Title of the canonical node")
    merge_parser.add_argument("--level", required=True, choices=_LEVEL_CHOICES, help="Level of the canonical node")
    merge_parser.add_argument("--proposition", "-p", required=True, help="Proposition of the canonical node")
    merge_parser.add_argument("--group", "--deduplication-group", dest="group_id", help="Group to merge")
    merge_parser.add_argument(
        "--old-node", action="append", dest="old_nodes", default=[], help="Node to merge (repeatable)"
    )
    merge_parser.add_argument("--reason", help="Why the nodes are duplicates")
    merge_parser.add_argument("--dry-run", action="store_true", help="Validate and report without writing")
    merge_parser.add_argument("--auto-commit", action="store_true", help="git commit the vault afterwards")
    merge_parser.set_defaults(func=cmd_merge)

    # undo
    undo_parser = dedup_sub.add_parser("undo", help="Reverse a merge")
    undo_parser.add_argument("node", help="Canonical node of the merge")
    undo_parser.add_argument("--reason", help="Why the merge is being undone")
    undo_parser.add_argument("--dry-run", action="store_true", help="Validate and report without writing")
    undo_parser.add_argument("--auto-commit", action="store_true", help="git commit the vault afterwards")
    undo_parser.set_defaults(func=cmd_undo)


def cmd_dedup_candidates(args: argparse.Namespace) -> int:
    """Print candidate nodes for an external duplicate judge."""
    after = None
    if args.after:
        after = normalize_created(args.after)
        if after is None:
            raise ValidationException(f"Invalid date '{args.after}'. Use ISO format, e.g. 2026-01-31", field="after")

    store, _ = open_vault()
    nodes = find_candidates(store, Level(args.level), after=after, max_candidates=args.max_candidates)
    output_result([n.to_dict() for n in nodes], format_candidates(args.level, nodes))
    return 0


def cmd_group_create(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    slugs = [store.resolve(query).slug for query in args.nodes]
    result = create_group(store, slugs, dry_run=args.dry_run)

    verb = "Would create" if args.dry_run else "Created"
    text = f"{verb} group {result.group_id} with {len(result.members)} nodes:\n" + "\n".join(
        f"  - {slug}" for slug in result.members
    )
    output_result(result.to_dict(), text)
    return 0


def cmd_group_remove(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    result = remove_group(store, args.group_id, dry_run=args.dry_run)

    if not result.members:
        text = f"Group {result.group_id} has no members; nothing to remove"
    else:
        verb = "Would remove" if args.dry_run else "Removed"
        text = f"{verb} group {result.group_id} from {len(result.members)} nodes"
    output_result(result.to_dict(), text)
    return 0


def cmd_group_show(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    members = show_group(store, args.group_id)
    output_result(
        {"group_id": args.group_id, "members": [n.to_dict() for n in members]},
        format_group(args.group_id, members),
    )
    return 0


def cmd_merge(args: argparse.Namespace) -> int:
    """Merge a group and/or explicit nodes."""
    store, vocabulary = open_vault()
    request = MergeRequest(
        title=args.title,
        level=args.level,
        proposition=args.proposition,
        group_id=args.group_id,
        slugs=[store.resolve(query).slug for query in args.old_nodes],
        reason=args.reason,
        dry_run=args.dry_run,
        auto_commit=args.auto_commit,
    )
    result = merge_nodes(store, vocabulary, request)

    if result.dry_run:
        lines = [f"Dry run: would merge {len(result.merged)} nodes into {result.canonical_slug}"]
    else:
        lines = [f"Merged {len(result.merged)} nodes into {result.canonical_slug}", f"Path: {result.canonical_path}"]
    lines.extend(f"  - {slug}" for slug in result.merged)
    if result.rewritten:
        lines.append(f"{len(result.rewritten)} node(s) re-pointed at the canonical node")
    if result.committed:
        lines.append("Committed to git")
    output_result(result.to_dict(), "\n".join(lines))
    return 0


def cmd_undo(args: argparse.Namespace) -> int:
    """Undo a merge."""
    store, vocabulary = open_vault()
    canonical = store.resolve(args.node)
    result = undo_merge(
        store,
        vocabulary,
        canonical.slug,
        reason=args.reason,
        dry_run=args.dry_run,
        auto_commit=args.auto_commit,
    )

    prefix = "Dry run: would restore" if result.dry_run else "Restored"
    lines = [f"{prefix} {len(result.restored)} nodes from {result.canonical_slug}"]
    lines.extend(f"  - {slug}" for slug in result.restored)
    if result.rewritten:
        lines.append(f"{len(result.rewritten)} node(s) re-pointed at {result.redirect_target}")
    if result.committed:
        lines.append("Committed to git")
    output_result(result.to_dict(), "\n".join(lines))
    return 0
