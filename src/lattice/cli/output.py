# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Output formatting for CLI commands.

Every command builds a JSON-serializable result plus an optional text
rendering; the configured output format picks which one is printed.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable
from typing import Any

from ..core.models import ChainKind, ChainNode, IntegrityReport, IssueType, Node, RelatedResult
from .config import get_cli_config
from .utils import format_age


def output_result(data: Any, text: str | None = None, output_format: str | None = None) -> None:
    """Print a result in the configured output format.

    If output is "json", pretty-print ``data``. Otherwise print ``text``,
    falling back to JSON when no text rendering was given.
    """
    fmt = output_format or get_cli_config().output

    if fmt == "json" or text is None:
        print(json.dumps(data, indent=2, default=str))
    else:
        print(text)


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


# =============================================================================
# Text renderers
# =============================================================================


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def format_nodes(nodes: Iterable[Node]) -> str:
    """Aligned table: level, title, status, tags, age, slug."""
    headers = ["Level", "Title", "Status", "Tags", "Age", "Slug"]
    rows = [
        [
            str(n.level),
            _truncate(n.title, 50),
            str(n.status),
            ",".join(n.tags),
            format_age(n.created) if n.created else "?",
            n.slug,
        ]
        for n in nodes
    ]
    if not rows:
        return "No nodes found."
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]
    lines = ["  ".join(h.ljust(widths[i]) for i, h in enumerate(headers))]
    lines.append("  ".join("─" * w for w in widths))
    for row in rows:
        lines.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
    return "\n".join(lines)


def _chain_label(tree: ChainNode) -> str:
    if tree.kind == ChainKind.BROKEN:
        return f"[BROKEN LINK: {tree.slug}]"
    if tree.kind == ChainKind.CYCLE:
        return f"[CYCLE: {tree.slug}]"
    if tree.kind == ChainKind.TRUNCATED:
        return f"[TRUNCATED: {tree.slug}]"
    marker = "" if tree.status is None or tree.status.startswith("Integrated") else " (tentative)"
    return f"{tree.level}: {tree.title}{marker}"


def format_chain(tree: ChainNode, prefix: str = "", is_root: bool = True) -> str:
    """Render a proof tree with box-drawing connectors."""
    lines = [_chain_label(tree) if is_root else f"{prefix}└─ {_chain_label(tree)}"]
    child_prefix = "" if is_root else prefix + "   "
    for child in tree.children:
        lines.append(format_chain(child, child_prefix, is_root=False))
    return "\n".join(lines)


_REPORT_LINES = [
    (IssueType.BROKEN_LINK, "0 broken links", "broken link(s)"),
    (IssueType.LEVEL_MISMATCH, "0 level mismatches", "level mismatch(es)"),
    (IssueType.CYCLE, "0 cycles", "node(s) in cycles"),
    (IssueType.ROGUE_TAG, "0 rogue tags", "rogue tag(s)"),
    (IssueType.MISSING_REDUCTION, "All non-bedrock nodes have reduction chains", "missing reduction chain(s)"),
    (IssueType.STALE_TENTATIVE, "0 stale Tentatives", "stale Tentative(s)"),
]


def format_report(report: IntegrityReport) -> str:
    """Checklist summary followed by every individual issue."""
    lines = [f"✓ {report.node_count} nodes scanned"]
    for issue_type, ok_label, warn_label in _REPORT_LINES:
        count = len(report.by_type(issue_type))
        lines.append(f"✓ {ok_label}" if count == 0 else f"⚠ {count} {warn_label}")

    if report.fixed:
        verb = "would be deleted" if report.dry_run else "auto-deleted"
        lines.append(f"  {len(report.fixed)} abandoned draft(s) {verb}:")
        lines.extend(f"    - {slug}" for slug in report.fixed)

    if report.issues:
        lines.append("")
        lines.append("Issues:")
        lines.extend(f"  {issue.slug}: {issue.message}" for issue in report.issues)
    return "\n".join(lines)


def format_related(result: RelatedResult) -> str:
    lines = [f"Seeds ({result.seed_source}): {', '.join(result.seeds)}"]
    if not result.results:
        lines.append("No related nodes found.")
        return "\n".join(lines)
    lines.append("")
    for i, r in enumerate(result.results, 1):
        lines.append(f"{i:>3}. [{r.score:.2f}] {r.level}: {r.title}")
        lines.append(f"     {r.slug}  ({', '.join(r.relations)}; hops={r.min_distance}, seeds={r.reach_count})")
    return "\n".join(lines)


def format_group(group_id: str, members: list[Node]) -> str:
    """Markdown review sheet for a group plus a ready-to-copy merge command."""
    lines = [
        f"# Deduplication Group: {group_id}",
        f"**Level:** {members[0].level}",
        f"**Nodes:** {len(members)}",
        "",
    ]
    for i, node in enumerate(members, 1):
        created = node.created.date().isoformat() if node.created else "?"
        lines += [
            f"## {i}. {node.title}",
            f"**Slug:** {node.slug}",
            f"**Created:** {created}",
            f"**Status:** {node.status}",
            f"**Tags:** {', '.join(node.tags) or 'none'}",
        ]
        if node.reduces_to:
            lines.append(f"**Reduces to:** {', '.join(node.reduces_to)}")
        lines += ["**Proposition:**", node.proposition, ""]

    lines.append("## Ready-to-copy merge command:")
    lines.append(
        f'lattice dedup merge --group {group_id} --title "Merged title" '
        f'--level {members[0].level} --proposition "Merged proposition"'
    )
    return "\n".join(lines)


def format_candidates(level: str, nodes: list[Node]) -> str:
    """Markdown listing of candidates for an external duplicate judge."""
    lines = [
        f"# Deduplication Candidates: {level.upper()}",
        f"**Total scanned:** {len(nodes)}",
        "",
        "Group nodes that express the identical underlying claim, then run:",
        "lattice dedup group create --node SLUG1 --node SLUG2",
        "",
    ]
    for i, node in enumerate(nodes, 1):
        created = node.created.date().isoformat() if node.created else "?"
        lines += [f"{i}. **{node.title}** (created {created})", f"Slug: `{node.slug}`", "", node.proposition, ""]
    return "\n".join(lines)
