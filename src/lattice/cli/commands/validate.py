# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Graph integrity audit with optional abandoned-draft cleanup."""

from __future__ import annotations

import argparse

from ...core.config import get_config
from ...core.integrity import auto_fix, scan_graph
from ..output import format_report, output_result
from ..utils import open_vault


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register validate command on the CLI parser."""
    validate_parser = subparsers.add_parser("validate", help="Audit the whole graph for integrity issues")
    validate_parser.add_argument(
        "--fix-auto",
        action="store_true",
        help="Delete abandoned drafts (stale Tentative nodes with no reduces_to links)",
    )
    validate_parser.add_argument("--dry-run", action="store_true", help="With --fix-auto, only report deletions")
    validate_parser.add_argument("--quiet", "-q", action="store_true", help="Print nothing; only set the exit code")
    validate_parser.set_defaults(func=cmd_validate)


def cmd_validate(args: argparse.Namespace) -> int:
    """Scan the vault. Exit 1 when any issue remains."""
    stale_days = get_config().stale_days
    store, vocabulary = open_vault()

    if args.fix_auto:
        report = auto_fix(store, vocabulary, dry_run=args.dry_run, stale_days=stale_days)
    else:
        report = scan_graph(store.nodes, vocabulary, stale_days=stale_days)

    if not args.quiet:
        output_result(report.to_dict(), format_report(report))
    return 0 if report.is_valid else 1
