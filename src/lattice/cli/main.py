#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors
"""
Lattice CLI - a knowledge graph of reduced facts, one markdown file per node.

Commands:
  lattice init                     Create the vault layout
  lattice add                      Create a node
  lattice update NODE              Change status, tags, or reduces_to links
  lattice delete NODE              Delete a node
  lattice validate                 Audit the whole graph
  lattice query ...                Read-only queries (all, chain, hollow, related, ...)
  lattice tags ...                 Manage the tag vocabulary
  lattice dedup ...                Group, merge, and unmerge near-duplicates
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from ..core.constants import ExitCode
from ..core.exceptions import LatticeException
from ..core.logging import configure_logging, invocation_context
from .commands import COMMAND_MODULES
from .config import CLIConfig, set_cli_config
from .output import output_error

logger = logging.getLogger(__name__)


def app() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lattice",
        description="Knowledge graph of reduced facts: applications -> principles -> axioms/percepts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lattice init                                         Create vault folders and tags.json
  lattice add --title "Sky is blue" --level percept -p "Observed daily"
  lattice add --title "Trust sight" --level principle -p "..." --reduces-to 20260101120000-sky-is-blue
  lattice update trust-sight --status validated        Promote after review
  lattice query chain trust-sight                      Show the proof tree
  lattice query related health --hops 2                Structurally related nodes
  lattice validate --fix-auto --dry-run                Preview abandoned-draft cleanup
  lattice dedup candidates --level principle           List nodes for duplicate review
        """,
    )
    parser.add_argument("--vault", help="Vault directory (default: $LATTICE_VAULT or current directory)")
    parser.add_argument("--json", action="store_const", const="json", dest="output", help="Output as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for module in COMMAND_MODULES:
        module.register(subparsers)

    return parser


def _format_validation_error(e: ValidationError) -> str:
    parts = []
    for error in e.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        parts.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "Invalid input: " + "; ".join(parts)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = app()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose)
    set_cli_config(CLIConfig.load(vault=args.vault, output=args.output))

    with invocation_context() as iid:
        logger.debug(f"lattice {args.command} (invocation {iid})")
        try:
            return args.func(args)
        except LatticeException as e:
            logger.debug(f"{type(e).__name__}: {e.details}")
            output_error(e.message)
            return int(e.exit_code)
        except ValidationError as e:
            output_error(_format_validation_error(e))
            return int(ExitCode.BAD_INPUT)


if __name__ == "__main__":
    sys.exit(main())
