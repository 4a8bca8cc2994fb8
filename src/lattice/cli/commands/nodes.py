# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Node commands: init, add, update, delete."""

from __future__ import annotations

import argparse

from ...core.config import get_config
from ...core.exceptions import ValidationException
from ...core.operations import create_node, delete_node, update_node
from ...core.requests import NodeCreate, NodeUpdate
from ...core.vault import init_vault
from ..config import get_cli_config
from ..output import output_result
from ..utils import clean_refs, open_vault, read_stdin, split_csv


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register node commands on the CLI parser."""
    init_parser = subparsers.add_parser("init", help="Create the vault layout (idempotent)")
    init_parser.set_defaults(func=cmd_init)

    add_parser = subparsers.add_parser("add", help="Create a new node")
    add_parser.add_argument("--title", required=True, help="Short title (used for the slug)")
    add_parser.add_argument(
        "--level",
        required=True,
        choices=["percept", "axiom", "principle", "application"],
        help="Epistemic level",
    )
    add_parser.add_argument("--proposition", "-p", required=True, help='The claim; "-" reads it from stdin')
    add_parser.add_argument(
        "--reduces-to",
        action="append",
        dest="reduces_to",
        default=[],
        help="Slug of a lower-rank node this one reduces to (repeatable)",
    )
    add_parser.add_argument("--tags", "-t", help="Comma-separated tags from tags.json")
    add_parser.add_argument("--status", help="validated or tentative (default: tentative, bedrock is always validated)")
    add_parser.set_defaults(func=cmd_add)

    update_parser = subparsers.add_parser("update", help="Change a node's status, tags, or reduces_to links")
    update_parser.add_argument("node", help="Slug, slug prefix, or unique title fragment")
    update_parser.add_argument("--status", help="validated or tentative")
    update_parser.add_argument("--add-tag", action="append", dest="add_tags", default=[], help="Tag to add (repeatable)")
    update_parser.add_argument(
        "--remove-tag", action="append", dest="remove_tags", default=[], help="Tag to remove (repeatable)"
    )
    update_parser.add_argument(
        "--add-reduces-to", action="append", dest="add_links", default=[], help="Link to add (repeatable)"
    )
    update_parser.add_argument(
        "--remove-reduces-to", action="append", dest="remove_links", default=[], help="Link to remove (repeatable)"
    )
    update_parser.set_defaults(func=cmd_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a Tentative node or one nothing depends on")
    delete_parser.add_argument("node", help="Slug, slug prefix, or unique title fragment")
    delete_parser.set_defaults(func=cmd_delete)


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a vault in the configured directory."""
    result = init_vault(get_cli_config().vault_path)
    if result.created:
        text = f"Initialized vault at {result.vault_path}\n" + "\n".join(f"  + {p}" for p in result.created)
    else:
        text = f"Vault at {result.vault_path} is already initialized"
    output_result(result.to_dict(), text)
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    """Create a node."""
    proposition = args.proposition
    if proposition == "-":
        proposition = read_stdin(get_config().stdin_timeout)
        if not proposition.strip():
            raise ValidationException("Empty proposition received from stdin", field="proposition")

    request = NodeCreate(
        title=args.title,
        level=args.level,
        proposition=proposition,
        reduces_to=clean_refs(args.reduces_to),
        tags=split_csv(args.tags),
        status=args.status,
    )
    store, vocabulary = open_vault()
    result = create_node(store, vocabulary, request)
    output_result(result.to_dict(), f"Node created: {result.path}\nSlug: {result.slug}")
    return 0


def cmd_update(args: argparse.Namespace) -> int:
    """Update a node."""
    request = NodeUpdate(
        status=args.status,
        add_tags=args.add_tags,
        remove_tags=args.remove_tags,
        add_links=clean_refs(args.add_links),
        remove_links=clean_refs(args.remove_links),
    )
    store, vocabulary = open_vault()
    node = store.resolve(args.node)
    result = update_node(store, vocabulary, node.slug, request)

    lines = [f"Updated {result.slug}:"]
    lines.extend(f"  - {change}" for change in result.changes)
    if result.promotion_hints:
        lines.append("")
        lines.append(f"{len(result.promotion_hints)} Tentative node(s) reduce to this node and may now be promotable:")
        lines.extend(f"  - {slug}" for slug in result.promotion_hints)
    output_result(result.to_dict(), "\n".join(lines))
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a node."""
    store, _ = open_vault()
    node = store.resolve(args.node)
    result = delete_node(store, node.slug)
    output_result(result.to_dict(), f"Deleted: {result.path}")
    return 0
