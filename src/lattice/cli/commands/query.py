# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Read-only graph queries: all, applications, principles, chain, tentative, tag, hollow, related."""

from __future__ import annotations

import argparse

from ...core.chains import build_chain, chain_reaches_bedrock, find_hollow_chains
from ...core.config import get_config
from ...core.constants import Level, Status
from ...core.exceptions import ValidationException
from ...core.operations import list_nodes, list_tentative
from ...core.related import find_related
from ...core.requests import parse_status
from ..output import format_chain, format_nodes, format_related, output_result
from ..utils import open_vault

_LEVEL_CHOICES = [str(level) for level in Level]


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the query command group on the CLI parser."""
    query_parser = subparsers.add_parser("query", help="Query the graph")
    query_sub = query_parser.add_subparsers(dest="query_command", required=True)

    all_parser = query_sub.add_parser("all", help="List nodes, optionally filtered")
    all_parser.add_argument("--level", "-l", choices=_LEVEL_CHOICES, help="Filter by level")
    all_parser.add_argument("--status", "-s", help="Filter by status (validated or tentative)")
    all_parser.add_argument("--tag", "-t", help="Filter by tag")
    all_parser.set_defaults(func=cmd_query_all)

    apps_parser = query_sub.add_parser("applications", help="Validated applications (actionable guidance)")
    apps_parser.add_argument("--tag", "-t", help="Filter by tag")
    apps_parser.set_defaults(func=cmd_query_applications)

    principles_parser = query_sub.add_parser("principles", help="Validated principles")
    principles_parser.add_argument("--tag", "-t", help="Filter by tag")
    principles_parser.set_defaults(func=cmd_query_principles)

    chain_parser = query_sub.add_parser("chain", help="Show the proof tree under a node")
    chain_parser.add_argument("node", help="Slug, slug prefix, or unique title fragment")
    chain_parser.add_argument("--max-depth", type=int, help="Stop expanding past this depth")
    chain_parser.set_defaults(func=cmd_query_chain)

    tentative_parser = query_sub.add_parser("tentative", help="List Tentative nodes, oldest first")
    tentative_parser.add_argument("--older-than", help="Only nodes older than a duration, e.g. 7d or 48h")
    tentative_parser.set_defaults(func=cmd_query_tentative)

    tag_parser = query_sub.add_parser("tag", help="List nodes carrying a tag")
    tag_parser.add_argument("tag", help="Tag name")
    tag_parser.set_defaults(func=cmd_query_tag)

    hollow_parser = query_sub.add_parser("hollow", help="Validated nodes resting on Tentative foundations")
    hollow_parser.set_defaults(func=cmd_query_hollow)

    related_parser = query_sub.add_parser("related", help="Find structurally related nodes")
    related_parser.add_argument("query", help="Slug, tag, or title fragment")
    related_parser.add_argument("--hops", type=int, help="Maximum hops from each seed")
    related_parser.add_argument("--limit", "-n", type=int, help="Maximum results")
    related_parser.set_defaults(func=cmd_query_related)


def _list_output(nodes) -> int:
    output_result([n.to_dict() for n in nodes], format_nodes(nodes))
    return 0


def cmd_query_all(args: argparse.Namespace) -> int:
    """List every node matching the filters."""
    store, _ = open_vault()
    status = parse_status(args.status) if args.status else None
    if status is not None and not isinstance(status, Status):
        raise ValidationException(f"Invalid status '{args.status}'. Use validated or tentative", field="status")
    nodes = list_nodes(store, level=args.level, status=status, tag=args.tag)
    return _list_output(nodes)


def cmd_query_applications(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    return _list_output(list_nodes(store, level=Level.APPLICATION, status=Status.VALIDATED, tag=args.tag))


def cmd_query_principles(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    return _list_output(list_nodes(store, level=Level.PRINCIPLE, status=Status.VALIDATED, tag=args.tag))


def cmd_query_chain(args: argparse.Namespace) -> int:
    """Print the proof tree of a node down to bedrock."""
    store, _ = open_vault()
    node = store.resolve(args.node)
    max_depth = args.max_depth if args.max_depth is not None else get_config().max_chain_depth
    tree = build_chain(node.slug, store.nodes, max_depth)
    grounded = chain_reaches_bedrock(node.slug, store.nodes)

    data = {"chain": tree.to_dict(), "reaches_bedrock": grounded}
    text = format_chain(tree)
    if not grounded:
        text += "\n\n⚠ No path from this node reaches bedrock"
    output_result(data, text)
    return 0


def cmd_query_tentative(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    return _list_output(list_tentative(store, older_than=args.older_than))


def cmd_query_tag(args: argparse.Namespace) -> int:
    store, _ = open_vault()
    return _list_output(list_nodes(store, tag=args.tag))


def cmd_query_hollow(args: argparse.Namespace) -> int:
    """Report Validated nodes with Tentative ancestors."""
    store, _ = open_vault()
    hollow = find_hollow_chains(store.nodes)

    if not hollow:
        text = "No hollow chains found."
    else:
        lines = [f"{len(hollow)} hollow chain(s):"]
        for chain in hollow:
            lines.append(f"  {chain.level}: {chain.title} ({chain.slug})")
            lines.extend(f"    weak link: {slug}" for slug in chain.weak_links)
        text = "\n".join(lines)
    output_result([h.to_dict() for h in hollow], text)
    return 0


def cmd_query_related(args: argparse.Namespace) -> int:
    """Rank nodes by structural proximity to the query's seeds."""
    config = get_config()
    store, _ = open_vault()
    result = find_related(
        args.query,
        store.nodes,
        max_hops=args.hops if args.hops is not None else config.related_max_hops,
        limit=args.limit if args.limit is not None else config.related_limit,
    )
    output_result(result.to_dict(), format_related(result))
    return 0
