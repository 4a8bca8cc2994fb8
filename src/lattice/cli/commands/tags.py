# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Tag vocabulary commands: list, add, remove."""

from __future__ import annotations

import argparse

from ...core.tags import clean_tag
from ..output import output_result
from ..utils import open_vault


def register(subparsers: argparse._SubParsersAction) -> None:
    """Register the tags command group on the CLI parser."""
    tags_parser = subparsers.add_parser("tags", help="Manage the tag vocabulary (tags.json)")
    tags_sub = tags_parser.add_subparsers(dest="tags_command", required=True)

    list_parser = tags_sub.add_parser("list", help="List allowed tags")
    list_parser.set_defaults(func=cmd_tags_list)

    add_parser = tags_sub.add_parser("add", help="Add a tag, justified by a validated node")
    add_parser.add_argument("tag", help="Tag name")
    add_parser.add_argument("--reason", "-r", required=True, help="Validated node that justifies the tag")
    add_parser.set_defaults(func=cmd_tags_add)

    remove_parser = tags_sub.add_parser("remove", help="Remove a tag no node uses")
    remove_parser.add_argument("tag", help="Tag name")
    remove_parser.set_defaults(func=cmd_tags_remove)


def cmd_tags_list(args: argparse.Namespace) -> int:
    _, vocabulary = open_vault()
    tags = list(vocabulary)
    text = f"Allowed tags ({len(tags)}):\n" + "\n".join(f"  - {tag}" for tag in tags)
    output_result(tags, text)
    return 0


def cmd_tags_add(args: argparse.Namespace) -> int:
    """Add a tag to the vocabulary."""
    store, vocabulary = open_vault()
    reason = store.resolve(args.reason)
    tag = clean_tag(args.tag)
    added = vocabulary.add(tag, reason)
    text = f"Added tag '{tag}' (justified by {reason.slug})" if added else f"Tag '{tag}' already exists"
    output_result({"tag": tag, "added": added, "reason": reason.slug}, text)
    return 0


def cmd_tags_remove(args: argparse.Namespace) -> int:
    """Remove a tag from the vocabulary."""
    store, vocabulary = open_vault()
    tag = clean_tag(args.tag)
    vocabulary.remove(tag, store)
    output_result({"tag": tag, "removed": True}, f"Removed tag '{tag}'")
    return 0
