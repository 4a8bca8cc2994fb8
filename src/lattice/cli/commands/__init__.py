"""CLI command modules for lattice.

Each module exposes a ``register(subparsers)`` function that wires up
its argparse sub-commands and sets ``parser.set_defaults(func=handler)``.
"""

from . import (
    dedup,
    nodes,
    query,
    tags,
    validate,
)
from .dedup import cmd_dedup_candidates, cmd_group_create, cmd_group_remove, cmd_group_show, cmd_merge, cmd_undo
from .nodes import cmd_add, cmd_delete, cmd_init, cmd_update
from .query import (
    cmd_query_all,
    cmd_query_applications,
    cmd_query_chain,
    cmd_query_hollow,
    cmd_query_principles,
    cmd_query_related,
    cmd_query_tag,
    cmd_query_tentative,
)
from .tags import cmd_tags_add, cmd_tags_list, cmd_tags_remove
from .validate import cmd_validate

# All command modules with register() functions, in registration order.
COMMAND_MODULES = [
    nodes,
    query,
    validate,
    tags,
    dedup,
]

__all__ = [
    "COMMAND_MODULES",
    # nodes
    "cmd_init",
    "cmd_add",
    "cmd_update",
    "cmd_delete",
    # query
    "cmd_query_all",
    "cmd_query_applications",
    "cmd_query_principles",
    "cmd_query_chain",
    "cmd_query_tentative",
    "cmd_query_tag",
    "cmd_query_hollow",
    "cmd_query_related",
    # validate
    "cmd_validate",
    # tags
    "cmd_tags_list",
    "cmd_tags_add",
    "cmd_tags_remove",
    # dedup
    "cmd_dedup_candidates",
    "cmd_group_create",
    "cmd_group_remove",
    "cmd_group_show",
    "cmd_merge",
    "cmd_undo",
]
