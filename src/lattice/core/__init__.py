"""Lattice Core - the graph and validation engine."""

from .chains import build_chain, chain_reaches_bedrock, find_hollow_chains, find_tentative_children
from .config import LatticeSettings, clear_config_cache, get_config
from .consolidation import (
    create_group,
    find_candidates,
    merge_nodes,
    remove_group,
    show_group,
    undo_merge,
)
from .constants import ExitCode, Level, Status
from .exceptions import (
    AlreadyGroupedError,
    AlreadyMergedError,
    AmbiguousMatchError,
    ConfigException,
    CycleDetectedError,
    DeleteBlockedError,
    DuplicateSlugError,
    GraphIntegrityError,
    LatticeException,
    LevelMismatchError,
    MalformedRecordError,
    MissingReductionError,
    NotAMergeError,
    NotFoundError,
    RogueTagError,
    StoreUnavailableError,
    TargetNotFoundError,
    UnvalidatedParentError,
    ValidationException,
    VaultNotInitializedError,
)
from .integrity import auto_fix, find_abandoned_drafts, scan_graph
from .logging import (
    MutationLogger,
    configure_logging,
    get_logger,
    invocation_context,
    mutation_logger,
)
from .models import (
    ChainKind,
    ChainNode,
    HollowChain,
    IntegrityReport,
    IssueType,
    Node,
    RelatedNode,
    RelatedResult,
    ValidationIssue,
)
from .operations import create_node, delete_node, list_nodes, list_tentative, update_node
from .related import find_related, resolve_seeds
from .requests import MergeRequest, NodeCreate, NodeUpdate
from .store import EntityStore
from .tags import TagVocabulary
from .vault import init_vault, is_vault_initialized, require_vault

__all__ = [
    # Models
    "Node",
    "ChainKind",
    "ChainNode",
    "HollowChain",
    "IntegrityReport",
    "IssueType",
    "RelatedNode",
    "RelatedResult",
    "ValidationIssue",
    "Level",
    "Status",
    "ExitCode",
    # Requests
    "NodeCreate",
    "NodeUpdate",
    "MergeRequest",
    # Store
    "EntityStore",
    "TagVocabulary",
    "init_vault",
    "is_vault_initialized",
    "require_vault",
    # Operations
    "create_node",
    "update_node",
    "delete_node",
    "list_nodes",
    "list_tentative",
    # Analysis
    "build_chain",
    "chain_reaches_bedrock",
    "find_hollow_chains",
    "find_tentative_children",
    "find_related",
    "resolve_seeds",
    "scan_graph",
    "auto_fix",
    "find_abandoned_drafts",
    # Consolidation
    "create_group",
    "remove_group",
    "show_group",
    "find_candidates",
    "merge_nodes",
    "undo_merge",
    # Config
    "LatticeSettings",
    "get_config",
    "clear_config_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "invocation_context",
    "MutationLogger",
    "mutation_logger",
    # Exceptions
    "LatticeException",
    "ValidationException",
    "ConfigException",
    "NotFoundError",
    "TargetNotFoundError",
    "LevelMismatchError",
    "CycleDetectedError",
    "RogueTagError",
    "MissingReductionError",
    "UnvalidatedParentError",
    "DeleteBlockedError",
    "AmbiguousMatchError",
    "DuplicateSlugError",
    "AlreadyMergedError",
    "AlreadyGroupedError",
    "NotAMergeError",
    "MalformedRecordError",
    "StoreUnavailableError",
    "VaultNotInitializedError",
    "GraphIntegrityError",
]
