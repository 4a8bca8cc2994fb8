# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Custom exception hierarchy for the lattice engine.

Every rule the engine enforces has its own exception type carrying the
offending slug, the conflicting node(s) and the rule that was violated, so a
caller can fix the problem without re-reading the vault. Each exception also
carries the CLI exit code it maps to.
"""

from __future__ import annotations

from typing import Any

from .constants import ExitCode


class LatticeException(Exception):
    """Base exception for all lattice errors.

    All lattice-specific exceptions should inherit from this class.
    """

    exit_code: int = ExitCode.VALIDATION_ERROR

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(LatticeException):
    """Exception for bad input.

    Raised when:
    - A level or status value is not a recognised enumerant
    - A proposition is empty
    - A status change is attempted on a bedrock node
    - An update carries no changes
    """

    exit_code = ExitCode.BAD_INPUT

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class ConfigException(LatticeException):
    """Exception for configuration errors."""

    exit_code = ExitCode.BAD_INPUT


class NotFoundError(LatticeException):
    """A referenced node (or group) is absent."""

    def __init__(self, resource_type: str, resource_id: str, exit_code: int | None = None):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id
        if exit_code is not None:
            self.exit_code = exit_code


class TargetNotFoundError(NotFoundError):
    """A reduces_to target does not exist in the loaded node set."""

    def __init__(self, target: str, source: str | None = None):
        super().__init__("Target node", target)
        self.source = source
        if source:
            self.details["source"] = source


class LevelMismatchError(LatticeException):
    """A reduction edge does not strictly decrease in rank."""

    def __init__(
        self,
        source_level: str,
        target_level: str,
        source: str | None = None,
        target: str | None = None,
    ):
        message = f"Level mismatch: {source_level} cannot reduce to {target_level}"
        if target:
            message += f" ({target})"
        details: dict[str, Any] = {
            "source_level": str(source_level),
            "target_level": str(target_level),
        }
        if source:
            details["source"] = source
        if target:
            details["target"] = target
        super().__init__(message, details)
        self.source_level = source_level
        self.target_level = target_level


class CycleDetectedError(LatticeException):
    """Adding an edge would close a loop in the reduction graph."""

    def __init__(self, source: str, target: str):
        if source == target:
            message = f"Cycle detected: '{source}' cannot reduce to itself"
        else:
            message = (
                f"Cycle detected: '{target}' already reduces (transitively) to '{source}'; "
                "adding this link creates a loop in the reduction graph"
            )
        super().__init__(message, {"source": source, "target": target})
        self.source = source
        self.target = target


class RogueTagError(LatticeException):
    """A tag is outside the controlled vocabulary."""

    def __init__(self, tag: str, slug: str | None = None):
        details = {"tag": tag}
        if slug:
            details["slug"] = slug
        super().__init__(f"Rogue tag '{tag}' not in tags.json", details)
        self.tag = tag


class MissingReductionError(LatticeException):
    """A non-bedrock node has (or would have) no reduces_to links."""

    exit_code = ExitCode.BAD_INPUT

    def __init__(self, level: str, slug: str | None = None):
        message = f"Non-bedrock node (level: {level}) requires at least one reduces_to link"
        if slug:
            message = f"{message}: {slug}"
        details = {"level": str(level)}
        if slug:
            details["slug"] = slug
        super().__init__(message, details)
        self.level = level


class UnvalidatedParentError(LatticeException):
    """Promotion attempted while a direct parent is still tentative.

    ``slug`` is None when the node is being created and has no slug yet.
    """

    def __init__(self, slug: str | None, parent: str):
        subject = f"'{slug}'" if slug else "new node"
        details = {"parent": parent}
        if slug:
            details["slug"] = slug
        super().__init__(
            f"Cannot promote {subject}: parent '{parent}' is still Tentative/Hypothesis. Promote parents first.",
            details,
        )
        self.slug = slug
        self.parent = parent


class DeleteBlockedError(LatticeException):
    """A validated node with dependents cannot be deleted."""

    def __init__(self, slug: str, dependents: list[str]):
        super().__init__(
            f"Cannot delete '{slug}': {len(dependents)} other node(s) reduce to it and it is "
            "Integrated/Validated. Change status to Tentative/Hypothesis first or remove incoming links.",
            {"slug": slug, "dependents": list(dependents)},
        )
        self.slug = slug
        self.dependents = list(dependents)


class AmbiguousMatchError(LatticeException):
    """A fuzzy node lookup resolved to more than one candidate."""

    exit_code = ExitCode.BAD_INPUT

    def __init__(self, query: str, candidates: list[str]):
        listing = "\n".join(f"  - {c}" for c in candidates)
        super().__init__(
            f"Ambiguous match for '{query}'. Multiple nodes match:\n{listing}\n"
            "Use a more specific slug or the full slug to disambiguate.",
            {"query": query, "candidates": list(candidates)},
        )
        self.query = query
        self.candidates = list(candidates)


class DuplicateSlugError(LatticeException):
    """A node with this slug already exists."""

    def __init__(self, slug: str):
        super().__init__(f"Node with slug '{slug}' already exists", {"slug": slug})
        self.slug = slug


class AlreadyMergedError(LatticeException):
    """A node selected for merging has been merged before."""

    def __init__(self, slug: str, merged_into: str | None = None):
        details = {"slug": slug}
        if merged_into:
            details["merged_into"] = merged_into
        super().__init__(f"Node {slug} has already been merged", details)
        self.slug = slug


class AlreadyGroupedError(LatticeException):
    """A node selected for grouping already carries a group id."""

    def __init__(self, slug: str, group_id: str):
        super().__init__(
            f"Node {slug} is already in group {group_id}",
            {"slug": slug, "group_id": group_id},
        )
        self.slug = slug
        self.group_id = group_id


class NotAMergeError(LatticeException):
    """Undo was requested on a node without merge metadata."""

    def __init__(self, slug: str):
        super().__init__(f"Node {slug} is not a merged node", {"slug": slug})
        self.slug = slug


class MalformedRecordError(LatticeException):
    """A persisted node file cannot be parsed."""

    exit_code = ExitCode.FILESYSTEM_ERROR

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed node file '{path}': {reason}", {"path": path, "reason": reason})
        self.path = path
        self.reason = reason


class StoreUnavailableError(LatticeException):
    """The underlying storage could not be read or written."""

    exit_code = ExitCode.FILESYSTEM_ERROR

    def __init__(self, message: str, path: str | None = None):
        details = {}
        if path:
            details["path"] = path
        super().__init__(message, details)
        self.path = path


class VaultNotInitializedError(StoreUnavailableError):
    """The target directory has no vault marker."""

    def __init__(self, vault_path: str):
        super().__init__(f"Vault not initialized at '{vault_path}'. Run 'lattice init' first.", vault_path)


class GraphIntegrityError(LatticeException):
    """A consolidation would leave (or has left) the graph structurally invalid."""

    def __init__(self, message: str, issues: list[dict[str, Any]]):
        super().__init__(message, {"issues": issues})
        self.issues = issues
