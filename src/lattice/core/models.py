# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Data models for the lattice engine.

Nodes are plain dataclasses loaded fresh from the vault on every invocation.
Result types returned by engine operations carry a ``to_dict`` for JSON output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from .constants import Level, Status, is_bedrock, rank_of


@dataclass
class MergedFromEntry:
    """Audit record for one member folded into a canonical node."""

    id: str
    original_path: str
    original_status: str
    trashed_path: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "original_path": self.original_path,
            "original_status": self.original_status,
            "trashed_path": self.trashed_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MergedFromEntry:
        return cls(
            id=str(data.get("id", "")),
            original_path=str(data.get("original_path", "")),
            original_status=str(data.get("original_status", "")),
            trashed_path=str(data.get("trashed_path", "")),
        )


@dataclass
class Node:
    """A single fact in the lattice.

    ``status`` for bedrock levels is always VALIDATED; the parser enforces
    this on read regardless of what the file says.
    """

    slug: str
    title: str
    level: Level
    status: Status
    reduces_to: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    proposition: str = ""
    created: datetime | None = None
    file_path: Path | None = None

    # Consolidation metadata
    deduplication_group: str | None = None
    merged_from: list[MergedFromEntry] = field(default_factory=list)
    merged_reason: str | None = None
    merged_date: str | None = None
    merged_group_id: str | None = None

    # Stamped on members moved to the holding area
    merged_into: str | None = None
    original_path: str | None = None
    original_status: str | None = None
    trashed_on: str | None = None

    # Stamped on a canonical node whose merge was undone
    undone_merge: dict[str, Any] | None = None

    @property
    def rank(self) -> int:
        return rank_of(self.level)

    @property
    def is_bedrock(self) -> bool:
        return is_bedrock(self.level)

    @property
    def is_validated(self) -> bool:
        return self.status == Status.VALIDATED

    def age_days(self, now: datetime | None = None) -> float | None:
        """Age in days from ``created``; None when the timestamp is unknown."""
        if self.created is None:
            return None
        now = now or datetime.now(UTC)
        return (now - self.created).total_seconds() / 86400

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "slug": self.slug,
            "title": self.title,
            "level": str(self.level),
            "status": str(self.status),
            "reduces_to": list(self.reduces_to),
            "tags": list(self.tags),
            "proposition": self.proposition,
            "created": self.created.isoformat() if self.created else None,
            "file_path": str(self.file_path) if self.file_path else None,
        }
        if self.deduplication_group:
            result["deduplication_group"] = self.deduplication_group
        if self.merged_from:
            result["merged_from"] = [entry.to_dict() for entry in self.merged_from]
            result["merged_reason"] = self.merged_reason
            result["merged_date"] = self.merged_date
        if self.merged_into:
            result["merged_into"] = self.merged_into
        return result


class ChainKind(StrEnum):
    """Kind of node in a proof tree."""

    NODE = "node"
    BROKEN = "broken"
    CYCLE = "cycle"
    TRUNCATED = "truncated"


@dataclass
class ChainNode:
    """One vertex of a proof tree built from ``reduces_to``."""

    slug: str
    kind: ChainKind = ChainKind.NODE
    title: str | None = None
    level: Level | None = None
    status: Status | None = None
    children: list[ChainNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"slug": self.slug, "kind": str(self.kind)}
        if self.kind == ChainKind.NODE:
            result["title"] = self.title
            result["level"] = str(self.level) if self.level else None
            result["status"] = str(self.status) if self.status else None
            result["children"] = [child.to_dict() for child in self.children]
        return result


class IssueType(StrEnum):
    """Kinds of problems reported by the integrity scan."""

    BROKEN_LINK = "broken_link"
    LEVEL_MISMATCH = "level_mismatch"
    CYCLE = "cycle"
    ROGUE_TAG = "rogue_tag"
    MISSING_REDUCTION = "missing_reduction"
    STALE_TENTATIVE = "stale_tentative"


# Issues that make the graph structurally invalid (stale and rogue tags do not)
STRUCTURAL_ISSUES = frozenset(
    {
        IssueType.BROKEN_LINK,
        IssueType.LEVEL_MISMATCH,
        IssueType.CYCLE,
        IssueType.MISSING_REDUCTION,
    }
)


@dataclass
class ValidationIssue:
    """A single problem found by the integrity scan."""

    issue_type: IssueType
    slug: str
    message: str
    target: str | None = None

    @property
    def is_structural(self) -> bool:
        return self.issue_type in STRUCTURAL_ISSUES

    def key(self) -> tuple[str, str, str | None]:
        return (str(self.issue_type), self.slug, self.target)

    def to_dict(self) -> dict[str, Any]:
        result = {
            "type": str(self.issue_type),
            "slug": self.slug,
            "message": self.message,
        }
        if self.target is not None:
            result["target"] = self.target
        return result

    def __str__(self) -> str:
        return f"[{self.issue_type}] {self.slug}: {self.message}"


@dataclass
class IntegrityReport:
    """Result of a full-graph integrity scan."""

    node_count: int = 0
    issues: list[ValidationIssue] = field(default_factory=list)
    fixed: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def by_type(self, issue_type: IssueType) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.issue_type == issue_type]

    @property
    def structural_issues(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.is_structural]

    def to_dict(self) -> dict[str, Any]:
        counts: dict[str, int] = {}
        for issue in self.issues:
            counts[str(issue.issue_type)] = counts.get(str(issue.issue_type), 0) + 1
        return {
            "valid": self.is_valid,
            "node_count": self.node_count,
            "issue_count": len(self.issues),
            "counts": counts,
            "issues": [issue.to_dict() for issue in self.issues],
            "fixed": list(self.fixed),
            "dry_run": self.dry_run,
        }

    def __str__(self) -> str:
        if self.is_valid:
            return f"All {self.node_count} nodes valid"
        return f"{len(self.issues)} issue(s) across {self.node_count} nodes"


@dataclass
class HollowChain:
    """A validated node whose ancestry contains tentative nodes."""

    slug: str
    title: str
    level: Level
    weak_links: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "level": str(self.level),
            "weak_links": list(self.weak_links),
        }


@dataclass
class RelatedNode:
    """A node discovered by connectivity search."""

    slug: str
    title: str
    level: Level
    status: Status
    score: float
    reach_count: int
    min_distance: int
    relations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "level": str(self.level),
            "status": str(self.status),
            "score": round(self.score, 4),
            "reach_count": self.reach_count,
            "min_distance": self.min_distance,
            "relations": list(self.relations),
        }


@dataclass
class RelatedResult:
    """Seeds resolved for a query plus their scored neighbourhood."""

    query: str
    seeds: list[str]
    seed_source: str
    results: list[RelatedNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "seeds": list(self.seeds),
            "seed_source": self.seed_source,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class CreatedNode:
    slug: str
    path: Path

    def to_dict(self) -> dict[str, Any]:
        return {"slug": self.slug, "path": str(self.path)}


@dataclass
class UpdateResult:
    slug: str
    changes: list[str] = field(default_factory=list)
    promotion_hints: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "changes": list(self.changes),
            "promotion_hints": list(self.promotion_hints),
        }


@dataclass
class DeleteResult:
    slug: str
    path: Path

    def to_dict(self) -> dict[str, Any]:
        return {"slug": self.slug, "path": str(self.path)}


@dataclass
class GroupResult:
    """Outcome of a grouping operation."""

    group_id: str
    members: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"group_id": self.group_id, "members": list(self.members)}


@dataclass
class MergeResult:
    """Outcome of merging a set of nodes into one canonical node."""

    canonical_slug: str
    canonical_path: Path | None
    merged: list[str] = field(default_factory=list)
    trashed_paths: list[str] = field(default_factory=list)
    rewritten: list[str] = field(default_factory=list)
    dry_run: bool = False
    committed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "canonical_slug": self.canonical_slug,
            "canonical_path": str(self.canonical_path) if self.canonical_path else None,
            "merged": list(self.merged),
            "trashed_paths": list(self.trashed_paths),
            "rewritten": list(self.rewritten),
            "dry_run": self.dry_run,
            "committed": self.committed,
        }


@dataclass
class UndoResult:
    """Outcome of undoing a merge."""

    canonical_slug: str
    restored: list[str] = field(default_factory=list)
    redirect_target: str | None = None
    rewritten: list[str] = field(default_factory=list)
    dry_run: bool = False
    committed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "canonical_slug": self.canonical_slug,
            "restored": list(self.restored),
            "redirect_target": self.redirect_target,
            "rewritten": list(self.rewritten),
            "dry_run": self.dry_run,
            "committed": self.committed,
        }
