# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Pydantic request models for lattice mutations."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .constants import STATUS_ALIASES, Level, Status

# =============================================================================
# Helpers
# =============================================================================


def parse_status(value: Any) -> Any:
    """Map a status string (long or short form, any case) to a Status."""
    if value is None or isinstance(value, Status):
        return value
    return STATUS_ALIASES.get(str(value).strip().lower(), value)


def _clean_list(values: list[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


# =============================================================================
# Request Models
# =============================================================================


class NodeCreate(BaseModel):
    """Request model for creating a node."""

    title: str = Field(..., min_length=1, description="Human-readable title")
    level: Level = Field(..., description="axiom | percept | principle | application")
    proposition: str = Field(..., min_length=1, description="The claim itself")
    reduces_to: list[str] = Field(default_factory=list, description="Parent slugs")
    tags: list[str] = Field(default_factory=list, description="Tags from the vocabulary")
    status: Status | None = Field(None, description="Initial status; derived when omitted")

    @field_validator("title", "proposition")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _status_alias(cls, value: Any) -> Any:
        return parse_status(value)

    @field_validator("reduces_to")
    @classmethod
    def _clean_links(cls, value: list[str]) -> list[str]:
        return _clean_list(value)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        return _clean_list([tag.lower() for tag in value])


class NodeUpdate(BaseModel):
    """Request model for a partial node update."""

    status: Status | None = Field(None, description="New status")
    add_tags: list[str] = Field(default_factory=list, description="Tags to add")
    remove_tags: list[str] = Field(default_factory=list, description="Tags to remove")
    add_links: list[str] = Field(default_factory=list, description="Parent slugs to add")
    remove_links: list[str] = Field(default_factory=list, description="Parent slugs to remove")

    @field_validator("status", mode="before")
    @classmethod
    def _status_alias(cls, value: Any) -> Any:
        return parse_status(value)

    @field_validator("add_tags", "remove_tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        return _clean_list([tag.lower() for tag in value])

    @field_validator("add_links", "remove_links")
    @classmethod
    def _clean_links(cls, value: list[str]) -> list[str]:
        return _clean_list(value)

    @property
    def is_empty(self) -> bool:
        return not (self.status or self.add_tags or self.remove_tags or self.add_links or self.remove_links)


class MergeRequest(BaseModel):
    """Request model for merging near-duplicate nodes into one canonical node."""

    title: str = Field(..., min_length=1, description="Title of the canonical node")
    level: Level = Field(..., description="Level of the canonical node")
    proposition: str = Field(..., min_length=1, description="Proposition of the canonical node")
    group_id: str | None = Field(None, description="Deduplication group to merge")
    slugs: list[str] = Field(default_factory=list, description="Explicit member slugs")
    reason: str | None = Field(None, description="Why the nodes were merged")
    dry_run: bool = Field(False, description="Report the plan without writing")
    auto_commit: bool = Field(False, description="Commit to git when the vault is a repository")

    @field_validator("title", "proposition")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("slugs")
    @classmethod
    def _clean_slugs(cls, value: list[str]) -> list[str]:
        return _clean_list(value)
