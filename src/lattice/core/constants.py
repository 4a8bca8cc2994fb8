# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Core constants for the knowledge lattice.

RANK HIERARCHY (strict ordering, reduction only downward):
    application (2) > principle (1) > axiom (0) = percept (0)

Axioms (philosophical) and percepts (empirical) are co-equal bedrock. A node
at rank R may only reduce to nodes at rank < R, so bedrock nodes can never
reduce to each other.
"""

from __future__ import annotations

from enum import StrEnum


class Level(StrEnum):
    """Reduction level of a node."""

    PERCEPT = "percept"
    AXIOM = "axiom"
    PRINCIPLE = "principle"
    APPLICATION = "application"


class Status(StrEnum):
    """Validation status of a node, as persisted in frontmatter."""

    VALIDATED = "Integrated/Validated"
    TENTATIVE = "Tentative/Hypothesis"


LEVEL_RANK: dict[Level, int] = {
    Level.PERCEPT: 0,
    Level.AXIOM: 0,
    Level.PRINCIPLE: 1,
    Level.APPLICATION: 2,
}

BEDROCK_LEVELS: frozenset[Level] = frozenset({Level.PERCEPT, Level.AXIOM})

# Display order: evidence first, actions last
LEVEL_ORDER: tuple[Level, ...] = (Level.PERCEPT, Level.AXIOM, Level.PRINCIPLE, Level.APPLICATION)

# Folders are number-prefixed to keep file browsers in level order
LEVEL_FOLDERS: dict[Level, str] = {
    Level.PERCEPT: "01-Percepts",
    Level.AXIOM: "02-Axioms",
    Level.PRINCIPLE: "03-Principles",
    Level.APPLICATION: "04-Applications",
}

STATUS_ALIASES: dict[str, Status] = {
    "integrated/validated": Status.VALIDATED,
    "validated": Status.VALIDATED,
    "tentative/hypothesis": Status.TENTATIVE,
    "tentative": Status.TENTATIVE,
}

DEFAULT_TAGS: list[str] = [
    "health",
    "fitness",
    "career",
    "money",
    "relationships",
    "family",
    "friendships",
    "learning",
    "productivity",
    "decisions",
    "habits",
    "emotions",
    "communication",
    "creativity",
    "goals",
    "risk",
    "failure",
    "success",
    "ethics",
    "self-knowledge",
]

MAX_SLUG_LENGTH = 60
STALE_TENTATIVE_DAYS = 14
MAX_CHAIN_DEPTH = 100

TAGS_JSON_FILE = "tags.json"
TEMPLATES_FOLDER = "Templates"
NODE_TEMPLATE_FILE = "New-Node.md"
VAULT_MARKER = ".lattice"
TRASH_FOLDER = "99-Trash"
UNDONE_MERGES_FOLDER = "Undone-Merges"

# Connectivity scoring weights
REACH_WEIGHT = 2.0
VALIDATED_BONUS = 0.5
LEVEL_BONUS: dict[Level, float] = {
    Level.APPLICATION: 0.3,
    Level.PRINCIPLE: 0.2,
}


class ExitCode:
    """Process exit codes for the CLI."""

    SUCCESS = 0
    VALIDATION_ERROR = 1
    FILESYSTEM_ERROR = 2
    BAD_INPUT = 3


def rank_of(level: Level) -> int:
    return LEVEL_RANK[level]


def is_bedrock(level: Level) -> bool:
    return level in BEDROCK_LEVELS
