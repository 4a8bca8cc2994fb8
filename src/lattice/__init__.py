# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Lattice - a filesystem-backed knowledge graph of reduced facts.

Every fact (node) lives in its own markdown file and reduces to lower-rank
facts that ground it:

  application (2) -> principle (1) -> axiom | percept (0, bedrock)

The engine enforces strict rank ordering and cycle freedom at write time,
audits the whole graph on demand, walks proof chains, finds hollow chains
whose foundations were withdrawn, searches for structurally related nodes,
and reversibly merges near-duplicates.

CLI entry point: ``lattice``
"""

__version__ = "1.0.0"

from . import (
    core as core,
)
