"""Lattice CLI - command-line interface for the knowledge graph."""

from .main import app, main

__all__ = ["app", "main"]
