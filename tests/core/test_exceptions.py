"""Tests for lattice.core.exceptions module."""

from __future__ import annotations

import pytest

from lattice.core.constants import ExitCode
from lattice.core.exceptions import (
    AmbiguousMatchError,
    CycleDetectedError,
    DeleteBlockedError,
    GraphIntegrityError,
    LatticeException,
    LevelMismatchError,
    MalformedRecordError,
    MissingReductionError,
    NotFoundError,
    StoreUnavailableError,
    TargetNotFoundError,
    UnvalidatedParentError,
    ValidationException,
    VaultNotInitializedError,
)

# ============================================================================
# LatticeException Tests
# ============================================================================


class TestLatticeException:
    """Tests for base LatticeException."""

    def test_create_with_message(self):
        exc = LatticeException("Something went wrong")
        assert str(exc) == "Something went wrong"
        assert exc.message == "Something went wrong"
        assert exc.details == {}

    def test_to_dict(self):
        """to_dict should serialize class name, message and details."""
        exc = LatticeException("Test error", details={"info": "extra"})
        assert exc.to_dict() == {
            "error": "LatticeException",
            "message": "Test error",
            "details": {"info": "extra"},
        }

    def test_to_dict_class_name(self):
        assert CycleDetectedError("a", "b").to_dict()["error"] == "CycleDetectedError"

    def test_default_exit_code(self):
        assert LatticeException("x").exit_code == ExitCode.VALIDATION_ERROR


# ============================================================================
# Exit code mapping
# ============================================================================


class TestExitCodes:
    """Each failure kind maps to the documented process exit code."""

    @pytest.mark.parametrize(
        "exc, code",
        [
            (LevelMismatchError("axiom", "percept"), 1),
            (CycleDetectedError("a", "b"), 1),
            (UnvalidatedParentError("a", "b"), 1),
            (DeleteBlockedError("a", ["b"]), 1),
            (TargetNotFoundError("missing"), 1),
            (NotFoundError("Node", "x"), 1),
            (MalformedRecordError("f.md", "bad"), 2),
            (StoreUnavailableError("gone"), 2),
            (VaultNotInitializedError("/tmp/v"), 2),
            (MissingReductionError("principle"), 3),
            (AmbiguousMatchError("q", ["a", "b"]), 3),
            (ValidationException("bad"), 3),
        ],
    )
    def test_exit_code(self, exc, code):
        assert exc.exit_code == code

    def test_not_found_exit_code_override(self):
        """Unresolved fuzzy lookups are bad input, not validation failures."""
        exc = NotFoundError("Node", "nothing", exit_code=3)
        assert exc.exit_code == 3
        # The override is per instance
        assert NotFoundError("Node", "other").exit_code == 1


# ============================================================================
# Message and detail content
# ============================================================================


class TestDetails:
    """Exceptions carry enough context to fix the problem."""

    def test_validation_exception_field_and_value(self):
        exc = ValidationException("Invalid status", field="status", value="maybe")
        assert exc.field == "status"
        assert exc.value == "maybe"
        assert exc.details == {"field": "status", "value": "maybe"}

    def test_level_mismatch_mentions_both_levels(self):
        exc = LevelMismatchError("principle", "application", "p1", "a1")
        assert "principle cannot reduce to application" in exc.message
        assert exc.details["target"] == "a1"
        assert exc.details["source"] == "p1"

    def test_self_cycle_message(self):
        exc = CycleDetectedError("p1", "p1")
        assert "cannot reduce to itself" in exc.message

    def test_cycle_message_names_both_nodes(self):
        exc = CycleDetectedError("p1", "p2")
        assert "'p2' already reduces" in exc.message
        assert "'p1'" in exc.message

    def test_delete_blocked_lists_dependents(self):
        exc = DeleteBlockedError("p1", ["a1", "a2"])
        assert exc.dependents == ["a1", "a2"]
        assert "2 other node(s)" in exc.message

    def test_ambiguous_lists_candidates(self):
        exc = AmbiguousMatchError("honest", ["one-honest", "two-honest"])
        assert "  - one-honest" in exc.message
        assert exc.candidates == ["one-honest", "two-honest"]

    def test_target_not_found_is_not_found(self):
        exc = TargetNotFoundError("ghost", "p1")
        assert isinstance(exc, NotFoundError)
        assert exc.details["source"] == "p1"
        assert exc.message == "Target node not found: ghost"

    def test_vault_not_initialized_is_store_unavailable(self):
        exc = VaultNotInitializedError("/tmp/nowhere")
        assert isinstance(exc, StoreUnavailableError)
        assert "lattice init" in exc.message

    def test_graph_integrity_error_carries_issues(self):
        issues = [{"type": "broken_link", "slug": "a", "message": "m"}]
        exc = GraphIntegrityError("Merge would break things", issues)
        assert exc.issues == issues
        assert exc.to_dict()["details"]["issues"] == issues

    def test_missing_reduction_with_slug(self):
        exc = MissingReductionError("principle", "p1")
        assert exc.message.endswith(": p1")
        assert exc.details == {"level": "principle", "slug": "p1"}
