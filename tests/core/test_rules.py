"""Tests for lattice.core.rules - promotion and deletion rules."""

from __future__ import annotations

import pytest

from lattice.core.constants import Level, Status
from lattice.core.exceptions import (
    DeleteBlockedError,
    MissingReductionError,
    UnvalidatedParentError,
    ValidationException,
)
from lattice.core.rules import check_delete, check_parents_validated, resolve_status


@pytest.fixture
def nodes(graph, make_node):
    return graph(
        make_node("ax", Level.AXIOM),
        make_node("p-ok", Level.PRINCIPLE, Status.VALIDATED, reduces_to=["ax"]),
        make_node("p-draft", Level.PRINCIPLE, Status.TENTATIVE, reduces_to=["ax"]),
        make_node("app", Level.APPLICATION, Status.TENTATIVE, reduces_to=["p-ok"]),
    )


class TestParentsValidated:
    def test_all_validated(self, nodes):
        check_parents_validated("app", ["p-ok", "ax"], nodes)

    def test_tentative_parent(self, nodes):
        with pytest.raises(UnvalidatedParentError) as exc_info:
            check_parents_validated("app", ["p-ok", "p-draft"], nodes)
        assert exc_info.value.parent == "p-draft"

    def test_missing_parent_ignored(self, nodes):
        check_parents_validated("app", ["ghost"], nodes)


class TestResolveStatus:
    """Status after an update to status and/or edges."""

    def test_promotion_allowed(self, nodes):
        app = nodes["app"]
        assert resolve_status(app, ["p-ok"], Status.VALIDATED, nodes) == Status.VALIDATED

    def test_promotion_blocked_by_tentative_parent(self, nodes):
        app = nodes["app"]
        with pytest.raises(UnvalidatedParentError):
            resolve_status(app, ["p-ok", "p-draft"], Status.VALIDATED, nodes)

    def test_promotion_uses_post_update_edges(self, nodes):
        """Swapping a tentative parent out in the same update lets promotion pass."""
        app = nodes["app"]
        app.reduces_to = ["p-draft"]
        assert resolve_status(app, ["p-ok"], Status.VALIDATED, nodes) == Status.VALIDATED

    def test_promotion_without_edges(self, nodes):
        with pytest.raises(MissingReductionError):
            resolve_status(nodes["app"], [], Status.VALIDATED, nodes)

    def test_demotion_is_free(self, nodes):
        assert resolve_status(nodes["p-ok"], ["ax"], Status.TENTATIVE, nodes) == Status.TENTATIVE

    def test_removing_all_edges_forces_tentative(self, nodes):
        assert resolve_status(nodes["p-ok"], [], None, nodes) == Status.TENTATIVE

    def test_unchanged_status_kept(self, nodes):
        assert resolve_status(nodes["p-ok"], ["ax"], None, nodes) == Status.VALIDATED

    def test_revalidating_validated_node_skips_parent_check(self, nodes):
        assert resolve_status(nodes["p-ok"], ["ax"], Status.VALIDATED, nodes) == Status.VALIDATED

    def test_bedrock_status_change_rejected(self, nodes):
        with pytest.raises(ValidationException):
            resolve_status(nodes["ax"], [], Status.TENTATIVE, nodes)

    def test_bedrock_stays_validated(self, nodes):
        assert resolve_status(nodes["ax"], [], None, nodes) == Status.VALIDATED


class TestCheckDelete:
    def test_tentative_with_dependents_allowed(self, nodes):
        check_delete(nodes["p-draft"], ["app"])

    def test_validated_without_dependents_allowed(self, nodes):
        check_delete(nodes["p-ok"], [])

    def test_validated_with_dependents_blocked(self, nodes):
        with pytest.raises(DeleteBlockedError) as exc_info:
            check_delete(nodes["p-ok"], ["app"])
        assert exc_info.value.dependents == ["app"]
