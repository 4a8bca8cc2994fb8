"""Tests for lattice.core.related - structural connectivity search."""

from __future__ import annotations

import pytest

from lattice.core.constants import Level, Status
from lattice.core.exceptions import NotFoundError
from lattice.core.related import find_related, resolve_seeds, score_node


@pytest.fixture
def nodes(graph, make_node):
    """ax, pe bedrock; p1 (V) -> ax; p2 (T) -> ax, pe; a1 (V) -> p1; a2 (T) -> p2."""
    return graph(
        make_node("ax", Level.AXIOM, title="Honesty is a value"),
        make_node("pe", Level.PERCEPT, title="People remember lies"),
        make_node("p1", Level.PRINCIPLE, Status.VALIDATED, reduces_to=["ax"], tags=["health"], title="Tell truth"),
        make_node("p2", Level.PRINCIPLE, Status.TENTATIVE, reduces_to=["ax", "pe"], title="Lies cost trust"),
        make_node("a1", Level.APPLICATION, Status.VALIDATED, reduces_to=["p1"], title="Admit mistakes"),
        make_node("a2", Level.APPLICATION, Status.TENTATIVE, reduces_to=["p2"], tags=["health"], title="No white lies"),
    )


def _by_slug(result):
    return {r.slug: r for r in result.results}


# ============================================================================
# Seed resolution
# ============================================================================


class TestResolveSeeds:
    """Exact slug / unique slug substring, then tag, then title."""

    def test_exact_slug(self, nodes):
        assert resolve_seeds("p1", nodes) == (["p1"], "slug")

    def test_tag(self, nodes):
        assert resolve_seeds("health", nodes) == (["p1", "a2"], "tag")

    def test_title_substring(self, nodes):
        assert resolve_seeds("LIES", nodes) == (["pe", "p2", "a2"], "title")

    def test_nothing_matches(self, nodes):
        with pytest.raises(NotFoundError) as exc_info:
            resolve_seeds("astrology", nodes)
        assert exc_info.value.exit_code == 3


# ============================================================================
# find_related
# ============================================================================


class TestFindRelated:
    """Neighbourhood expansion, labelling and scoring."""

    def test_single_seed_shapes(self, nodes):
        result = find_related("p1", nodes, max_hops=2)
        related = _by_slug(result)

        assert result.seeds == ["p1"]
        assert set(related) == {"ax", "a1", "p2"}
        assert related["ax"].relations == ["ancestor"]
        assert related["a1"].relations == ["dependent"]
        assert related["p2"].relations == ["sibling"]
        assert related["p2"].min_distance == 2

    def test_single_seed_order(self, nodes):
        # a1: 2 + 1 + 0.5 + 0.3; ax: 2 + 1 + 0.5; p2: 2 + 0.5 + 0.2
        result = find_related("p1", nodes, max_hops=2)
        assert [r.slug for r in result.results] == ["a1", "ax", "p2"]
        assert [round(r.score, 2) for r in result.results] == [3.8, 3.5, 2.7]

    def test_one_hop(self, nodes):
        result = find_related("p1", nodes, max_hops=1)
        assert {r.slug for r in result.results} == {"ax", "a1"}

    def test_multi_seed_reach(self, nodes):
        result = find_related("health", nodes, max_hops=2)
        related = _by_slug(result)

        assert result.seed_source == "tag"
        # Seeds are never results
        assert not {"p1", "a2"} & set(related)
        assert related["ax"].reach_count == 2
        assert related["p2"].reach_count == 2
        assert related["p2"].min_distance == 1
        assert related["p2"].relations == ["ancestor", "sibling"]
        assert [r.slug for r in result.results] == ["ax", "p2", "a1", "pe"]

    def test_relative_shape(self, graph, make_node):
        nodes = graph(
            make_node("ax", Level.AXIOM),
            make_node("p1", reduces_to=["ax"]),
            make_node("p2", reduces_to=["ax"]),
            make_node("a1", Level.APPLICATION, reduces_to=["p1", "p2"]),
        )
        # p1 -up-> a1 -down-> p2
        result = find_related("p1", nodes, max_hops=2)
        assert "relative" in _by_slug(result)["p2"].relations

    def test_relative_does_not_change_score(self, graph, make_node):
        nodes = graph(
            make_node("p1", reduces_to=["ax"]),
            make_node("p2", reduces_to=["ax"]),
            make_node("a1", Level.APPLICATION, reduces_to=["p1", "p2"]),
            make_node("ax", Level.AXIOM),
        )
        p2 = _by_slug(find_related("p1", nodes, max_hops=2))["p2"]
        assert p2.relations == ["sibling", "relative"]
        assert p2.score == score_node(nodes["p2"], 1, 2)

    def test_limit(self, nodes):
        result = find_related("p1", nodes, max_hops=2, limit=1)
        assert [r.slug for r in result.results] == ["a1"]

    def test_ties_keep_encounter_order(self, graph, make_node):
        nodes = graph(
            make_node("ax", Level.AXIOM),
            make_node("q1", reduces_to=["ax"]),
            make_node("q2", reduces_to=["ax"]),
        )
        result = find_related("ax", nodes, max_hops=1)
        assert [r.slug for r in result.results] == ["q1", "q2"]
        assert result.results[0].score == result.results[1].score

    def test_to_dict(self, nodes):
        data = find_related("p1", nodes, max_hops=1).to_dict()
        assert data["query"] == "p1"
        assert data["seed_source"] == "slug"
        assert data["results"][0]["slug"] == "a1"


class TestScoreNode:
    def test_components(self, make_node):
        node = make_node("x", Level.APPLICATION, Status.VALIDATED)
        assert score_node(node, reach_count=2, min_distance=2) == pytest.approx(4 + 0.5 + 0.5 + 0.3)

    def test_bedrock_no_level_bonus(self, make_node):
        assert score_node(make_node("x", Level.PERCEPT), 1, 1) == pytest.approx(3.5)
