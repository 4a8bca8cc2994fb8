"""End-to-end tests for the lattice CLI, driven through main()."""

from __future__ import annotations

import io
import json
from datetime import UTC, datetime, timedelta

import pytest

from lattice.cli.main import app, main
from lattice.core.constants import Level, Status
from lattice.core.store import EntityStore


@pytest.fixture(autouse=True)
def isolated_cli_config(tmp_path, monkeypatch, clean_env):
    """Never read the developer's ~/.lattice/cli.toml."""
    monkeypatch.setattr("lattice.cli.config._DEFAULT_CONFIG_PATH", tmp_path / "no-cli.toml")


@pytest.fixture
def run(vault, capsys):
    """Run the CLI against the test vault; returns (exit_code, stdout, stderr)."""

    def _run(*args: str):
        code = main(["--vault", str(vault), *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return _run


@pytest.fixture
def run_json(run):
    def _run(*args: str):
        code, out, err = run("--json", *args)
        return code, (json.loads(out) if out.strip() else None), err

    return _run


def ago(minutes: int) -> datetime:
    """A timestamp recent enough that nothing counts as stale."""
    return datetime.now(UTC) - timedelta(minutes=minutes)


@pytest.fixture
def chain(add_node):
    """Honesty (axiom) <- Tell truth (principle, V) <- Admit mistakes (application, T)."""
    ax = add_node("Honesty", Level.AXIOM, tags=["ethics"], created=ago(30))
    pr = add_node("Tell truth", status=Status.VALIDATED, reduces_to=[ax.slug], tags=["ethics"], created=ago(20))
    app_node = add_node("Admit mistakes", Level.APPLICATION, reduces_to=[pr.slug], created=ago(10))
    return ax, pr, app_node


# ============================================================================
# Parser
# ============================================================================


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            app().parse_args([])
        assert exc_info.value.code == 2

    def test_json_flag(self):
        args = app().parse_args(["--json", "query", "hollow"])
        assert args.output == "json"
        assert args.query_command == "hollow"

    def test_invalid_level_choice(self, run):
        with pytest.raises(SystemExit) as exc_info:
            run("add", "--title", "T", "--level", "theorem", "-p", "x")
        assert exc_info.value.code == 2


# ============================================================================
# init
# ============================================================================


class TestInit:
    def test_init_creates_layout(self, tmp_path, capsys):
        path = tmp_path / "fresh"
        assert main(["--vault", str(path), "init"]) == 0
        out = capsys.readouterr().out
        assert "Initialized vault" in out
        assert "tags.json" in out
        assert (path / "01-Percepts").is_dir()

    def test_init_is_idempotent(self, run):
        code, out, _ = run("init")
        assert code == 0
        assert "already initialized" in out

    def test_uninitialized_vault(self, tmp_path, capsys):
        code = main(["--vault", str(tmp_path / "nowhere"), "query", "all"])
        assert code == 2
        assert "Error:" in capsys.readouterr().err


# ============================================================================
# add / update / delete
# ============================================================================


class TestAdd:
    def test_add_bedrock(self, run, vault):
        code, out, _ = run("add", "--title", "Sky is blue", "--level", "percept", "-p", "Observed daily")
        assert code == 0
        assert "Node created:" in out
        slug = out.split("Slug: ")[1].strip()
        assert EntityStore.open(vault).get(slug).status == Status.VALIDATED

    def test_add_with_links_and_tags(self, run_json, chain, vault):
        ax = chain[0]
        code, data, _ = run_json(
            "add", "--title", "Keep promises", "--level", "principle", "-p", "Do it.",
            "--reduces-to", f"[[{ax.slug}]]", "--tags", "ethics, goals",
        )
        assert code == 0
        node = EntityStore.open(vault).get(data["slug"])
        assert node.reduces_to == [ax.slug]
        assert node.tags == ["ethics", "goals"]
        assert node.status == Status.TENTATIVE

    def test_missing_reduction(self, run):
        code, _, err = run("add", "--title", "Floating", "--level", "principle", "-p", "x")
        assert code == 3
        assert "Error:" in err

    def test_rogue_tag(self, run):
        code, _, err = run("add", "--title", "Sky", "--level", "percept", "-p", "x", "--tags", "astrology")
        assert code == 1
        assert "astrology" in err

    def test_blank_proposition(self, run):
        code, _, err = run("add", "--title", "Sky", "--level", "percept", "-p", "   ")
        assert code == 3
        assert "Invalid input" in err

    def test_proposition_from_stdin(self, run_json, vault, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("Piped claim\n"))
        code, data, _ = run_json("add", "--title", "Sky", "--level", "percept", "-p", "-")
        assert code == 0
        assert EntityStore.open(vault).get(data["slug"]).proposition == "Piped claim"

    def test_empty_stdin(self, run, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        code, _, err = run("add", "--title", "Sky", "--level", "percept", "-p", "-")
        assert code == 3
        assert "Empty proposition" in err


class TestUpdate:
    def test_promote_by_title_fragment(self, run, chain, vault):
        code, out, _ = run("update", "admit mist", "--status", "validated")
        assert code == 0
        assert f"Updated {chain[2].slug}:" in out
        assert "status: Tentative/Hypothesis -> Integrated/Validated" in out
        assert EntityStore.open(vault).get(chain[2].slug).is_validated

    def test_promotion_hints(self, run, chain):
        pr, app_node = chain[1], chain[2]
        run("update", pr.slug, "--status", "tentative")
        code, out, _ = run("update", pr.slug, "--status", "validated")
        assert code == 0
        assert "may now be promotable" in out
        assert app_node.slug in out

    def test_unvalidated_parent(self, run, chain):
        run("update", chain[1].slug, "--status", "tentative")
        code, _, err = run("update", chain[2].slug, "--status", "validated")
        assert code == 1
        assert "Error:" in err

    def test_no_updates(self, run, chain):
        code, _, err = run("update", chain[1].slug)
        assert code == 3
        assert "No updates specified" in err

    def test_unknown_node(self, run, chain):
        code, _, _ = run("update", "zzz-nothing", "--status", "validated")
        assert code == 3

    def test_json_output(self, run_json, chain):
        code, data, _ = run_json("update", chain[1].slug, "--add-tag", "goals")
        assert code == 0
        assert data["slug"] == chain[1].slug
        assert data["changes"] == ["tags: ethics, goals"]


class TestDelete:
    def test_blocked(self, run, chain):
        code, _, err = run("delete", chain[1].slug)
        assert code == 1
        assert "Error:" in err
        assert chain[1].file_path.exists()

    def test_delete_tentative(self, run, chain):
        code, out, _ = run("delete", chain[2].slug)
        assert code == 0
        assert out.startswith("Deleted:")
        assert not chain[2].file_path.exists()


# ============================================================================
# query
# ============================================================================


class TestQuery:
    def test_all_filtered(self, run_json, chain):
        code, data, _ = run_json("query", "all", "--level", "axiom")
        assert code == 0
        assert [n["slug"] for n in data] == [chain[0].slug]

    def test_all_by_status(self, run_json, chain):
        _, data, _ = run_json("query", "all", "--status", "tentative")
        assert [n["slug"] for n in data] == [chain[2].slug]

    def test_all_invalid_status(self, run, chain):
        code, _, _ = run("query", "all", "--status", "maybe")
        assert code == 3

    def test_all_table(self, run, chain):
        _, out, _ = run("query", "all")
        lines = out.splitlines()
        assert lines[0].split() == ["Level", "Title", "Status", "Tags", "Age", "Slug"]
        assert lines[2].startswith("axiom")

    def test_empty_vault(self, run):
        assert run("query", "all")[1].strip() == "No nodes found."

    def test_applications_only_validated(self, run_json, chain):
        assert run_json("query", "applications")[1] == []
        assert [n["slug"] for n in run_json("query", "principles")[1]] == [chain[1].slug]

    def test_tag(self, run_json, chain):
        _, data, _ = run_json("query", "tag", "ethics")
        assert [n["slug"] for n in data] == [chain[0].slug, chain[1].slug]

    def test_tentative_older_than(self, run_json, add_node):
        old = add_node("Old draft", reduces_to=["x"], created=datetime.now(UTC) - timedelta(days=10))
        add_node("New draft", reduces_to=["x"], created=datetime.now(UTC) - timedelta(hours=1))
        _, data, _ = run_json("query", "tentative", "--older-than", "7d")
        assert [n["slug"] for n in data] == [old.slug]

    def test_chain_text(self, run, chain):
        code, out, _ = run("query", "chain", chain[2].slug)
        assert code == 0
        assert out.splitlines() == [
            "application: Admit mistakes (tentative)",
            "└─ principle: Tell truth",
            "   └─ axiom: Honesty",
        ]

    def test_chain_ungrounded(self, run_json, run, add_node):
        broken = add_node("Floating", reduces_to=["ghost"])
        _, data, _ = run_json("query", "chain", broken.slug)
        assert data["reaches_bedrock"] is False
        assert data["chain"]["children"] == [{"slug": "ghost", "kind": "broken"}]
        _, out, _ = run("query", "chain", broken.slug)
        assert "[BROKEN LINK: ghost]" in out
        assert "No path from this node reaches bedrock" in out

    def test_hollow(self, run, chain):
        assert run("query", "hollow")[1].strip() == "No hollow chains found."
        run("update", chain[2].slug, "--status", "validated")
        run("update", chain[1].slug, "--status", "tentative")
        _, out, _ = run("query", "hollow")
        assert "1 hollow chain(s):" in out
        assert f"weak link: {chain[1].slug}" in out

    def test_related(self, run_json, chain):
        code, data, _ = run_json("query", "related", "ethics", "--hops", "1")
        assert code == 0
        assert data["seed_source"] == "tag"
        assert [r["slug"] for r in data["results"]] == [chain[2].slug]

    def test_related_no_match(self, run, chain):
        code, _, err = run("query", "related", "astrology")
        assert code == 3
        assert "Error:" in err


# ============================================================================
# validate
# ============================================================================


class TestValidate:
    def test_clean(self, run, chain):
        code, out, _ = run("validate")
        assert code == 0
        assert out.startswith("✓ 3 nodes scanned")
        assert "✓ 0 broken links" in out

    def test_issues(self, run, chain, add_node):
        add_node("Floating", reduces_to=["ghost"])
        code, out, _ = run("validate")
        assert code == 1
        assert "⚠ 1 broken link(s)" in out
        assert "Issues:" in out

    def test_quiet(self, run, add_node):
        add_node("Floating", reduces_to=["ghost"])
        code, out, _ = run("validate", "--quiet")
        assert code == 1
        assert out == ""

    def test_fix_auto_dry_run(self, run_json, add_node):
        draft = add_node("Draft", created=datetime.now(UTC) - timedelta(days=30))
        code, data, _ = run_json("validate", "--fix-auto", "--dry-run")
        assert code == 1
        assert data["fixed"] == [draft.slug]
        assert data["dry_run"] is True
        assert draft.file_path.exists()

    def test_fix_auto(self, run, add_node):
        draft = add_node("Draft", created=datetime.now(UTC) - timedelta(days=30))
        code, out, _ = run("validate", "--fix-auto")
        assert code == 0
        assert "1 abandoned draft(s) auto-deleted:" in out
        assert not draft.file_path.exists()


# ============================================================================
# tags
# ============================================================================


class TestTags:
    def test_list(self, run):
        code, out, _ = run("tags", "list")
        assert code == 0
        assert out.startswith("Allowed tags (")
        assert "  - ethics" in out

    def test_add_and_remove(self, run, chain):
        code, out, _ = run("tags", "add", "Stoicism", "--reason", chain[1].slug)
        assert code == 0
        assert "Added tag 'stoicism'" in out
        assert "already exists" in run("tags", "add", "stoicism", "-r", chain[1].slug)[1]
        assert run("tags", "remove", "stoicism")[0] == 0
        assert "stoicism" not in run("tags", "list")[1]

    def test_add_needs_validated_reason(self, run, chain):
        code, _, err = run("tags", "add", "stoicism", "--reason", chain[2].slug)
        assert code == 1
        assert "Error:" in err

    def test_remove_used_tag(self, run, chain):
        code, _, err = run("tags", "remove", "ethics")
        assert code == 1
        assert "used by 2 node(s)" in err


# ============================================================================
# dedup
# ============================================================================


class TestDedup:
    @pytest.fixture
    def dupes(self, add_node):
        ax = add_node("Honesty", Level.AXIOM)
        p1 = add_node("Tell the truth", reduces_to=[ax.slug])
        p2 = add_node("Always tell truth", reduces_to=[ax.slug])
        app_node = add_node("Admit mistakes", Level.APPLICATION, reduces_to=[p1.slug, p2.slug])
        return ax, p1, p2, app_node

    def test_candidates(self, run, dupes):
        code, out, _ = run("dedup", "candidates", "--level", "principle")
        assert code == 0
        assert out.startswith("# Deduplication Candidates: PRINCIPLE")
        assert "**Total scanned:** 2" in out

    def test_candidates_bad_date(self, run, dupes):
        code, _, _ = run("dedup", "candidates", "--level", "principle", "--after", "last tuesday")
        assert code == 3

    def test_group_merge_undo_flow(self, run, run_json, dupes, vault):
        _, p1, p2, app_node = dupes

        code, group, _ = run_json("dedup", "group", "create", "--node", p1.slug, "--node", p2.slug)
        assert code == 0
        group_id = group["group_id"]

        code, out, _ = run("dedup", "group", "show", group_id)
        assert code == 0
        assert f"# Deduplication Group: {group_id}" in out
        assert f"lattice dedup merge --group {group_id}" in out

        code, merged, _ = run_json(
            "dedup", "merge", "--group", group_id, "--title", "Truthfulness",
            "--level", "principle", "-p", "Tell the truth.", "--reason", "same claim",
        )
        assert code == 0
        assert merged["merged"] == [p1.slug, p2.slug]
        store = EntityStore.open(vault)
        assert store.get(app_node.slug).reduces_to == [merged["canonical_slug"]]

        code, undone, _ = run_json("dedup", "undo", merged["canonical_slug"], "--reason", "not the same")
        assert code == 0
        assert undone["redirect_target"] == p1.slug
        store = EntityStore.open(vault)
        assert store.get(app_node.slug).reduces_to == [p1.slug]
        assert p2.slug in store

    def test_merge_dry_run(self, run, dupes, vault):
        _, p1, p2, _ = dupes
        code, out, _ = run(
            "dedup", "merge", "--old-node", p1.slug, "--old-node", p2.slug,
            "--title", "Truthfulness", "--level", "principle", "-p", "x", "--dry-run",
        )
        assert code == 0
        assert out.startswith("Dry run: would merge 2 nodes")
        assert p1.file_path.exists()

    def test_group_remove(self, run, run_json, dupes):
        _, group, _ = run_json("dedup", "group", "create", "-n", dupes[1].slug, "-n", dupes[2].slug)
        code, out, _ = run("dedup", "group", "remove", group["group_id"])
        assert code == 0
        assert "from 2 nodes" in out

    def test_undo_not_a_merge(self, run, dupes):
        code, _, err = run("dedup", "undo", dupes[1].slug)
        assert code == 1
        assert "not a merged node" in err
