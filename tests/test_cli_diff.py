"""Tests for `apidelta diff` CLI command."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest
from click.testing import CliRunner

from apidelta import __version__
from apidelta.cli import main

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    WriteGraph = Callable[[str, dict[str, Any]], Path]


def _rename_operation(graph: dict[str, Any]) -> None:
    graph["@graph"][2]["core:name"] = "listItems"


def _rename_api(graph: dict[str, Any]) -> None:
    graph["@graph"][0]["core:name"] = "Store API"


def _files(
    write_graph: WriteGraph, base: dict[str, Any], new: dict[str, Any]
) -> tuple[str, str]:
    return str(write_graph("base.json", base)), str(write_graph("new.json", new))


class TestCliVersion:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0, result.output
        assert __version__ in result.output


# ---------------------------------------------------------------------------
# Ruleset mode (default)
# ---------------------------------------------------------------------------


class TestCliDiffRuleset:
    def test_no_changes(self, base_graph: dict[str, Any], write_graph: WriteGraph) -> None:
        """Identical documents exit 0."""
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(main, ["diff", base, new])
        assert result.exit_code == 0, result.output
        assert "No changes." in result.output

    def test_breaking_change_exits_1(
        self, base_graph: dict[str, Any], new_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        _rename_operation(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        result = CliRunner().invoke(main, ["diff", base, new])
        assert result.exit_code == 1, result.output
        assert "[Breaking] Rule to detect operation display name changes" in result.output
        assert "getItems → listItems" in result.output
        assert "Breaking Changes: 1" in result.output

    def test_non_breaking_change_exits_0(
        self, base_graph: dict[str, Any], new_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        _rename_api(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        result = CliRunner().invoke(main, ["diff", base, new])
        assert result.exit_code == 0, result.output
        assert "[Non-Breaking] Rule to detect API title changes" in result.output

    def test_custom_ruleset(
        self,
        tmp_path: Path,
        base_graph: dict[str, Any],
        new_graph: dict[str, Any],
        write_graph: WriteGraph,
    ) -> None:
        rules = tmp_path / "rules.json"
        rules.write_text("[]", encoding="utf-8")
        _rename_operation(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        result = CliRunner().invoke(main, ["diff", "--ruleset", str(rules), base, new])
        assert result.exit_code == 0, result.output

    def test_ruleset_from_env(
        self,
        tmp_path: Path,
        base_graph: dict[str, Any],
        new_graph: dict[str, Any],
        write_graph: WriteGraph,
    ) -> None:
        rules = tmp_path / "rules.json"
        rules.write_text("[]", encoding="utf-8")
        _rename_operation(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        result = CliRunner().invoke(
            main, ["diff", base, new], env={"APIDELTA_RULESET": str(rules)}
        )
        assert result.exit_code == 0, result.output

    def test_invalid_rules_file_exits_2(
        self, tmp_path: Path, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        rules = tmp_path / "rules.json"
        rules.write_text("{\"not\": \"an array\"}", encoding="utf-8")
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(main, ["diff", "-r", str(rules), base, new])
        assert result.exit_code == 2
        assert "Error: Rules must be defined as a json array" in result.output

    def test_invalid_graph_exits_2(
        self, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        base, new = _files(write_graph, base_graph, {"@graph": []})
        result = CliRunner().invoke(main, ["diff", base, new])
        assert result.exit_code == 2
        assert "Error validating new graph" in result.output

    def test_config_rules_path(
        self,
        tmp_path: Path,
        base_graph: dict[str, Any],
        new_graph: dict[str, Any],
        write_graph: WriteGraph,
    ) -> None:
        """rules_path from the settings file replaces the shipped rules."""
        (tmp_path / "empty.json").write_text("[]", encoding="utf-8")
        config = tmp_path / "apidelta.yml"
        config.write_text("rules_path: empty.json\n", encoding="utf-8")
        _rename_operation(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        result = CliRunner().invoke(main, ["--config", str(config), "diff", base, new])
        assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# Diff-only mode
# ---------------------------------------------------------------------------


class TestCliDiffOnly:
    def test_no_changes(self, base_graph: dict[str, Any], write_graph: WriteGraph) -> None:
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(main, ["diff", "--diff-only", base, new])
        assert result.exit_code == 0, result.output
        assert "No changes." in result.output

    def test_any_change_exits_1(
        self, base_graph: dict[str, Any], new_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        _rename_api(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        result = CliRunner().invoke(main, ["diff", "--diff-only", base, new])
        assert result.exit_code == 1, result.output
        assert "#/web-api (apiContract:WebAPI, doc:RootDomainElement):" in result.output
        assert "- core:name: Shop API" in result.output
        assert "+ core:name: Store API" in result.output
        assert "Changed Nodes: 1" in result.output

    def test_env_ruleset_is_ignored(
        self, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(
            main, ["diff", "--diff-only", base, new], env={"APIDELTA_RULESET": "missing.json"}
        )
        assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# Directory mode
# ---------------------------------------------------------------------------


class TestCliDiffDir:
    def test_identical_trees(
        self, tmp_path: Path, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        write_graph("base/a.json", base_graph)
        write_graph("new/a.json", base_graph)
        result = CliRunner().invoke(
            main, ["diff", "--dir", str(tmp_path / "base"), str(tmp_path / "new")]
        )
        assert result.exit_code == 0, result.output
        assert "No changes." in result.output

    def test_removed_document(
        self, tmp_path: Path, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        write_graph("base/a.json", base_graph)
        write_graph("base/b.json", base_graph)
        write_graph("new/a.json", base_graph)
        result = CliRunner().invoke(
            main, ["diff", "--dir", str(tmp_path / "base"), str(tmp_path / "new")]
        )
        assert result.exit_code == 1, result.output
        assert "Removed APIs:" in result.output
        assert "- b.json" in result.output
        assert "APIs Removed: 1" in result.output

    def test_requires_directories(
        self, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(main, ["diff", "--dir", base, new])
        assert result.exit_code == 2
        assert "--dir requires two directories" in result.output

    def test_directories_need_dir_flag(self, tmp_path: Path) -> None:
        (tmp_path / "base").mkdir()
        (tmp_path / "new").mkdir()
        result = CliRunner().invoke(main, ["diff", str(tmp_path / "base"), str(tmp_path / "new")])
        assert result.exit_code == 2
        assert "must be files" in result.output


# ---------------------------------------------------------------------------
# Option conflicts and output
# ---------------------------------------------------------------------------


class TestCliDiffOptions:
    def test_diff_only_and_dir_conflict(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["diff", "--diff-only", "--dir", str(tmp_path), str(tmp_path)]
        )
        assert result.exit_code == 2
        assert "--diff-only and --dir cannot be used together" in result.output

    def test_ruleset_and_diff_only_conflict(
        self, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(main, ["diff", "--diff-only", "-r", "rules.json", base, new])
        assert result.exit_code == 2
        assert "--ruleset and --diff-only cannot be used together" in result.output

    def test_ruleset_and_dir_conflict(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["diff", "--dir", "--ruleset", "rules.json", str(tmp_path), str(tmp_path)]
        )
        assert result.exit_code == 2
        assert "--ruleset and --dir cannot be used together" in result.output

    def test_out_file_is_json(
        self,
        tmp_path: Path,
        base_graph: dict[str, Any],
        new_graph: dict[str, Any],
        write_graph: WriteGraph,
    ) -> None:
        _rename_operation(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        out = tmp_path / "out" / "changes.json"
        out.parent.mkdir()
        result = CliRunner().invoke(main, ["diff", base, new, "--out-file", str(out)])
        assert result.exit_code == 1, result.output
        assert "Breaking" not in result.output

        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["base_ref"] == base
        assert data["has_breaking_changes"] is True
        assert data["summary"]["Breaking"] == 1

    def test_out_file_as_text(
        self,
        tmp_path: Path,
        base_graph: dict[str, Any],
        new_graph: dict[str, Any],
        write_graph: WriteGraph,
    ) -> None:
        _rename_api(new_graph)
        base, new = _files(write_graph, base_graph, new_graph)
        out = tmp_path / "changes.txt"
        result = CliRunner().invoke(main, ["diff", base, new, "-o", str(out), "-f", "text"])
        assert result.exit_code == 0, result.output
        assert "Non-Breaking Changes: 1" in out.read_text(encoding="utf-8")

    def test_json_to_stdout(
        self, tmp_path: Path, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        write_graph("base/a.json", base_graph)
        write_graph("new/b.json", base_graph)
        result = CliRunner().invoke(
            main,
            ["diff", "--dir", "--format", "json", str(tmp_path / "base"), str(tmp_path / "new")],
        )
        assert result.exit_code == 1, result.output
        data = json.loads(result.output)
        assert data["added"] == ["b.json"]
        assert data["removed"] == ["a.json"]

    def test_non_mapping_context_exits_2(
        self, base_graph: dict[str, Any], write_graph: WriteGraph
    ) -> None:
        graph = {**base_graph, "@context": ["http://example.org/ctx"]}
        base, new = _files(write_graph, graph, graph)
        result = CliRunner().invoke(main, ["diff", "--diff-only", base, new])
        assert result.exit_code == 2
        assert "@context property must be a json object" in result.output

    def test_unexpected_failure_exits_2(
        self,
        monkeypatch: pytest.MonkeyPatch,
        base_graph: dict[str, Any],
        write_graph: WriteGraph,
    ) -> None:
        from apidelta.differencer import ApiDifferencer

        def fail(self: ApiDifferencer) -> None:
            raise RuntimeError("worker crashed")

        monkeypatch.setattr(ApiDifferencer, "find_changes", fail)
        base, new = _files(write_graph, base_graph, base_graph)
        result = CliRunner().invoke(main, ["diff", "--diff-only", base, new])
        assert result.exit_code == 2
        assert "worker crashed" in result.output

    def test_missing_argument_path(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            main, ["diff", str(tmp_path / "a.json"), str(tmp_path / "b.json")]
        )
        assert result.exit_code == 2
