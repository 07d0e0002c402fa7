"""Tests for the sysview command-line interface."""

from __future__ import annotations

import csv
import io
import json

import pytest

from sysview.cli import create_parser, main
from sysview.client.memory import InMemoryBackend
from sysview.server.demo_data import seed_demo


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every CLI test from an empty directory with no SYSVIEW_ overrides."""
    import os

    for name in list(os.environ):
        if name.startswith("SYSVIEW_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def demo_backend(monkeypatch, repository):
    """Route ``sysview show`` to an in-memory backend with demo data."""
    from sysview.commands import show

    summary = seed_demo(repository, count=3, trace_count=2)
    monkeypatch.setattr(show, "build_backend", lambda config, args: InMemoryBackend(repository))
    return summary


class TestParser:
    def test_show_defaults(self):
        args = create_parser().parse_args(["show", "tree"])

        assert (args.view, args.page, args.size, args.format) == ("tree", 0, None, "text")
        assert args.sort is None

    def test_repeatable_options(self):
        args = create_parser().parse_args(
            ["show", "table", "--sort", "a,asc", "--sort", "b,desc", "--filter", "s:x"]
        )

        assert args.sort == ["a,asc", "b,desc"]
        assert args.filter == ["s:x"]

    def test_unknown_view_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["show", "pie"])


class TestBasicCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert capsys.readouterr().out.startswith("sysview ")

    def test_config_show_json(self, capsys, isolated_cwd):
        (isolated_cwd / ".sysview.toml").write_text("[query]\npage_size = 25\n")

        assert main(["config", "show", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["query"]["page_size"] == 25

    def test_config_show_toml(self, capsys):
        assert main(["config", "show"]) == 0
        assert "[backend]" in capsys.readouterr().out

    def test_config_path(self, capsys, isolated_cwd):
        assert main(["config", "path"]) == 1

        (isolated_cwd / ".sysview.toml").write_text("")
        capsys.readouterr()
        assert main(["config", "path"]) == 0
        assert capsys.readouterr().out.strip().endswith(".sysview.toml")

    def test_config_validate(self, capsys, isolated_cwd):
        assert main(["config", "validate"]) == 0

        (isolated_cwd / ".sysview.toml").write_text("[query]\npage_size = 0\n")
        assert main(["config", "validate"]) == 1
        assert "page_size" in capsys.readouterr().err

    def test_broken_config_reports_error(self, capsys, isolated_cwd):
        (isolated_cwd / ".sysview.toml").write_text("[query\n")

        assert main(["config", "show"]) == 1
        assert capsys.readouterr().err.startswith("Error:")


class TestShow:
    def test_tree_text(self, capsys, demo_backend):
        assert main(["show", "tree"]) == 0

        out = capsys.readouterr().out
        lines = out.splitlines()
        assert lines[0].startswith("- Charge Time [")
        assert lines[1].startswith("  - Charge Time (vehicle) [")
        assert sum(1 for line in lines if line.startswith("- ")) == 3

    def test_table_csv(self, capsys, demo_backend):
        assert main(["show", "table", "--format", "csv"]) == 0

        rows = list(csv.reader(io.StringIO(capsys.readouterr().out)))
        assert rows[0][:2] == ["id", "typeTag"]
        assert len(rows) == 1 + 3 + 3 + 2

    def test_graph_json(self, capsys, demo_backend):
        assert main(["show", "graph", "--format", "json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert len(data["nodes"]) == 8
        assert len(data["edges"]) == 5

    def test_type_filter_and_selection(self, capsys, demo_backend):
        target = demo_backend.definitions[1]

        assert (
            main(
                [
                    "show",
                    "table",
                    "--type",
                    "RequirementDefinition",
                    "--select",
                    target,
                    "--format",
                    "json",
                ]
            )
            == 0
        )

        data = json.loads(capsys.readouterr().out)
        assert {r["typeTag"] for r in data["rows"]} == {"RequirementDefinition"}
        assert data["selected"] == [target]

    def test_all_pages(self, capsys, demo_backend):
        assert main(["show", "table", "--size", "2", "--all-pages", "--format", "json"]) == 0

        assert len(json.loads(capsys.readouterr().out)["rows"]) == 8

    def test_single_page(self, capsys, demo_backend):
        assert main(["show", "table", "--size", "2", "--format", "json"]) == 0

        assert len(json.loads(capsys.readouterr().out)["rows"]) == 2

    def test_invalid_size_is_reported(self, capsys, demo_backend):
        assert main(["show", "tree", "--size", "500"]) == 1

        assert "Request rejected" in capsys.readouterr().err

    def test_bad_filter_is_reported(self, capsys, demo_backend):
        assert main(["show", "tree", "--filter", "nocolon"]) == 1

        assert "filter" in capsys.readouterr().err

    def test_csv_only_for_table(self, capsys, demo_backend):
        assert main(["show", "tree", "--format", "csv"]) == 1

    def test_unreachable_backend(self, capsys, isolated_cwd):
        (isolated_cwd / ".sysview.toml").write_text(
            '[backend]\nbase_url = "http://127.0.0.1:9/api/v1"\ntimeout = 2.0\n'
        )

        assert main(["show", "tree"]) == 1

        assert "Backend unavailable" in capsys.readouterr().err


class TestValidate:
    def test_clean_demo_model(self, capsys, demo_backend):
        assert main(["validate"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Found 8 elements")
        assert "─" * 60 in out
        assert "✓ All elements valid" in out

    def test_violations_fail(self, capsys, demo_backend, repository):
        stray = repository.create("PartUsage", {"definitionRef": "gone"})

        assert main(["validate"]) == 1

        out = capsys.readouterr().out
        assert f"ERROR [BROKEN_REF] {stray.id}" in out
        assert "✓ 8/9 elements valid" in out
        assert "❌ 1 errors" in out

    def test_skip_rule(self, capsys, demo_backend, repository):
        repository.create("PartUsage", {"definitionRef": "gone"})

        assert main(["validate", "--skip-rule", "BROKEN_REF"]) == 0

    def test_json(self, capsys, demo_backend, repository):
        repository.create("RequirementDefinition", {"reqId": "DEMO-REQ-001"})

        assert main(["validate", "--format", "json"]) == 1

        data = json.loads(capsys.readouterr().out)
        assert data["valid"] is False
        assert [v["ruleCode"] for v in data["violations"]] == ["DUP_REQID"]
        assert data["elementCount"] == 9
