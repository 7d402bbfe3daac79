"""
Integration tests for the command line entry point

Tests cover:
- Exit codes (plan found, no plan, errors)
- Printed plan and status lines
- Settings from arguments and environment
- Run logs and the pyperplan cross-check
"""

import json

import pytest

from main import build_arg_parser, main

from tests.conftest import (
    DISTINCT_PROBLEM,
    SHOPPING_PROBLEM,
    SWAP_PROBLEM,
    UNSOLVABLE_PROBLEM,
)


def output_lines(capsys):
    return capsys.readouterr().out.splitlines()


# ===== Test Argument Parser =====

class TestArguments:
    """Test command line parsing"""

    def test_defaults_fall_back_to_config(self):
        args = build_arg_parser().parse_args(["problem.txt"])
        assert args.problem == "problem.txt"
        assert args.verbose is None
        assert args.max_layers is None
        assert args.strict_mutexes is None
        assert args.log_dir is None
        assert args.no_log is False
        assert args.cross_check is False

    def test_all_options(self):
        args = build_arg_parser().parse_args(
            ["-v", "--max-layers", "5", "--strict-mutexes", "--log-dir", "out",
             "--cross-check", "p.txt"]
        )
        assert args.verbose is True
        assert args.max_layers == 5
        assert args.strict_mutexes is True
        assert args.log_dir == "out"
        assert args.cross_check is True


# ===== Test Exit Codes =====

class TestExitCodes:
    """Test results of complete runs"""

    def test_plan_found(self, problem_file, clean_env, capsys):
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log"]) == 0
        lines = output_lines(capsys)
        assert lines[0].startswith("Solved in ")
        assert lines[0].endswith(" milliseconds.")
        assert lines[1:] == ["prodej(orezavatko)", "kup(brambory)"]

    def test_plan_without_arguments(self, problem_file, clean_env, capsys):
        path = problem_file(SWAP_PROBLEM)
        assert main([str(path), "--no-log"]) == 0
        assert output_lines(capsys)[1:] == ["go-to-obchod"]

    def test_unsolvable(self, problem_file, clean_env, capsys):
        path = problem_file(UNSOLVABLE_PROBLEM)
        assert main([str(path), "--no-log"]) == 1
        assert output_lines(capsys)[-1] == "Serial plan does not exist. Planning failed."

    def test_budget_exhausted(self, problem_file, clean_env, capsys):
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log", "--max-layers", "1"]) == 1
        assert output_lines(capsys)[-1] == "Layer budget of 1 exhausted. Planning stopped."

    def test_budget_from_environment(self, problem_file, clean_env, monkeypatch, capsys):
        monkeypatch.setenv("GRAPHPLAN_MAX_LAYERS", "1")
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log"]) == 1
        assert "exhausted" in capsys.readouterr().out

    def test_argument_overrides_environment(self, problem_file, clean_env, monkeypatch):
        monkeypatch.setenv("GRAPHPLAN_MAX_LAYERS", "1")
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log", "--max-layers", "0"]) == 0

    def test_format_error(self, problem_file, clean_env, capsys):
        path = problem_file("at(home)\ngoal at(school).")
        assert main([str(path), "--no-log"]) == 2
        assert "ERROR: File format error: line 2" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, clean_env, capsys):
        assert main([str(tmp_path / "missing.txt"), "--no-log"]) == 2
        assert "ERROR: Input/output error" in capsys.readouterr().out

    def test_negative_budget_argument(self, problem_file, clean_env, capsys):
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log", "--max-layers", "-1"]) == 2

    def test_invalid_environment(self, problem_file, clean_env, monkeypatch, capsys):
        monkeypatch.setenv("GRAPHPLAN_MAX_LAYERS", "lots")
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log"]) == 2
        assert "Invalid configuration" in capsys.readouterr().out


# ===== Test Output Options =====

class TestOutputOptions:
    """Test verbose trace, logs and cross-check"""

    def test_verbose(self, problem_file, clean_env, capsys):
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log", "-v"]) == 0
        out = capsys.readouterr().out
        assert "[Problem] 2 action schemas" in out
        assert "[GraphPlan] Layer #1 built" in out

    def test_strict_mutexes(self, problem_file, clean_env, capsys):
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log", "--strict-mutexes"]) == 0
        assert output_lines(capsys)[1:] == ["prodej(orezavatko)", "kup(brambory)"]

    def test_run_log(self, problem_file, clean_env, temp_log_dir):
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--log-dir", str(temp_log_dir)]) == 0

        runs = list(temp_log_dir.iterdir())
        assert len(runs) == 1
        assert runs[0].name.endswith("_graphplan")
        data = json.loads((runs[0] / "execution.json").read_text())
        assert data["success"] is True
        assert data["planning_status"] == "solved"
        assert data["plan"] == ["prodej(orezavatko)", "kup(brambory)"]
        assert data["num_action_schemas"] == 2
        assert [layer["index"] for layer in data["layers"]] == [0, 1, 2]
        assert (runs[0] / "execution.txt").exists()

    def test_run_log_for_format_error(self, problem_file, clean_env, temp_log_dir):
        path = problem_file("at(home")
        assert main([str(path), "--log-dir", str(temp_log_dir)]) == 2
        run = next(temp_log_dir.iterdir())
        data = json.loads((run / "execution.json").read_text())
        assert data["parse_status"] == "failed"
        assert data["success"] is False

    def test_cross_check(self, problem_file, clean_env, capsys):
        pytest.importorskip("pyperplan")
        path = problem_file(SHOPPING_PROBLEM)
        assert main([str(path), "--no-log", "--cross-check"]) == 0
        assert "[Cross-check] pyperplan: 2 actions (agree)" in capsys.readouterr().out

    def test_cross_check_unsolvable(self, problem_file, clean_env, capsys):
        pytest.importorskip("pyperplan")
        path = problem_file(UNSOLVABLE_PROBLEM)
        assert main([str(path), "--no-log", "--cross-check"]) == 1
        assert "[Cross-check] pyperplan: no plan (agree)" in capsys.readouterr().out

    def test_cross_check_skips_distinct(self, problem_file, clean_env, capsys):
        path = problem_file(DISTINCT_PROBLEM)
        assert main([str(path), "--no-log", "--cross-check"]) == 0
        assert "[Cross-check] Skipped" in capsys.readouterr().out
