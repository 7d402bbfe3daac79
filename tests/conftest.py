"""
Pytest configuration and shared fixtures for GraphPlan tests

This file provides the problem texts used across the test modules, helpers
to build parsed problems, and environment fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so tests can import modules
_src_dir = str(Path(__file__).parent.parent / "src")
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from graphplan.planning_graph import PlanningGraph
from utils.problem_parser import ParsedProblem, ProblemParser


# ===== Problem Texts =====

SHOPPING_PROBLEM = """
% buy potatoes by selling the pencil sharpener first
kup :: mam(penize), zbozi(X) => not mam(penize), mam(X).
prodej :: mam(X), zbozi(X) => not mam(X), mam(penize).

mam(orezavatko).
zbozi(orezavatko).
zbozi(brambory).

goal mam(brambory).
"""

SWAP_PROBLEM = """
go-to-obchod :: at(home) => at(obchod), not at(home).
go-to-home :: at(obchod) => at(home), not at(obchod).

at(home).
goal at(obchod).
"""

UNSOLVABLE_PROBLEM = """
go-to-obchod :: at(home) => at(obchod), not at(home).
go-to-home :: at(obchod) => at(home), not at(obchod).

at(home).
goal at(mars).
"""

DISTINCT_PROBLEM = """
go-to :: at(X), misto(Y), distinct(X, Y) => not at(X), at(Y).

at(home).
misto(home).
misto(school).
misto(obchod).

goal at(obchod).
"""

BLOCKS_PROBLEM = """
pickup :: clear(X), ontable(X), handempty => holding(X), not ontable(X), not clear(X), not handempty.
putdown :: holding(X) => ontable(X), clear(X), handempty, not holding(X).
stack :: holding(X), clear(Y) => on(X, Y), clear(X), handempty, not holding(X), not clear(Y).
unstack :: on(X, Y), clear(X), handempty => holding(X), clear(Y), not on(X, Y), not clear(X), not handempty.

ontable(a).
ontable(b).
clear(a).
clear(b).
handempty.

goal on(a, b).
"""

HANOI2_PROBLEM = """
presun :: vetsi(X, Y), volna(X), volna(Y), na(X, Z) => volna(Z), not volna(Y), not na(X, Z), na(X, Y).

vetsi(k1,k2).
vetsi(k1,d1). vetsi(k2,d1).
vetsi(k1,d2). vetsi(k2,d2).
vetsi(k1,d3). vetsi(k2,d3).

na(k1,k2). na(k2,d1).
volna(k1). volna(d2). volna(d3).

goals
na(k1,k2). na(k2,d3).
volna(k1). volna(d1). volna(d2).
"""

HANOI3_PROBLEM = """
presun :: vetsi(X, Y), volna(X), volna(Y), na(X, Z) => volna(Z), not volna(Y), not na(X, Z), na(X, Y).

vetsi(k1,k2). vetsi(k1,k3). vetsi(k2,k3).
vetsi(k1,d1). vetsi(k2,d1). vetsi(k3,d1).
vetsi(k1,d2). vetsi(k2,d2). vetsi(k3,d2).
vetsi(k1,d3). vetsi(k2,d3). vetsi(k3,d3).

na(k1,k2). na(k2,k3). na(k3,d1).
volna(k1). volna(d2). volna(d3).

goals
na(k1,k2). na(k2,k3). na(k3,d3).
volna(k1). volna(d1). volna(d2).
"""


# ===== Problem Fixtures =====

@pytest.fixture
def shopping_problem() -> ParsedProblem:
    return ProblemParser.parse(SHOPPING_PROBLEM)


@pytest.fixture
def swap_problem() -> ParsedProblem:
    return ProblemParser.parse(SWAP_PROBLEM)


@pytest.fixture
def unsolvable_problem() -> ParsedProblem:
    return ProblemParser.parse(UNSOLVABLE_PROBLEM)


@pytest.fixture
def distinct_problem() -> ParsedProblem:
    return ProblemParser.parse(DISTINCT_PROBLEM)


@pytest.fixture
def blocks_problem() -> ParsedProblem:
    return ProblemParser.parse(BLOCKS_PROBLEM)


@pytest.fixture
def hanoi2_problem() -> ParsedProblem:
    return ProblemParser.parse(HANOI2_PROBLEM)


@pytest.fixture
def hanoi3_problem() -> ParsedProblem:
    return ProblemParser.parse(HANOI3_PROBLEM)


def make_graph(problem: ParsedProblem, **kwargs) -> PlanningGraph:
    """Create a planning graph initialized with a parsed problem"""
    graph = PlanningGraph(**kwargs)
    graph.initialize(problem.actions, problem.initial_state, problem.goals)
    return graph


# ===== File and Environment Fixtures =====

@pytest.fixture
def problem_file(tmp_path):
    """Write a problem text to a temporary file and return its path"""
    def _write(text: str, name: str = "problem.txt") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def temp_log_dir(tmp_path) -> Path:
    """Create temporary log directory for tests"""
    log_dir = tmp_path / "logs"
    log_dir.mkdir(exist_ok=True)
    return log_dir


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every GRAPHPLAN_* setting from the environment"""
    for name in ("GRAPHPLAN_VERBOSE", "GRAPHPLAN_MAX_LAYERS",
                 "GRAPHPLAN_LOG_DIR", "GRAPHPLAN_STRICT_MUTEXES"):
        monkeypatch.delenv(name, raising=False)
    yield
