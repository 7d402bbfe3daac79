"""
Unit tests for PDDL export

Tests cover:
- Domain text (requirements, constants, predicates, actions)
- Problem text (objects, init, goal)
- distinct constraints as negated equality
- Name normalization and arity conflicts
"""

import pytest

from graphplan.pddl_export import PDDLExporter, export_problem, pddl_name
from utils.problem_parser import ProblemParser

from tests.conftest import BLOCKS_PROBLEM, DISTINCT_PROBLEM, SHOPPING_PROBLEM


def export(text: str, **kwargs):
    problem = ProblemParser.parse(text)
    return PDDLExporter(**kwargs).export(problem.actions, problem.initial_state, problem.goals)


# ===== Test Names =====

class TestNames:
    """Test PDDL name normalization"""

    def test_lower_case(self):
        assert pddl_name("Shopping") == "shopping"

    def test_leading_digit(self):
        assert pddl_name("3blocks") == "n3blocks"

    def test_hyphen_is_kept(self):
        assert pddl_name("go-to") == "go-to"


# ===== Test Domain =====

class TestDomain:
    """Test exported domain text"""

    def test_shopping_domain(self):
        task = export(SHOPPING_PROBLEM, domain_name="shopping")
        domain = task.domain
        assert domain.startswith("(define (domain shopping)")
        assert "(:requirements :strips)" in domain
        assert "(:constants penize)" in domain
        assert "(mam ?a0)" in domain
        assert "(zbozi ?a0)" in domain
        assert "(:action kup" in domain
        assert ":parameters (?x0)" in domain
        assert ":precondition (and (mam penize) (zbozi ?x0))" in domain
        assert ":effect (and (mam ?x0) (not (mam penize)))" in domain

    def test_zero_arity_predicate(self):
        domain = export(BLOCKS_PROBLEM).domain
        assert "    (handempty)" in domain
        assert "(on ?a0 ?a1)" in domain
        assert ":parameters (?x0 ?x1)" in domain

    def test_distinct_as_negated_equality(self):
        domain = export(DISTINCT_PROBLEM).domain
        assert ":equality" in domain
        assert ":negative-preconditions" in domain
        assert "(not (= ?x0 ?x1))" in domain

    def test_action_without_parameters(self):
        domain = export("go :: at(home) => at(school), not at(home). at(home). goal at(school).").domain
        assert ":parameters ()" in domain
        assert "(:constants home school)" in domain

    def test_arity_conflict(self):
        with pytest.raises(ValueError):
            export("p(a). p(a, b). goal p(a).")


# ===== Test Problem =====

class TestProblem:
    """Test exported problem text"""

    def test_shopping_problem(self):
        problem = export(SHOPPING_PROBLEM, problem_name="buy").problem
        assert problem.startswith("(define (problem buy)")
        assert "(:domain graphplan)" in problem
        assert "(:objects brambory orezavatko)" in problem
        assert "(:init (mam orezavatko) (zbozi orezavatko) (zbozi brambory))" in problem
        assert "(:goal (and (mam brambory)))" in problem

    def test_objects_omitted_when_all_are_constants(self):
        problem = export("go :: at(home) => at(school), not at(home). at(home). goal at(school).").problem
        assert ":objects" not in problem

    def test_export_problem_shortcut(self):
        parsed = ProblemParser.parse(SHOPPING_PROBLEM)
        domain, problem = export_problem(parsed.actions, parsed.initial_state, parsed.goals,
                                         domain_name="Shopping")
        assert "(domain shopping)" in domain
        assert "(:domain shopping)" in problem
