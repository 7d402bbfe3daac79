"""
Reference Planner - pyperplan

Solves the same problem with pyperplan's breadth-first search on the exported
PDDL. Breadth-first search returns a shortest serial plan, so its length is a
lower bound for the GraphPlan result and both must agree on solvability.

pyperplan handles plain STRIPS only: problems with distinct constraints are
refused.
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pyperplan import planner

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action
from graphplan.pddl_export import PDDLExporter
from graphplan.predicate import Predicate


class ReferencePlanner:
    """
    Wrapper for classical planning using pyperplan
    """

    def __init__(self, search: str = 'bfs'):
        """
        Initialize planner

        Args:
            search: Key of pyperplan's SEARCHES table (default breadth-first)
        """
        if search not in planner.SEARCHES:
            raise ValueError(f"Unknown pyperplan search '{search}'")
        self.search = search

    def solve(self, domain_file: str, problem_file: str) -> Optional[List[Tuple[str, List[str]]]]:
        """
        Solve a PDDL planning problem

        Args:
            domain_file: Path to PDDL domain file
            problem_file: Path to PDDL problem file

        Returns:
            List of (action_name, [parameters]) tuples, or None if no plan exists
        """
        plan = planner.search_plan(
            domain_file,
            problem_file,
            planner.SEARCHES[self.search],
            None
        )
        if plan is None:
            return None

        # pyperplan operator names look like "(kup brambory)"
        action_sequence = []
        for operator in plan:
            parts = operator.name.strip('()').split()
            action_sequence.append((parts[0], parts[1:]))
        return action_sequence

    def solve_from_strings(self, domain_str: str, problem_str: str) -> Optional[List[Tuple[str, List[str]]]]:
        """Solve a PDDL problem given as domain and problem text"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.pddl', delete=False) as domain_f:
            domain_f.write(domain_str)
            domain_file = domain_f.name

        with tempfile.NamedTemporaryFile(mode='w', suffix='.pddl', delete=False) as problem_f:
            problem_f.write(problem_str)
            problem_file = problem_f.name

        try:
            return self.solve(domain_file, problem_file)
        finally:
            os.unlink(domain_file)
            os.unlink(problem_file)

    def solve_problem(self, actions: Iterable[Action], initial_state: Iterable[Predicate],
                      goals: Iterable[Predicate]) -> Optional[List[Tuple[str, List[str]]]]:
        """
        Export a parsed problem to PDDL and solve it

        Raises:
            ValueError: if an action schema uses distinct constraints
        """
        actions = list(actions)
        constrained = [action.name for action in actions if action.distinct_pairs]
        if constrained:
            raise ValueError(
                f"pyperplan does not support distinct constraints (actions: {', '.join(constrained)})"
            )
        task = PDDLExporter().export(actions, initial_state, goals)
        return self.solve_from_strings(task.domain, task.problem)


def supports_problem(actions: Iterable[Action]) -> bool:
    """True if the problem can be cross-checked with pyperplan"""
    return not any(action.distinct_pairs for action in actions)
