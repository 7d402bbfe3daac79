"""
Plan Execution Simulator

Replays a serial plan on a STRIPS state: every action must have its
preconditions satisfied, then its negative effects are removed and its
positive effects added. Used to check plans returned by the planner.
"""

import sys
from pathlib import Path
from typing import Iterable, Optional

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action
from graphplan.predicate import FactSet, Predicate


class PlanExecutionError(ValueError):
    """Raised when a plan step is not applicable in the current state"""

    def __init__(self, message: str, step: Optional[int] = None,
                 action: Optional[Action] = None):
        self.step = step
        self.action = action
        super().__init__(message)


def apply_action(state: FactSet, action: Action) -> FactSet:
    """
    Apply one ground action to a state

    Args:
        state: Current state (not modified)
        action: Ground action

    Returns:
        Successor state

    Raises:
        PlanExecutionError: if the action is not ground or a precondition is missing
    """
    if not action.is_grounded():
        raise PlanExecutionError(f"Action {action} is not ground", action=action)

    missing = [p for p in action.preconditions if p not in state]
    if missing:
        raise PlanExecutionError(
            f"Action {action} is not applicable, missing: {', '.join(str(p) for p in missing)}",
            action=action
        )

    successor = FactSet(fact for fact in state if fact not in action.negative_effects)
    successor.update(action.positive_effects)
    return successor


def apply_plan(initial_state: Iterable[Predicate], plan: Iterable[Action]) -> FactSet:
    """
    Execute a plan from the initial state

    Returns:
        Final state

    Raises:
        PlanExecutionError: with the failing step index (0-based)
    """
    state = FactSet(initial_state)
    for step, action in enumerate(plan):
        try:
            state = apply_action(state, action)
        except PlanExecutionError as e:
            raise PlanExecutionError(f"Step {step + 1}: {e}", step=step, action=action) from e
    return state


def validate_plan(initial_state: Iterable[Predicate], plan: Iterable[Action],
                  goals: Iterable[Predicate]) -> bool:
    """
    Check that a plan is executable and reaches every goal

    Returns:
        True if all steps apply and the final state contains all goals
    """
    try:
        final_state = apply_plan(initial_state, plan)
    except PlanExecutionError:
        return False
    return final_state.contains_all(goals)
