"""
GraphPlan: Planning Graph Expansion and Serial Plan Extraction

The planning graph is a sequence of BiLayers. Layer 0 holds the initial
facts; every later layer pairs the action layer built from the previous facts
with the fact layer those actions produce.

Algorithm:
1. Expand one layer at a time until all goals appear without mutexes
2. Extract a plan backwards: cover the required facts of layer i with
   pairwise non-mutex supporting actions, then require their preconditions
   at layer i - 1
3. Cache every required set that fails at a layer as a no-good
4. Stop when extraction succeeds, or when the graph has reached its fixed
   point and the last extraction added no no-good at the fixed-point layer

Example:
    graph = PlanningGraph()
    graph.initialize(schemas, initial_facts, goals)
    result = graph.solve()
    if result.solved:
        for action in result.plan:
            print(action)
"""

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action, ActionList
from graphplan.action_layer import ActionLayer
from graphplan.fact_layer import FactLayer
from graphplan.predicate import FactSet, Predicate


class PlanningGraphError(RuntimeError):
    """Raised when the planning graph is misused or an invariant is broken"""


class PlanStatus(Enum):
    SOLVED = "solved"
    UNSOLVABLE = "unsolvable"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass
class PlanResult:
    """
    Outcome of PlanningGraph.solve()

    Attributes:
        status: SOLVED, UNSOLVABLE or BUDGET_EXHAUSTED
        plan: Serial plan without no-ops (None unless solved)
        layers_built: Number of expansions performed
        fixed_point_layer: Index of the first fixed-point layer, if reached
        extraction_attempts: How many times backward extraction was started
        no_goods: Total number of no-goods recorded over all layers
    """
    status: PlanStatus
    plan: Optional[ActionList] = None
    layers_built: int = 0
    fixed_point_layer: Optional[int] = None
    extraction_attempts: int = 0
    no_goods: int = 0

    @property
    def solved(self) -> bool:
        return self.status == PlanStatus.SOLVED


class BiLayer:
    """
    One level of the planning graph

    Attributes:
        actions: Action layer leading to this level (None for the initial layer)
        facts: Fact layer of this level
        support: Map fact -> actions of `actions` that add it
        no_goods: Required fact sets proven unsolvable at this level
    """

    def __init__(self, facts: FactLayer, actions: Optional[ActionLayer] = None,
                 support: Optional[Dict[Predicate, ActionList]] = None):
        self.facts = facts
        self.actions = actions
        self.support: Dict[Predicate, ActionList] = support if support is not None else {}
        self.no_goods: List[FactSet] = []

    def add_no_good(self, facts: Iterable[Predicate]):
        self.no_goods.append(FactSet(facts))

    def is_no_good(self, facts: FactSet) -> bool:
        """True if `facts` contains a recorded no-good (a superset cannot succeed either)"""
        return any(facts.contains_all(no_good) for no_good in self.no_goods)

    @property
    def no_good_count(self) -> int:
        return len(self.no_goods)

    def __repr__(self) -> str:
        n_actions = len(self.actions) if self.actions is not None else 0
        return (f"BiLayer(n_actions={n_actions}, n_facts={len(self.facts)}, "
                f"n_no_goods={len(self.no_goods)})")


class PlanningGraph:
    """
    GraphPlan planner over parameterized action schemas

    Not safe for concurrent use: the action schemas are shared templates whose
    bindings are rewritten during every expansion.
    """

    def __init__(self, verbose: bool = False, strict_mutexes: bool = False,
                 max_layers: int = 0):
        """
        Initialize planner

        Args:
            verbose: Print progress to stdout
            strict_mutexes: Also derive action mutexes from mutex preconditions
            max_layers: Stop solve() after this many expansions (0 = no limit)
        """
        if max_layers < 0:
            raise ValueError(f"max_layers must be >= 0, got {max_layers}")
        self.verbose = verbose
        self.strict_mutexes = strict_mutexes
        self.max_layers = max_layers

        self._actions: List[Action] = []
        self._goals = FactSet()
        self._layers: List[BiLayer] = []
        self._fixed_point: Optional[BiLayer] = None
        self._fixed_point_index: Optional[int] = None
        self._goals_reachable = False
        self._extraction_attempts = 0

    def initialize(self, actions: Iterable[Action], initial_state: Iterable[Predicate],
                   goals: Iterable[Predicate]):
        """
        Reset the graph for a new problem

        Args:
            actions: Action schemas
            initial_state: Ground initial facts
            goals: Ground goal facts
        """
        self._actions = list(actions)
        for action in self._actions:
            if action.is_instance:
                raise PlanningGraphError(f"Expected action schemas, got ground action {action}")

        self._goals = FactSet(goals)
        if not self._goals.is_grounded():
            raise PlanningGraphError(f"Goals must be ground: {self._goals}")

        initial_facts = FactSet(initial_state)
        if not initial_facts.is_grounded():
            raise PlanningGraphError(f"Initial facts must be ground: {initial_facts}")

        self._layers = [BiLayer(FactLayer(initial_facts))]
        self._fixed_point = None
        self._fixed_point_index = None
        self._goals_reachable = False
        self._extraction_attempts = 0

    @property
    def actions(self) -> List[Action]:
        return list(self._actions)

    @property
    def goals(self) -> FactSet:
        return self._goals

    @property
    def layers(self) -> List[BiLayer]:
        return list(self._layers)

    @property
    def fixed_point(self) -> Optional[BiLayer]:
        return self._fixed_point

    @property
    def fixed_point_index(self) -> Optional[int]:
        return self._fixed_point_index

    @property
    def layers_built(self) -> int:
        return max(len(self._layers) - 1, 0)

    def last_layer(self) -> BiLayer:
        if not self._layers:
            raise PlanningGraphError("Planning graph was not initialized yet")
        return self._layers[-1]

    def is_goal_reachable(self) -> bool:
        """True if the last fact layer holds every goal with no mutex among them"""
        self.last_layer()
        return self._goals_reachable

    def expand(self) -> bool:
        """
        Build the next action layer and fact layer

        Returns:
            False when the graph cannot usefully grow any more: the fixed point
            has been reached and the goals are still not reachable

        Raises:
            PlanningGraphError: if called before initialize(), or if a layer
                after the fixed point differs from its predecessor
        """
        previous = self.last_layer()

        support: Dict[Predicate, ActionList] = {}
        action_layer = previous.facts.build_action_layer(
            self._actions, strict_mutexes=self.strict_mutexes
        )
        fact_layer = action_layer.build_fact_layer(support)
        bilayer = BiLayer(fact_layer, action_layer, support)
        self._layers.append(bilayer)
        index = len(self._layers) - 1

        self._log(f"Layer #{index} built: {len(action_layer)} actions, "
                  f"{len(action_layer.mutexes)} action mutexes, {len(fact_layer)} facts, "
                  f"{len(fact_layer.mutexes)} fact mutexes")

        if previous.facts == fact_layer:
            if self._fixed_point is None:
                self._fixed_point = bilayer
                self._fixed_point_index = index
                self._log(f"Fixed point reached at layer #{index}")
        elif self._fixed_point is not None:
            raise PlanningGraphError(
                f"Layer #{index} differs from its predecessor although the "
                f"fixed point was reached at layer #{self._fixed_point_index}"
            )

        self._goals_reachable = fact_layer.supports_goals(self._goals)
        if self._goals_reachable:
            self._log("All goals are contained in the fact layer and there are no mutexes among them")
            return True
        return self._fixed_point is None

    def find_serial_plan(self) -> Optional[ActionList]:
        """
        Extract a serial plan from the last layer

        Returns:
            Action sequence including no-ops, or None if the goals are not
            reachable yet or no plan exists in the current graph
        """
        self.last_layer()
        if not self._goals_reachable:
            return None
        self._extraction_attempts += 1
        return self._extract(len(self._layers) - 1, self._goals)

    def solve(self) -> PlanResult:
        """
        Expand the graph and extract a plan

        Returns:
            PlanResult; `plan` holds the no-op free action sequence when solved
        """
        self.last_layer()

        while True:
            if self.max_layers and self.layers_built >= self.max_layers:
                self._log(f"Layer budget of {self.max_layers} exhausted")
                return self._result(PlanStatus.BUDGET_EXHAUSTED)

            if not self.expand():
                break
            if not self._goals_reachable:
                continue

            old_no_goods = self._fixed_point.no_good_count if self._fixed_point else 0
            plan = self.find_serial_plan()
            if plan is not None:
                self._log("Serial plan was found")
                return self._result(PlanStatus.SOLVED, plan.without_noops())

            if self._fixed_point is None:
                self._log("Fixed point not reached yet - resuming")
                continue
            if self._fixed_point.no_good_count != old_no_goods:
                self._log("New no-good found at fixed point - resuming")
                continue
            break

        self._log("Termination condition reached")
        return self._result(PlanStatus.UNSOLVABLE)

    def _result(self, status: PlanStatus, plan: Optional[ActionList] = None) -> PlanResult:
        return PlanResult(
            status=status,
            plan=plan,
            layers_built=self.layers_built,
            fixed_point_layer=self._fixed_point_index,
            extraction_attempts=self._extraction_attempts,
            no_goods=sum(layer.no_good_count for layer in self._layers),
        )

    def _extract(self, index: int, required: FactSet) -> Optional[ActionList]:
        """
        Find actions for layers 1..index that make `required` true at `index`

        Returns:
            Actions in execution order (no-ops included), or None
        """
        bilayer = self._layers[index]
        if not bilayer.facts.supports_goals(required):
            return None
        if index == 0:
            return ActionList()
        if bilayer.is_no_good(required):
            return None

        for chosen in self._covers(bilayer, list(required)):
            previous = self._extract(index - 1, chosen.preconditions())
            if previous is not None:
                previous.extend(chosen)
                return previous

        bilayer.add_no_good(required)
        return None

    def _covers(self, bilayer: BiLayer, required: List[Predicate]) -> Iterator[ActionList]:
        """
        Enumerate mutex-free action sets covering every required fact

        Facts are covered in order, each by one of its supporting actions in
        support-list order. An action already chosen for an earlier fact is
        reused rather than added twice. Uses an explicit cursor per fact
        instead of recursion.
        """
        if not required:
            yield ActionList()
            return

        action_layer = bilayer.actions
        chosen: List[Action] = []
        appended: List[bool] = []
        cursors = [0] * len(required)
        position = 0

        while position >= 0:
            if position == len(required):
                yield ActionList(chosen)
                position -= 1
                if appended.pop():
                    chosen.pop()
                continue

            supporters = bilayer.support.get(required[position], ())
            advanced = False
            while cursors[position] < len(supporters):
                action = supporters[cursors[position]]
                cursors[position] += 1
                if any(action_layer.is_mutex(action, other) for other in chosen):
                    continue
                is_new = action not in chosen
                if is_new:
                    chosen.append(action)
                appended.append(is_new)
                position += 1
                advanced = True
                break

            if not advanced:
                cursors[position] = 0
                position -= 1
                if position >= 0 and appended.pop():
                    chosen.pop()

    def _log(self, message: str):
        if self.verbose:
            print(f"[GraphPlan] {message}")
