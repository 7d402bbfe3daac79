"""
Fact Layer of the Planning Graph

A fact layer is the set of facts that may hold after a given number of steps,
together with the pairs of facts that can never hold at the same time
(fact mutexes). From a fact layer the next action layer is derived by
grounding every action schema against it and adding one no-op per fact.
"""

import sys
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action, ActionList
from graphplan.mutex import MutexRelation
from graphplan.predicate import FactSet, Predicate


class FactLayer:
    """
    Facts of one graph level plus their mutex relation

    Attributes:
        facts: Ground facts of this level
        mutexes: Symmetric relation over facts that exclude each other
    """

    def __init__(self, facts: Iterable[Predicate] = ()):
        self.facts = FactSet()
        self.mutexes: MutexRelation[Predicate] = MutexRelation()
        for fact in facts:
            self.add(fact)

    def add(self, fact: Predicate) -> bool:
        if not fact.is_grounded():
            raise ValueError(f"Fact layers only hold ground facts, got {fact}")
        return self.facts.add(fact)

    def add_mutex(self, first: Predicate, second: Predicate):
        self.mutexes.add(first, second)

    def is_mutex(self, first: Predicate, second: Predicate) -> bool:
        return self.mutexes.contains(first, second)

    def supports_goals(self, goals: Iterable[Predicate]) -> bool:
        """
        Check that all goals are present and no two of them are mutex

        Args:
            goals: Goal facts

        Returns:
            True if every goal is in the layer and the goals are pairwise
            non-mutex
        """
        goals = list(goals)
        if not self.facts.contains_all(goals):
            return False
        for position, first in enumerate(goals):
            for second in goals[position:]:
                if self.is_mutex(first, second):
                    return False
        return True

    def build_action_layer(self, schemas: Iterable[Action],
                           dependencies: Optional[Dict[Predicate, ActionList]] = None,
                           strict_mutexes: bool = False):
        """
        Derive the next action layer

        Every schema is grounded against this layer and one no-op per fact is
        added. No-ops come first in the layer, so they also come first in the
        support lists of the following fact layer.

        Args:
            schemas: Action schemas (shared templates, bindings reset here)
            dependencies: Optional empty map, filled while grounding with
                fact -> actions that add or delete it; the mutex computation
                reads it
            strict_mutexes: Also apply the precondition-mutex rules

        Returns:
            ActionLayer with its mutex relation computed
        """
        from graphplan.action_layer import ActionLayer

        if dependencies is None:
            dependencies = {}

        noops: List[Action] = []
        for fact in self.facts:
            noop = Action.noop(fact)
            noop.register(dependencies)
            noops.append(noop)

        instances: Dict = {}
        for schema in schemas:
            schema.find_instances(self, instances, dependencies,
                                  respect_mutexes=strict_mutexes)

        layer = ActionLayer(noops + list(instances.values()))
        layer.find_mutex_actions(self if strict_mutexes else None, dependencies)
        return layer

    def __contains__(self, fact) -> bool:
        return fact in self.facts

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self.facts)

    def __len__(self) -> int:
        return len(self.facts)

    def __eq__(self, other) -> bool:
        """Structural equality: same facts and same mutex pairs"""
        if not isinstance(other, FactLayer):
            return False
        return self.facts.same_members(other.facts) and self.mutexes == other.mutexes

    __hash__ = None

    def __str__(self) -> str:
        return f"FactLayer({self.facts})"

    def __repr__(self) -> str:
        return f"FactLayer(n_facts={len(self.facts)}, n_mutexes={len(self.mutexes)})"
