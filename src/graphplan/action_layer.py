"""
Action Layer of the Planning Graph

An action layer holds every ground action applicable to the previous fact
layer (no-ops included) and the pairs of actions that cannot appear in the
same step:

- interference: one action deletes a fact the other one adds
- conflicting needs: one action deletes a precondition of the other one

With strict mutexes enabled, two actions whose preconditions are mutex in the
source fact layer are mutex as well.
"""

import sys
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action, ActionList
from graphplan.fact_layer import FactLayer
from graphplan.mutex import MutexRelation
from graphplan.predicate import Predicate


class ActionLayer:
    """
    Ground actions of one graph level plus their mutex relation

    Attributes:
        actions: Ground actions in layer order
        mutexes: Symmetric relation over actions that exclude each other
    """

    def __init__(self, actions: Iterable[Action] = ()):
        self.actions: List[Action] = []
        self.mutexes: MutexRelation[Action] = MutexRelation()
        for action in actions:
            self.add_action(action)

    def add_action(self, action: Action):
        if not action.is_instance:
            raise ValueError(f"Action layers only hold ground actions, got schema {action.name}")
        self.actions.append(action)

    def add_mutex(self, first: Action, second: Action):
        if first == second:
            return
        self.mutexes.add(first, second)

    def is_mutex(self, first: Action, second: Action) -> bool:
        return self.mutexes.contains(first, second)

    def find_mutex_actions(self, source: Optional[FactLayer] = None,
                           dependencies: Optional[Dict[Predicate, ActionList]] = None):
        """
        Compute the action mutex relation for the whole layer

        Each fact's dependency list (the actions adding or deleting it) gives
        the interference pairs; an index of required facts gives the
        conflicting-needs pairs. Only the actions touching a deleted fact are
        checked against each other.

        Args:
            source: Fact layer this action layer was built from; if given,
                actions with mutex preconditions are marked mutex too
            dependencies: Map fact -> actions of this layer that add or
                delete it, as filled while grounding; built here if omitted
        """
        if dependencies is None:
            dependencies = {}
            for action in self.actions:
                action.register(dependencies)

        consumers: Dict[Predicate, List[Action]] = {}
        for action in self.actions:
            for fact in action.preconditions:
                consumers.setdefault(fact, []).append(action)

        for fact, affected in dependencies.items():
            deleters = [action for action in affected if fact in action.negative_effects]
            if not deleters:
                continue
            producers = [action for action in affected if fact in action.positive_effects]
            for action in deleters:
                for other in producers:
                    self.add_mutex(action, other)
                for other in consumers.get(fact, ()):
                    self.add_mutex(action, other)

        if source is None:
            return
        for first_fact, second_fact in source.mutexes:
            for first in consumers.get(first_fact, ()):
                for second in consumers.get(second_fact, ()):
                    self.add_mutex(first, second)

    def build_fact_layer(self, support: Optional[Dict[Predicate, ActionList]] = None) -> FactLayer:
        """
        Derive the next fact layer

        Its facts are the positive effects of all actions in this layer. Two
        facts are mutex when every pair of actions supporting them is mutex.

        Args:
            support: Optional map to fill with fact -> supporting actions,
                in layer order

        Returns:
            New FactLayer with mutexes computed
        """
        if support is None:
            support = {}

        for action in self.actions:
            for fact in action.positive_effects:
                supporters = support.setdefault(fact, ActionList())
                if action not in supporters:
                    supporters.append(action)

        facts = sorted(support.keys(), key=lambda fact: fact.sort_key)
        layer = FactLayer(facts)

        for position, first in enumerate(facts):
            for second in facts[position:]:
                if not self._has_compatible_support(support[first], support[second]):
                    layer.add_mutex(first, second)
        return layer

    def _has_compatible_support(self, first_support: List[Action],
                                second_support: List[Action]) -> bool:
        for first in first_support:
            for second in second_support:
                if not self.is_mutex(first, second):
                    return True
        return False

    def __contains__(self, action) -> bool:
        return action in self.actions

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __repr__(self) -> str:
        return f"ActionLayer(n_actions={len(self.actions)}, n_mutexes={len(self.mutexes)})"
