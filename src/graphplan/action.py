"""
Actions: Schemas, Ground Instances and No-ops

An action schema is a template such as

    kup :: mam(penize), zbozi(X) => not mam(penize), mam(X).

Its precondition, negative-effect and positive-effect sets share Binding
cells, so binding X while matching a precondition also fixes X in the
effects. Grounding a schema against a fact layer searches all consistent
assignments of its preconditions and clones each one into a ground instance.

Schemas are reused for every layer, so their bindings are cleared before and
after each grounding pass.
"""

import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.binding import Binding
from graphplan.predicate import FactSet, Predicate

DISTINCT_PREDICATE = "distinct"
NOOP_NAME = "no-op"


class ActionSchemaError(ValueError):
    """Raised when an action schema is malformed"""


class Action:
    """
    Action schema or ground action instance

    Attributes:
        name: Action name (e.g., "kup")
        preconditions: Facts that must hold before the action
        negative_effects: Facts deleted by the action
        positive_effects: Facts added by the action
        parameters: Variable cells of the schema in order of first appearance
        is_noop: True for the synthetic persistence action of a single fact
    """

    def __init__(self, name: str,
                 preconditions: Iterable[Predicate] = (),
                 negative_effects: Iterable[Predicate] = (),
                 positive_effects: Iterable[Predicate] = (),
                 is_noop: bool = False):
        """
        Initialize an action schema

        Precondition literals named `distinct` are consumed as inequality
        constraints between their two arguments instead of being kept as facts.

        Raises:
            ActionSchemaError: if a distinct literal does not have two
                arguments, or an effect uses a variable no precondition binds
        """
        self.name = name
        self.is_noop = is_noop
        self.preconditions = FactSet()
        self.negative_effects = FactSet(negative_effects)
        self.positive_effects = FactSet(positive_effects)
        self.distinct_pairs: List[Tuple[Binding, Binding]] = []

        for precondition in preconditions:
            if precondition.name == DISTINCT_PREDICATE:
                self._add_distinct(precondition)
            else:
                self.preconditions.add(precondition)

        self.parameters: List[Binding] = self._collect_parameters()
        self._arguments: Optional[Tuple[str, ...]] = None
        self._key: Optional[Tuple] = None
        self._validate()

    @classmethod
    def noop(cls, fact: Predicate) -> 'Action':
        """Create the no-op action that persists `fact` unchanged for one step"""
        action = cls(NOOP_NAME, [fact], [], [fact], is_noop=True)
        action._freeze(fact.values)
        return action

    def _add_distinct(self, literal: Predicate):
        if literal.arity != 2:
            raise ActionSchemaError(
                f"Action '{self.name}': distinct expects 2 arguments, got {literal.arity}"
            )
        first, second = literal.parameters
        try:
            first.mark_distinct(second)
        except ValueError as e:
            raise ActionSchemaError(f"Action '{self.name}': {e}") from e
        self.distinct_pairs.append((first, second))

    def _collect_parameters(self) -> List[Binding]:
        parameters: List[Binding] = []
        for fact_set in (self.preconditions, self.negative_effects, self.positive_effects):
            for predicate in fact_set:
                for variable in predicate.variables():
                    if variable not in parameters:
                        parameters.append(variable)
        return parameters

    def _validate(self):
        precondition_vars = set()
        for predicate in self.preconditions:
            precondition_vars.update(predicate.variables())
        for fact_set in (self.negative_effects, self.positive_effects):
            for predicate in fact_set:
                unbound = [v for v in predicate.variables() if v not in precondition_vars]
                if unbound:
                    raise ActionSchemaError(
                        f"Action '{self.name}': effect {predicate} uses a variable "
                        f"that no precondition binds"
                    )

    def _freeze(self, arguments: Tuple[str, ...]):
        self._arguments = tuple(arguments)
        self._key = (
            self.is_noop,
            self.name,
            self._arguments,
            frozenset(self.preconditions.keys()),
            frozenset(self.negative_effects.keys()),
            frozenset(self.positive_effects.keys()),
        )

    @property
    def is_instance(self) -> bool:
        """True for ground instances and no-ops (immutable actions)"""
        return self._key is not None

    @property
    def arguments(self) -> Tuple[Optional[str], ...]:
        """Parameter values; fixed for instances, current bindings for schemas"""
        if self._arguments is not None:
            return self._arguments
        return tuple(parameter.value for parameter in self.parameters)

    @property
    def key(self) -> Tuple:
        if self._key is None:
            raise ValueError(f"Action schema '{self.name}' has no value key")
        return self._key

    def is_grounded(self) -> bool:
        return (self.preconditions.is_grounded()
                and self.negative_effects.is_grounded()
                and self.positive_effects.is_grounded())

    def clear_bindings(self):
        """Reset every variable of the schema to unbound"""
        self.preconditions.clear_bindings()
        self.negative_effects.clear_bindings()
        self.positive_effects.clear_bindings()

    def grounded_clone(self) -> 'Action':
        """
        Clone the schema under its current bindings into a ground instance

        Raises:
            ValueError: if any parameter is still unbound
        """
        if not self.is_grounded():
            raise ValueError(f"Cannot ground action {self}: unbound parameters")
        instance = Action(
            self.name,
            [p.grounded_clone() for p in self.preconditions],
            [p.grounded_clone() for p in self.negative_effects],
            [p.grounded_clone() for p in self.positive_effects],
            is_noop=self.is_noop,
        )
        instance._freeze(self.arguments)
        return instance

    def find_instances(self, layer, instances: Dict[Tuple, 'Action'],
                       dependencies: Optional[Dict[Predicate, 'ActionList']] = None,
                       respect_mutexes: bool = False) -> int:
        """
        Ground this schema against a fact layer

        Every precondition is unified with some same-named fact of the layer,
        extending one shared assignment; each complete assignment is cloned
        into a ground instance.

        Args:
            layer: Source FactLayer (needs `.facts` and `.is_mutex()`)
            instances: Ordered map key -> instance; new instances are appended
            dependencies: Optional map fact -> actions that add or delete it
            respect_mutexes: Skip assignments whose matched facts are mutex

        Returns:
            Number of new instances found
        """
        if self.is_instance:
            raise ValueError(f"{self} is already ground")

        preconditions = list(self.preconditions)
        found = [0]

        self.clear_bindings()
        try:
            self._ground_from(layer, preconditions, 0, [], instances,
                              dependencies, respect_mutexes, found)
        finally:
            self.clear_bindings()
        return found[0]

    def _ground_from(self, layer, preconditions: List[Predicate], position: int,
                     matched: List[Predicate], instances: Dict[Tuple, 'Action'],
                     dependencies, respect_mutexes: bool, found: List[int]):
        if position == len(preconditions):
            if not self.is_grounded():
                return
            instance = self.grounded_clone()
            if instance.key in instances:
                return
            instances[instance.key] = instance
            found[0] += 1
            if dependencies is not None:
                instance.register(dependencies)
            return

        precondition = preconditions[position]
        for fact in layer.facts.by_name(precondition.name):
            if respect_mutexes and any(layer.is_mutex(fact, other) for other in matched):
                continue
            bound: List[Binding] = []
            if not precondition.unify_with(fact, bound):
                continue
            matched.append(fact)
            self._ground_from(layer, preconditions, position + 1, matched,
                              instances, dependencies, respect_mutexes, found)
            matched.pop()
            for binding in bound:
                binding.clear()

    def register(self, dependencies: Dict[Predicate, 'ActionList']):
        """Record this action against every fact it adds or deletes"""
        for fact_set in (self.negative_effects, self.positive_effects):
            for fact in fact_set:
                affected = dependencies.setdefault(fact, ActionList())
                if self not in affected:
                    affected.append(self)

    def describe(self) -> str:
        """Full form: name :: preconditions => effects"""
        effects = [f"not {p}" for p in self.negative_effects]
        effects += [str(p) for p in self.positive_effects]
        return f"{self.name} :: {self.preconditions} => {','.join(effects)}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Action):
            return False
        if self._key is None or other._key is None:
            return self is other
        return self._key == other._key

    def __hash__(self) -> int:
        if self._key is None:
            return id(self)
        return hash(self._key)

    def __str__(self) -> str:
        if self.is_noop:
            return f"{NOOP_NAME}({self.preconditions})"
        arguments = self.arguments
        if not arguments:
            return self.name
        args = [value if value is not None else "$unbound" for value in arguments]
        return f"{self.name}({','.join(args)})"

    def __repr__(self) -> str:
        return f"Action({self})"


class ActionList(list):
    """List of actions with helpers for plan extraction"""

    def preconditions(self) -> FactSet:
        """Union of the precondition sets of all actions in the list"""
        result = FactSet()
        for action in self:
            result.update(action.preconditions)
        return result

    def without_noops(self) -> 'ActionList':
        """Copy of this list with every no-op removed, order preserved"""
        return ActionList(action for action in self if not action.is_noop)

    def __str__(self) -> str:
        return "[" + ", ".join(str(action) for action in self) + "]"
