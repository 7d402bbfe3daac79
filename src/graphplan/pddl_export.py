"""
PDDL Export

Writes action schemas, initial facts and goals as a STRIPS PDDL domain and
problem, so the same problem can be handed to a classical PDDL planner.

Schema variables become ?x0, ?x1, ... in order of first appearance. Constants
used inside schemas are declared in the domain's :constants; all other
constants become problem :objects. Names are lower-cased because PDDL is
case-insensitive.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

# Add parent directory to path
_parent = str(Path(__file__).parent.parent)
if _parent not in sys.path:
    sys.path.insert(0, _parent)

from graphplan.action import Action
from graphplan.binding import Binding
from graphplan.predicate import Predicate


@dataclass
class PDDLTask:
    """Domain and problem text of one exported problem"""
    domain: str
    problem: str


def pddl_name(text: str) -> str:
    """Lower-case a name; prefix names that do not start with a letter"""
    name = text.lower()
    if not name[:1].isalpha():
        name = f"n{name}"
    return name


class PDDLExporter:
    """
    Converts a parsed problem into PDDL text

    Example:
        exporter = PDDLExporter(domain_name="shopping")
        task = exporter.export(actions, initial_state, goals)
        print(task.domain)
    """

    def __init__(self, domain_name: str = "graphplan", problem_name: str = "task"):
        self.domain_name = pddl_name(domain_name)
        self.problem_name = pddl_name(problem_name)

    def export(self, actions: Iterable[Action], initial_state: Iterable[Predicate],
               goals: Iterable[Predicate]) -> PDDLTask:
        """
        Build domain and problem text

        Raises:
            ValueError: if one predicate name is used with different arities
        """
        actions = list(actions)
        initial_state = list(initial_state)
        goals = list(goals)

        signatures = self._collect_signatures(actions, initial_state + goals)
        constants = self._schema_constants(actions)
        objects = sorted(
            {value for fact in initial_state + goals for value in fact.values} - constants
        )

        return PDDLTask(
            domain=self._domain(actions, signatures, sorted(constants)),
            problem=self._problem(objects, initial_state, goals),
        )

    def _collect_signatures(self, actions: List[Action], facts: List[Predicate]) -> Dict[str, int]:
        signatures: Dict[str, int] = {}

        def record(predicate: Predicate):
            arity = signatures.setdefault(predicate.name, predicate.arity)
            if arity != predicate.arity:
                raise ValueError(
                    f"Predicate '{predicate.name}' is used with arity {arity} and {predicate.arity}"
                )

        for action in actions:
            for fact_set in (action.preconditions, action.negative_effects, action.positive_effects):
                for predicate in fact_set:
                    record(predicate)
        for fact in facts:
            record(fact)
        return signatures

    @staticmethod
    def _schema_constants(actions: List[Action]) -> Set[str]:
        constants: Set[str] = set()
        for action in actions:
            for fact_set in (action.preconditions, action.negative_effects, action.positive_effects):
                for predicate in fact_set:
                    for param in predicate.parameters:
                        if param.is_constant:
                            constants.add(param.value)
        return constants

    def _domain(self, actions: List[Action], signatures: Dict[str, int],
                constants: List[str]) -> str:
        requirements = [":strips"]
        if any(action.distinct_pairs for action in actions):
            requirements += [":equality", ":negative-preconditions"]

        lines = [f"(define (domain {self.domain_name})",
                 f"  (:requirements {' '.join(requirements)})"]
        if constants:
            lines.append(f"  (:constants {' '.join(pddl_name(c) for c in constants)})")

        lines.append("  (:predicates")
        for name in sorted(signatures):
            params = " ".join(f"?a{i}" for i in range(signatures[name]))
            lines.append(f"    ({pddl_name(name)}{' ' + params if params else ''})")
        lines.append("  )")

        for action in actions:
            lines.extend(self._action(action))
        lines.append(")")
        return "\n".join(lines) + "\n"

    def _action(self, action: Action) -> List[str]:
        names = {param: f"?x{i}" for i, param in enumerate(action.parameters)}

        preconditions = [self._atom(p, names) for p in action.preconditions]
        for first, second in action.distinct_pairs:
            preconditions.append(f"(not (= {self._term(first, names)} {self._term(second, names)}))")
        effects = [self._atom(p, names) for p in action.positive_effects]
        effects += [f"(not {self._atom(p, names)})" for p in action.negative_effects]

        return [
            f"  (:action {pddl_name(action.name)}",
            f"    :parameters ({' '.join(names.values())})",
            f"    :precondition (and {' '.join(preconditions)})",
            f"    :effect (and {' '.join(effects)})",
            "  )",
        ]

    def _problem(self, objects: List[str], initial_state: List[Predicate],
                 goals: List[Predicate]) -> str:
        lines = [f"(define (problem {self.problem_name})",
                 f"  (:domain {self.domain_name})"]
        if objects:
            lines.append(f"  (:objects {' '.join(pddl_name(o) for o in objects)})")
        lines += [f"  (:init {' '.join(self._atom(f, {}) for f in initial_state)})",
                  f"  (:goal (and {' '.join(self._atom(g, {}) for g in goals)}))",
                  ")"]
        return "\n".join(lines) + "\n"

    def _atom(self, predicate: Predicate, names: Dict[Binding, str]) -> str:
        terms = [self._term(param, names) for param in predicate.parameters]
        return "(" + " ".join([pddl_name(predicate.name)] + terms) + ")"

    @staticmethod
    def _term(param: Binding, names: Dict[Binding, str]) -> str:
        if param.is_constant:
            return pddl_name(param.value)
        if param not in names:
            raise ValueError("Cannot export a variable that is not an action parameter")
        return names[param]


def export_problem(actions: Iterable[Action], initial_state: Iterable[Predicate],
                   goals: Iterable[Predicate], domain_name: str = "graphplan") -> Tuple[str, str]:
    """Shortcut returning (domain, problem) text"""
    task = PDDLExporter(domain_name=domain_name).export(actions, initial_state, goals)
    return task.domain, task.problem
