"""
Unit tests for actions

Tests cover:
- Schema construction and validation
- distinct constraints
- Grounding schemas against a fact layer
- No-op actions and ActionList helpers
"""

import pytest

from graphplan.action import Action, ActionList, ActionSchemaError
from graphplan.binding import BindingArena
from graphplan.fact_layer import FactLayer
from graphplan.predicate import Predicate
from utils.problem_parser import ProblemParser


def ground(name, *args):
    return Predicate.ground(name, args)


def parse_action(text: str) -> Action:
    return ProblemParser.parse(text).actions[0]


def go_to_schema() -> Action:
    """go-to :: at(X), misto(Y), distinct(X, Y) => not at(X), at(Y)."""
    arena = BindingArena()
    x, y = arena.new_binding(), arena.new_binding()
    return Action(
        "go-to",
        [Predicate("at", [x]), Predicate("misto", [y]), Predicate("distinct", [x, y])],
        [Predicate("at", [x])],
        [Predicate("at", [y])],
    )


# ===== Test Schema Construction =====

class TestSchema:
    """Test action schema construction"""

    def test_variables_are_shared_between_sets(self):
        action = parse_action("go-home :: at(X) => not at(X), at(home).")
        pre = action.preconditions[0].parameters[0]
        neg = action.negative_effects[0].parameters[0]
        assert pre == neg
        assert len(action.parameters) == 1
        assert not action.is_instance

    def test_distinct_is_not_a_precondition(self):
        action = go_to_schema()
        assert [p.name for p in action.preconditions] == ["at", "misto"]
        assert len(action.distinct_pairs) == 1
        first, second = action.distinct_pairs[0]
        assert first.is_distinct_from(second)

    def test_distinct_with_wrong_arity_is_rejected(self):
        arena = BindingArena()
        x = arena.new_binding()
        with pytest.raises(ActionSchemaError):
            Action("bad", [Predicate("at", [x]), Predicate("distinct", [x])], [], [])

    def test_distinct_of_same_variable_is_rejected(self):
        arena = BindingArena()
        x = arena.new_binding()
        with pytest.raises(ActionSchemaError):
            Action("bad", [Predicate("at", [x]), Predicate("distinct", [x, x])], [], [])

    def test_unbound_effect_variable_is_rejected(self):
        arena = BindingArena()
        x, y = arena.new_binding(), arena.new_binding()
        with pytest.raises(ActionSchemaError):
            Action("teleport", [Predicate("at", [x])], [], [Predicate("at", [y])])

    def test_schema_has_no_key(self):
        with pytest.raises(ValueError):
            _ = go_to_schema().key

    def test_describe(self):
        action = parse_action("go-home :: at(X) => not at(X), at(home).")
        assert action.describe() == "go-home :: at($unbound) => not at($unbound),at(home)"


# ===== Test Grounding =====

class TestGrounding:
    """Test instantiating schemas against fact layers"""

    def test_shopping_instances(self):
        kup = parse_action("kup :: mam(penize), zbozi(X) => not mam(penize), mam(X).")
        layer = FactLayer([ground("mam", "penize"), ground("zbozi", "orezavatko"),
                           ground("zbozi", "brambory")])
        instances = {}
        assert kup.find_instances(layer, instances) == 2
        names = sorted(str(a) for a in instances.values())
        assert names == ["kup(brambory)", "kup(orezavatko)"]

    def test_instances_are_ground_and_schema_is_reset(self):
        kup = parse_action("kup :: mam(penize), zbozi(X) => not mam(penize), mam(X).")
        layer = FactLayer([ground("mam", "penize"), ground("zbozi", "brambory")])
        instances = {}
        kup.find_instances(layer, instances)
        for instance in instances.values():
            assert instance.is_instance
            assert instance.is_grounded()
        assert all(not p.is_bound for p in kup.parameters)

    def test_no_instance_when_precondition_missing(self):
        kup = parse_action("kup :: mam(penize), zbozi(X) => not mam(penize), mam(X).")
        layer = FactLayer([ground("zbozi", "brambory")])
        instances = {}
        assert kup.find_instances(layer, instances) == 0
        assert instances == {}

    def test_shared_variable_across_preconditions(self):
        prodej = parse_action("prodej :: mam(X), zbozi(X) => not mam(X), mam(penize).")
        layer = FactLayer([ground("mam", "orezavatko"), ground("zbozi", "orezavatko"),
                           ground("zbozi", "brambory")])
        instances = {}
        prodej.find_instances(layer, instances)
        assert [str(a) for a in instances.values()] == ["prodej(orezavatko)"]

    def test_distinct_never_grounds_equal_values(self):
        schema = go_to_schema()
        layer = FactLayer([ground("at", "home"), ground("misto", "home"),
                           ground("misto", "school")])
        instances = {}
        schema.find_instances(layer, instances)
        assert [a.arguments for a in instances.values()] == [("home", "school")]

    def test_repeated_grounding_gives_same_instances(self):
        schema = go_to_schema()
        layer = FactLayer([ground("at", "home"), ground("misto", "home"),
                           ground("misto", "school")])
        first, second = {}, {}
        schema.find_instances(layer, first)
        schema.find_instances(layer, second)
        assert list(first) == list(second)

    def test_existing_instances_are_not_duplicated(self):
        schema = go_to_schema()
        layer = FactLayer([ground("at", "home"), ground("misto", "school")])
        instances = {}
        assert schema.find_instances(layer, instances) == 1
        assert schema.find_instances(layer, instances) == 0
        assert len(instances) == 1

    def test_dependencies_are_registered(self):
        schema = go_to_schema()
        layer = FactLayer([ground("at", "home"), ground("misto", "school")])
        instances, dependencies = {}, {}
        schema.find_instances(layer, instances, dependencies)
        instance = next(iter(instances.values()))
        assert instance in dependencies[ground("at", "home")]
        assert instance in dependencies[ground("at", "school")]

    def test_ground_instance_cannot_be_grounded_again(self):
        schema = go_to_schema()
        layer = FactLayer([ground("at", "home"), ground("misto", "school")])
        instances = {}
        schema.find_instances(layer, instances)
        instance = next(iter(instances.values()))
        with pytest.raises(ValueError):
            instance.find_instances(layer, {})


# ===== Test No-ops and ActionList =====

class TestNoop:
    """Test persistence actions"""

    def test_noop_shape(self):
        fact = ground("at", "home")
        noop = Action.noop(fact)
        assert noop.is_noop
        assert noop.is_instance
        assert list(noop.preconditions) == [fact]
        assert list(noop.positive_effects) == [fact]
        assert len(noop.negative_effects) == 0
        assert str(noop) == "no-op(at(home))"

    def test_noops_compare_by_fact(self):
        assert Action.noop(ground("at", "home")) == Action.noop(ground("at", "home"))
        assert Action.noop(ground("at", "home")) != Action.noop(ground("at", "school"))

    def test_without_noops_keeps_order(self):
        layer = FactLayer([ground("at", "home"), ground("misto", "school")])
        instances = {}
        go_to_schema().find_instances(layer, instances)
        move = next(iter(instances.values()))
        plan = ActionList([Action.noop(ground("a")), move, Action.noop(ground("b")), move])
        stripped = plan.without_noops()
        assert stripped == [move, move]
        assert isinstance(stripped, ActionList)

    def test_action_list_preconditions(self):
        plan = ActionList([Action.noop(ground("a")), Action.noop(ground("b")),
                           Action.noop(ground("a"))])
        assert [str(p) for p in plan.preconditions()] == ["a", "b"]
