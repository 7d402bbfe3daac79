"""
GraphPlan: STRIPS Planning with Planning Graphs

This package builds planning graphs from parameterized action schemas and
extracts serial plans from them.
"""

from .binding import Binding, BindingArena
from .predicate import Predicate, FactSet
from .action import Action, ActionList, ActionSchemaError
from .fact_layer import FactLayer
from .action_layer import ActionLayer
from .mutex import MutexRelation
from .planning_graph import BiLayer, PlanningGraph, PlanningGraphError, PlanResult, PlanStatus
from .plan_validation import PlanExecutionError, apply_plan, validate_plan

# pyperplan cross-check (import explicitly)
# from .reference_planner import ReferencePlanner

__all__ = [
    'Binding',
    'BindingArena',
    'Predicate',
    'FactSet',
    'Action',
    'ActionList',
    'ActionSchemaError',
    'FactLayer',
    'ActionLayer',
    'MutexRelation',
    'BiLayer',
    'PlanningGraph',
    'PlanningGraphError',
    'PlanResult',
    'PlanStatus',
    'PlanExecutionError',
    'apply_plan',
    'validate_plan',
]
