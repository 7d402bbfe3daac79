"""
Utility modules for the GraphPlan planner

Contains the problem-file parser and the run logger.
"""

from .problem_parser import (
    ParsedProblem,
    ProblemFormatError,
    ProblemParser,
    Statement,
    StatementKind,
    UnexpectedEndOfInputError,
    UnexpectedTokenError,
)
from .planning_logger import PlanningLogger, PlanningRecord

__all__ = [
    'ParsedProblem',
    'ProblemFormatError',
    'ProblemParser',
    'Statement',
    'StatementKind',
    'UnexpectedEndOfInputError',
    'UnexpectedTokenError',
    'PlanningLogger',
    'PlanningRecord',
]
