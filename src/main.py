"""
Main Entry Point - GraphPlan Planner

Reads a planning problem, builds the planning graph and prints a serial plan.

Usage:
    python src/main.py problems/shopping.txt
    python src/main.py -v --max-layers 20 problems/hanoi3.txt
    python src/main.py --cross-check problems/shopping.txt

Exit codes:
    0  plan found
    1  no plan (unsolvable or layer budget exhausted)
    2  format, input/output or configuration error
"""

import sys
import argparse
import time
from pathlib import Path
from typing import List, Optional

# Add src to path (only once)
_src_dir = str(Path(__file__).parent)
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from config import get_config
from graphplan.planning_graph import PlanningGraph, PlanningGraphError, PlanResult, PlanStatus
from graphplan.reference_planner import ReferencePlanner, supports_problem
from utils.planning_logger import PlanningLogger
from utils.problem_parser import ParsedProblem, ProblemFormatError, ProblemParser


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='GraphPlan - STRIPS planning with planning graphs',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python src/main.py problems/shopping.txt
  python src/main.py -v problems/hanoi3.txt
  python src/main.py --max-layers 10 --cross-check problems/shopping.txt

Settings default to GRAPHPLAN_* environment variables (see .env.example).
        '''
    )
    parser.add_argument('problem', help='Planning problem file')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Print planning graph progress')
    parser.add_argument('--max-layers', type=int, default=None,
                        help='Stop after this many graph expansions (0 = unlimited)')
    parser.add_argument('--strict-mutexes', action='store_true', default=None,
                        help='Also treat actions with mutex preconditions as mutex')
    parser.add_argument('--log-dir', default=None, help='Directory for run logs')
    parser.add_argument('--no-log', action='store_true', help='Do not write run logs')
    parser.add_argument('--cross-check', action='store_true',
                        help='Compare the result with pyperplan breadth-first search')
    return parser


def log_graph(logger: PlanningLogger, graph: PlanningGraph, result: PlanResult):
    """Record layer sizes and the outcome of a solve"""
    for index, layer in enumerate(graph.layers):
        n_actions = len(layer.actions) if layer.actions is not None else 0
        n_action_mutexes = len(layer.actions.mutexes) if layer.actions is not None else 0
        logger.log_layer(index, n_actions, n_action_mutexes,
                         len(layer.facts), len(layer.facts.mutexes))
    logger.log_result(
        status=result.status.value,
        plan=[str(action) for action in result.plan] if result.plan is not None else None,
        layers_built=result.layers_built,
        fixed_point_layer=result.fixed_point_layer,
        extraction_attempts=result.extraction_attempts,
        no_goods=result.no_goods,
    )


def cross_check(problem: ParsedProblem, result: PlanResult,
                logger: Optional[PlanningLogger]) -> bool:
    """
    Compare solvability and plan length with pyperplan

    Breadth-first search finds a shortest serial plan, so the GraphPlan plan
    may be longer but never shorter.

    Returns:
        True if both planners agree
    """
    if not supports_problem(problem.actions):
        print("[Cross-check] Skipped: pyperplan does not support distinct constraints")
        if logger:
            logger.log_cross_check("unsupported")
        return True

    try:
        reference = ReferencePlanner().solve_problem(
            problem.actions, problem.initial_state, problem.goals
        )
    except Exception as e:
        print(f"[Cross-check] pyperplan failed: {e}")
        if logger:
            logger.log_cross_check("failed", error=str(e))
        return False

    reference_plan = None
    if reference is not None:
        reference_plan = [f"{name}({','.join(params)})" if params else name
                          for name, params in reference]

    if result.solved:
        agree = reference is not None and len(reference) <= len(result.plan)
    else:
        agree = reference is None

    if reference is None:
        print(f"[Cross-check] pyperplan: no plan ({'agree' if agree else 'DISAGREE'})")
    else:
        print(f"[Cross-check] pyperplan: {len(reference)} actions "
              f"({'agree' if agree else 'DISAGREE'})")
    if logger:
        logger.log_cross_check("agree" if agree else "disagree", reference_plan)
    return agree


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    config = get_config()
    if not config.validate():
        print("="*80)
        print("ERROR: Invalid configuration")
        print("="*80)
        print("\nGRAPHPLAN_MAX_LAYERS must be a non-negative integer.")
        print("\n" + "="*80)
        return 2

    verbose = args.verbose if args.verbose is not None else config.verbose
    strict_mutexes = args.strict_mutexes if args.strict_mutexes is not None else config.strict_mutexes
    max_layers = args.max_layers if args.max_layers is not None else config.max_layers
    log_dir = args.log_dir if args.log_dir is not None else config.log_dir

    if max_layers < 0:
        print(f"ERROR: --max-layers must be >= 0, got {max_layers}")
        return 2

    logger = None
    if not args.no_log:
        logger = PlanningLogger(log_dir)
        logger.start_run(args.problem)
        logger.log_settings(strict_mutexes, max_layers)

    try:
        problem = ProblemParser.parse_file(args.problem)
    except ProblemFormatError as e:
        print(f"ERROR: File format error: {e}")
        if logger:
            logger.log_parse_error(str(e))
            logger.end_run(success=False)
        return 2
    except OSError as e:
        print(f"ERROR: Input/output error: {e}")
        if logger:
            logger.log_parse_error(str(e))
            logger.end_run(success=False)
        return 2

    if logger:
        logger.log_problem(len(problem.actions), len(problem.initial_state), len(problem.goals))
    if verbose:
        print(f"[Problem] {problem.summary()}")

    graph = PlanningGraph(verbose=verbose, strict_mutexes=strict_mutexes, max_layers=max_layers)
    try:
        graph.initialize(problem.actions, problem.initial_state, problem.goals)
        start_time = time.perf_counter()
        result = graph.solve()
        elapsed_ms = (time.perf_counter() - start_time) * 1000
    except PlanningGraphError as e:
        print(f"ERROR: Planning failed: {e}")
        if logger:
            logger.log_planning_error(str(e))
            logger.end_run(success=False)
        return 2

    if logger:
        log_graph(logger, graph, result)

    print(f"Solved in {elapsed_ms:.0f} milliseconds.")
    if result.solved:
        for action in result.plan:
            print(str(action))
    elif result.status == PlanStatus.BUDGET_EXHAUSTED:
        print(f"Layer budget of {max_layers} exhausted. Planning stopped.")
    else:
        print("Serial plan does not exist. Planning failed.")

    if args.cross_check:
        cross_check(problem, result, logger)

    if logger:
        log_path = logger.end_run(success=result.solved)
        if verbose:
            print(f"[Logger] Run saved to {log_path.parent}")

    return 0 if result.solved else 1


if __name__ == "__main__":
    sys.exit(main())
