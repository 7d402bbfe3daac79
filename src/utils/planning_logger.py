"""
Planning Logger

Records the execution trace of a planner run:
- Problem file and its size (schemas, initial facts, goals)
- Planning graph growth, layer by layer
- Extraction statistics (attempts, no-goods, fixed point)
- The plan found, or the reason there is none
- Optional pyperplan cross-check
- Any errors encountered

Each run is saved in its own timestamped directory as execution.json plus a
human-readable execution.txt.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class PlanningRecord:
    """Complete record of a planner run"""
    timestamp: str
    problem_file: str
    success: bool
    mode: str = "graphplan"

    # Problem
    parse_status: str = "pending"
    num_action_schemas: int = 0
    num_initial_facts: int = 0
    num_goals: int = 0
    parse_error: Optional[str] = None

    # Planning graph
    planning_status: str = "pending"
    strict_mutexes: bool = False
    max_layers: int = 0
    layers: List[Dict[str, int]] = field(default_factory=list)
    layers_built: int = 0
    fixed_point_layer: Optional[int] = None
    extraction_attempts: int = 0
    no_goods: int = 0
    plan: Optional[List[str]] = None
    plan_length: int = 0
    planning_error: Optional[str] = None

    # Cross-check (pyperplan)
    cross_check_status: str = "skipped"
    reference_plan: Optional[List[str]] = None
    reference_plan_length: Optional[int] = None
    cross_check_error: Optional[str] = None

    # Metadata
    log_dir: str = "logs"
    execution_time_seconds: float = 0.0


class PlanningLogger:
    """
    Logger for planner runs

    Saves structured JSON records with timestamps for each run.
    """

    def __init__(self, logs_dir: str = "logs"):
        """
        Initialize logger

        Args:
            logs_dir: Directory to save log files
        """
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

        self.current_record: Optional[PlanningRecord] = None
        self.start_time: Optional[datetime] = None
        self.current_log_dir: Optional[Path] = None

    def start_run(self, problem_file: str, mode: str = "graphplan", timestamp: str = None):
        """
        Start logging a new planner run

        Args:
            problem_file: Path of the problem being solved
            mode: Run label used in the directory name
            timestamp: Optional timestamp string (YYYYMMDD_HHMMSS format). If not provided, current time is used.
        """
        self.start_time = datetime.now()
        if timestamp is None:
            timestamp = self.start_time.strftime("%Y%m%d_%H%M%S")

        # Format: YYYYMMDD_HHMMSS_mode (e.g., 20261019_101500_graphplan)
        self.current_log_dir = self.logs_dir / f"{timestamp}_{mode}"
        self.current_log_dir.mkdir(parents=True, exist_ok=True)

        self.current_record = PlanningRecord(
            timestamp=timestamp,
            problem_file=str(problem_file),
            success=False,
            mode=mode,
            log_dir=str(self.logs_dir),
        )

    def log_problem(self, num_action_schemas: int, num_initial_facts: int, num_goals: int):
        """Log a successfully parsed problem"""
        if not self.current_record:
            return

        self.current_record.parse_status = "success"
        self.current_record.num_action_schemas = num_action_schemas
        self.current_record.num_initial_facts = num_initial_facts
        self.current_record.num_goals = num_goals
        self._save_current_state()

    def log_parse_error(self, error: str):
        """Log a problem that could not be read or parsed"""
        if not self.current_record:
            return

        self.current_record.parse_status = "failed"
        self.current_record.parse_error = str(error)
        self._save_current_state()

    def log_settings(self, strict_mutexes: bool, max_layers: int):
        if not self.current_record:
            return

        self.current_record.strict_mutexes = strict_mutexes
        self.current_record.max_layers = max_layers

    def log_layer(self, index: int, num_actions: int, num_action_mutexes: int,
                  num_facts: int, num_fact_mutexes: int):
        """Log the size of one planning graph layer"""
        if not self.current_record:
            return

        self.current_record.layers.append({
            "index": index,
            "actions": num_actions,
            "action_mutexes": num_action_mutexes,
            "facts": num_facts,
            "fact_mutexes": num_fact_mutexes,
        })

    def log_result(self, status: str, plan: Optional[List[str]], layers_built: int,
                   fixed_point_layer: Optional[int], extraction_attempts: int, no_goods: int):
        """
        Log the planner outcome

        Args:
            status: "solved", "unsolvable" or "budget_exhausted"
            plan: Action strings of the plan (None if there is none)
            layers_built: Number of graph expansions
            fixed_point_layer: Index of the fixed-point layer, if reached
            extraction_attempts: Number of backward extraction attempts
            no_goods: Total number of recorded no-goods
        """
        if not self.current_record:
            return

        self.current_record.planning_status = status
        self.current_record.plan = plan
        self.current_record.plan_length = len(plan) if plan else 0
        self.current_record.layers_built = layers_built
        self.current_record.fixed_point_layer = fixed_point_layer
        self.current_record.extraction_attempts = extraction_attempts
        self.current_record.no_goods = no_goods
        self._save_current_state()

    def log_planning_error(self, error: str):
        if not self.current_record:
            return

        self.current_record.planning_status = "failed"
        self.current_record.planning_error = str(error)
        self._save_current_state()

    def log_cross_check(self, status: str, reference_plan: Optional[List[str]] = None,
                        error: Optional[str] = None):
        """
        Log the pyperplan cross-check

        Args:
            status: "agree", "disagree", "unsupported" or "failed"
            reference_plan: Plan returned by pyperplan (None if unsolvable)
            error: Error message if the check could not run
        """
        if not self.current_record:
            return

        self.current_record.cross_check_status = status
        self.current_record.reference_plan = reference_plan
        self.current_record.reference_plan_length = (
            len(reference_plan) if reference_plan is not None else None
        )
        self.current_record.cross_check_error = error
        self._save_current_state()

    def _save_current_state(self):
        """Save the current record to both JSON and TXT files"""
        if not self.current_record or not self.current_log_dir:
            return

        if self.start_time:
            self.current_record.execution_time_seconds = (
                datetime.now() - self.start_time
            ).total_seconds()

        json_filepath = self.current_log_dir / "execution.json"
        record_dict = asdict(self.current_record)

        with open(json_filepath, 'w') as f:
            json.dump(record_dict, f, indent=2)

        txt_filepath = self.current_log_dir / "execution.txt"
        self._save_readable_format(txt_filepath, record_dict)

    def end_run(self, success: bool = True) -> Path:
        """
        End logging and save the final record

        Args:
            success: Whether a plan was found

        Returns:
            Path to the saved JSON log
        """
        if not self.current_record or not self.start_time:
            raise RuntimeError("No active planning record to end")

        self.current_record.success = success
        self._save_current_state()

        if not self.current_log_dir:
            raise RuntimeError("Log directory not initialized")

        return self.current_log_dir / "execution.json"

    def _save_readable_format(self, filepath: Path, record: Dict[str, Any]):
        """Save a human-readable text version of the record"""
        with open(filepath, 'w') as f:
            f.write("="*80 + "\n")
            f.write("GRAPHPLAN EXECUTION RECORD\n")
            f.write("="*80 + "\n\n")

            f.write(f"Timestamp: {record['timestamp']}\n")
            f.write(f"Execution Time: {record['execution_time_seconds']:.3f} seconds\n")
            f.write(f"Overall Status: {'SUCCESS' if record['success'] else 'FAILED'}\n")
            f.write(f"Problem: {record['problem_file']}\n")
            f.write("\n")

            f.write("-"*80 + "\n")
            f.write("PROBLEM\n")
            f.write("-"*80 + "\n")
            f.write(f"Status: {record['parse_status'].upper()}\n")
            if record['parse_status'] == 'success':
                f.write(f"Action schemas: {record['num_action_schemas']}\n")
                f.write(f"Initial facts: {record['num_initial_facts']}\n")
                f.write(f"Goals: {record['num_goals']}\n")
            elif record['parse_error']:
                f.write(f"\nError: {record['parse_error']}\n")
            f.write("\n")

            f.write("-"*80 + "\n")
            f.write("PLANNING GRAPH\n")
            f.write("-"*80 + "\n")
            f.write(f"Status: {record['planning_status'].upper()}\n")
            f.write(f"Strict mutexes: {record['strict_mutexes']}\n")
            f.write(f"Layer budget: {record['max_layers'] or 'unlimited'}\n")

            if record['layers']:
                f.write("\n" + "~"*40 + "\n")
                f.write("LAYERS\n")
                f.write("~"*40 + "\n")
                for layer in record['layers']:
                    f.write(f"  #{layer['index']}: {layer['actions']} actions "
                            f"({layer['action_mutexes']} mutexes), {layer['facts']} facts "
                            f"({layer['fact_mutexes']} mutexes)\n")

            f.write(f"\nLayers built: {record['layers_built']}\n")
            fixed_point = record['fixed_point_layer']
            f.write(f"Fixed point: {'layer #' + str(fixed_point) if fixed_point is not None else 'not reached'}\n")
            f.write(f"Extraction attempts: {record['extraction_attempts']}\n")
            f.write(f"No-goods: {record['no_goods']}\n")

            if record['plan'] is not None:
                f.write("\n" + "~"*40 + "\n")
                f.write(f"PLAN ({record['plan_length']} actions)\n")
                f.write("~"*40 + "\n")
                for i, action in enumerate(record['plan'], 1):
                    f.write(f"  {i}. {action}\n")
            elif record['planning_error']:
                f.write(f"\nError: {record['planning_error']}\n")
            f.write("\n")

            if record['cross_check_status'] != 'skipped':
                f.write("-"*80 + "\n")
                f.write("CROSS-CHECK (pyperplan)\n")
                f.write("-"*80 + "\n")
                f.write(f"Status: {record['cross_check_status'].upper()}\n")
                if record['reference_plan_length'] is not None:
                    f.write(f"Reference plan length: {record['reference_plan_length']}\n")
                if record['cross_check_error']:
                    f.write(f"Error: {record['cross_check_error']}\n")
                f.write("\n")

            f.write("="*80 + "\n")
            f.write("END OF RECORD\n")
            f.write("="*80 + "\n")
