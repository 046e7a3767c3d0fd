"""
AMR Scheduling Engine

Computes and compares two schedules for a single mobile carrier executing
pickup/delivery tasks under a four-slot storage capacity constraint.

Key Features:
- Constrained greedy FIFO baseline
- Genetic algorithm over task permutations (PMX, swap/inversion mutation,
  tournament selection, elitism, early stopping)
- Chunked, cooperatively yielding GA runs with per-generation reporting
- Execution replay and session recording with CSV/JSON export

Modules:
- data_models: Task, Position, StorageSlot, Carrier, Individual, results
- evaluation: Objective evaluator (makespan, idle distance)
- fifo: Capacity grouping policy and FIFO scheduler
- crossover / mutation: Permutation-preserving GA operators
- genetic: GeneticScheduler and run_ga drivers
- replay / recorder: Step replay and session recording
- task_generator, io_utils, visualization: Surrounding tooling
- cli / orchestration: YAML-driven FIFO vs GA comparison runs
"""

__version__ = "0.1.0"
__author__ = "AMR Scheduling Team"

from .data_models import (
    TaskType, Position, Task, StorageSlot, Carrier, Individual,
    PopulationStats, GenerationResult, HOME_POSITION, STORAGE_CAPACITY
)
from .config import GAConfig, ConfigValidationError
from .evaluation import evaluate, ObjectiveResult
from .fifo import schedule_fifo, group_by_capacity
from .genetic import GeneticScheduler, run_ga, run_ga_async
from .recorder import SessionRecorder, InMemoryRecorder
from .replay import replay_schedule, capacity_violations

__all__ = [
    "TaskType",
    "Position",
    "Task",
    "StorageSlot",
    "Carrier",
    "Individual",
    "PopulationStats",
    "GenerationResult",
    "HOME_POSITION",
    "STORAGE_CAPACITY",
    "GAConfig",
    "ConfigValidationError",
    "evaluate",
    "ObjectiveResult",
    "schedule_fifo",
    "group_by_capacity",
    "GeneticScheduler",
    "run_ga",
    "run_ga_async",
    "SessionRecorder",
    "InMemoryRecorder",
    "replay_schedule",
    "capacity_violations",
]
