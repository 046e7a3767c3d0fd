"""
Configuration for the genetic scheduler.

Holds GA parameters, their validation, and the task-count-adaptive
defaults for chunk size and early-stop patience.
"""

from dataclasses import dataclass, asdict, fields
from typing import Dict, Any, Optional, Tuple


class ConfigValidationError(Exception):
    """Raised when GA or run configuration is invalid."""
    pass


# Early stopping
EARLY_STOP_THRESHOLD = 0.001

# Selection parameters
TOURNAMENT_SIZE = 3
ELITE_FRACTION = 0.1

# camelCase aliases accepted from web-style parameter payloads
_CAMEL_CASE_KEYS = {
    'populationSize': 'population_size',
    'maxGenerations': 'max_generations',
    'crossoverRate': 'crossover_rate',
    'mutationRate': 'mutation_rate',
    'makeSpanWeight': 'makespan_weight',
    'makespanWeight': 'makespan_weight',
    'idleDistanceWeight': 'idle_distance_weight',
    'earlyStopThreshold': 'early_stop_threshold',
    'earlyStopGenerations': 'early_stop_generations',
    'chunkSize': 'chunk_size',
    'randomSeed': 'random_seed',
}


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def adaptive_schedule(task_count: int) -> Tuple[int, int]:
    """
    Chunk size and early-stop patience for a task count.

    Larger task sets yield to the host more often and give up sooner.

    Returns:
        Tuple of (chunk_size, early_stop_generations)
    """
    if task_count > 20:
        return 3, 5
    if task_count > 15:
        return 4, 8
    return 5, 10


@dataclass
class GAConfig:
    """
    Genetic scheduler parameters.

    Attributes:
        population_size: Individuals per generation (fixed across the run)
        max_generations: Hard bound on generations after the initial one
        crossover_rate: Probability of PMX crossover per parent pair
        mutation_rate: Probability of mutating each offspring
        makespan_weight: Fitness weight of makespan
        idle_distance_weight: Fitness weight of idle distance
        tournament_size: Individuals sampled per tournament
        elite_fraction: Share of the population carried over unchanged
        early_stop_threshold: Minimum improvement that resets the patience counter
        early_stop_generations: Patience; None picks the task-count default
        chunk_size: Generations between cooperative yields; None picks the task-count default
        random_seed: Seed for the run's random generator
    """
    population_size: int = 50
    max_generations: int = 100
    crossover_rate: float = 0.8
    mutation_rate: float = 0.1
    makespan_weight: float = 0.7
    idle_distance_weight: float = 0.3
    tournament_size: int = TOURNAMENT_SIZE
    elite_fraction: float = ELITE_FRACTION
    early_stop_threshold: float = EARLY_STOP_THRESHOLD
    early_stop_generations: Optional[int] = None
    chunk_size: Optional[int] = None
    random_seed: Optional[int] = None

    def validate(self) -> None:
        """
        Check parameter types and ranges.

        Booleans are rejected wherever a number is expected.

        Raises:
            ConfigValidationError: If any parameter is of the wrong type or out of range
        """
        for name in ('population_size', 'max_generations', 'tournament_size'):
            value = getattr(self, name)
            if not _is_integer(value) or value <= 0:
                raise ConfigValidationError(f"{name} must be a positive integer, got: {value!r}")

        for name in ('crossover_rate', 'mutation_rate', 'elite_fraction'):
            value = getattr(self, name)
            if not _is_number(value) or not 0.0 <= value <= 1.0:
                raise ConfigValidationError(f"{name} must be a number within [0, 1], got: {value!r}")

        for name in ('makespan_weight', 'idle_distance_weight', 'early_stop_threshold'):
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ConfigValidationError(f"{name} must be a non-negative number, got: {value!r}")

        for name in ('early_stop_generations', 'chunk_size'):
            value = getattr(self, name)
            if value is not None and (not _is_integer(value) or value <= 0):
                raise ConfigValidationError(f"{name} must be a positive integer when set, got: {value!r}")

        if self.random_seed is not None and not _is_integer(self.random_seed):
            raise ConfigValidationError(f"random_seed must be an integer, got: {self.random_seed!r}")

    def resolve_schedule(self, task_count: int) -> Tuple[int, int]:
        """Chunk size and patience for this run, applying explicit overrides"""
        chunk_size, patience = adaptive_schedule(task_count)
        if self.chunk_size is not None:
            chunk_size = self.chunk_size
        if self.early_stop_generations is not None:
            patience = self.early_stop_generations
        return chunk_size, patience

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GAConfig":
        """
        Build a config from a dictionary (e.g., the 'ga' section of a run config).

        Accepts snake_case keys and the camelCase aliases of a web
        parameter panel.

        Raises:
            ConfigValidationError: On unknown keys or invalid values
        """
        data = data or {}
        known = {f.name for f in fields(cls)}
        kwargs = {}

        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise ConfigValidationError(f"Unknown GA parameter: '{key}'")
            kwargs[name] = value

        config = cls(**kwargs)
        config.validate()
        return config
