"""
Data models for the AMR scheduling engine.

Core data structures representing grid positions, tasks, the carrier's
storage slots and state, and GA individuals and per-generation results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union


STORAGE_CAPACITY = 4
DEFAULT_PROCESSING_TIME = 5


class TaskType(Enum):
    """Task kinds handled by the carrier"""
    DELIVERY = 0
    PICKUP = 1
    PICKUP_DELIVERY = 2

    @classmethod
    def from_value(cls, value: Union[str, int, "TaskType"]) -> "TaskType":
        """
        Parse a task type from its name or integer code.

        Args:
            value: TaskType, name ("delivery", "PICKUP_DELIVERY") or code (0-2)

        Returns:
            Matching TaskType

        Raises:
            ValueError: If the value does not name a task type
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)

        text = str(value).strip()
        if text.isdigit():
            return cls(int(text))

        key = text.upper().replace("-", "_").replace("+", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown task type: {value}")


@dataclass(frozen=True)
class Position:
    """Integer grid coordinate"""
    x: int
    y: int

    def __iter__(self):
        """Allow unpacking as tuple"""
        yield self.x
        yield self.y

    def distance_to(self, other: "Position") -> float:
        """Euclidean distance to another position"""
        dx = self.x - other.x
        dy = self.y - other.y
        return (dx * dx + dy * dy) ** 0.5


HOME_POSITION = Position(2, 2)


@dataclass(frozen=True)
class Task:
    """
    A single pickup/delivery job on the factory floor.

    Tasks are immutable; schedulers only reorder references to them.

    Attributes:
        id: Unique positive identifier
        task_type: DELIVERY, PICKUP or PICKUP_DELIVERY
        position: Grid position where the task is executed
        processing_time: Time spent at the position (defaults to 5)
    """
    id: int
    task_type: TaskType
    position: Position
    processing_time: float = DEFAULT_PROCESSING_TIME

    def __post_init__(self):
        """Validate fields and normalize position/type values."""
        if self.id <= 0:
            raise ValueError(f"Task id must be a positive integer, got {self.id}")

        if not isinstance(self.task_type, TaskType):
            object.__setattr__(self, "task_type", TaskType.from_value(self.task_type))

        if not isinstance(self.position, Position):
            x, y = self.position
            object.__setattr__(self, "position", Position(int(x), int(y)))

        # Unset (None/0) processing time falls back to the default
        if not self.processing_time:
            object.__setattr__(self, "processing_time", DEFAULT_PROCESSING_TIME)
        elif self.processing_time < 0:
            raise ValueError(
                f"Task {self.id} processing_time must be positive, got {self.processing_time}"
            )

    def distance_from(self, position: Position) -> float:
        """Distance from a position to this task's position"""
        return self.position.distance_to(position)


@dataclass(frozen=True)
class StorageSlot:
    """One storage slot on the carrier; empty or holding a task's cargo"""
    is_occupied: bool = False
    task_id: Optional[int] = None
    task_type: Optional[TaskType] = None

    @classmethod
    def empty(cls) -> "StorageSlot":
        return cls()

    @classmethod
    def holding(cls, task: Task) -> "StorageSlot":
        return cls(is_occupied=True, task_id=task.id, task_type=task.task_type)


@dataclass(frozen=True)
class CarrierSnapshot:
    """Immutable view of carrier state, used for before/after step records"""
    position: Position
    storage_slots: Tuple[StorageSlot, ...]

    @property
    def occupied_slots(self) -> int:
        return sum(1 for slot in self.storage_slots if slot.is_occupied)


class Carrier:
    """
    Single AMR with fixed four-slot onboard storage.

    State is owned by one execution context and mutated step by step as
    tasks execute. Invalid transitions never raise; the storage simply
    stays unchanged when no eligible slot exists.
    """

    def __init__(self, position: Optional[Position] = None,
                 storage_slots: Optional[List[StorageSlot]] = None):
        self.home = position or HOME_POSITION
        self.position = self.home
        if storage_slots is None:
            storage_slots = [StorageSlot.empty() for _ in range(STORAGE_CAPACITY)]
        if len(storage_slots) != STORAGE_CAPACITY:
            raise ValueError(
                f"Carrier must have exactly {STORAGE_CAPACITY} slots, got {len(storage_slots)}"
            )
        self.storage_slots = list(storage_slots)

    @property
    def occupied_slots(self) -> int:
        return sum(1 for slot in self.storage_slots if slot.is_occupied)

    @property
    def available_slots(self) -> int:
        return STORAGE_CAPACITY - self.occupied_slots

    def can_handle_task(self, task: Task) -> bool:
        """
        Check whether storage allows the task.

        DELIVERY and PICKUP need fewer than 4 occupied slots;
        PICKUP_DELIVERY needs fewer than 3. Advisory only: fitness
        evaluation never calls this.
        """
        occupied = self.occupied_slots
        if task.task_type == TaskType.PICKUP_DELIVERY:
            return occupied < STORAGE_CAPACITY - 1
        return occupied < STORAGE_CAPACITY

    def execute_task(self, task: Task) -> None:
        """Move to the task position and update storage for the task type."""
        self.position = task.position

        if task.task_type == TaskType.DELIVERY:
            self._occupy_first_empty(task)
        elif task.task_type == TaskType.PICKUP:
            # Frees by slot order, not by matching the task's cargo
            self._free_first_occupied()
        elif task.task_type == TaskType.PICKUP_DELIVERY:
            # Delivery half only happens if the pickup actually freed a slot
            if self._free_first_occupied():
                self._occupy_first_empty(task)

    def reset(self) -> None:
        """Return to home with all slots empty"""
        self.position = self.home
        self.storage_slots = [StorageSlot.empty() for _ in range(STORAGE_CAPACITY)]

    def snapshot(self) -> CarrierSnapshot:
        return CarrierSnapshot(position=self.position, storage_slots=tuple(self.storage_slots))

    def _occupy_first_empty(self, task: Task) -> bool:
        for i, slot in enumerate(self.storage_slots):
            if not slot.is_occupied:
                self.storage_slots[i] = StorageSlot.holding(task)
                return True
        return False

    def _free_first_occupied(self) -> bool:
        for i, slot in enumerate(self.storage_slots):
            if slot.is_occupied:
                self.storage_slots[i] = StorageSlot.empty()
                return True
        return False

    def __repr__(self) -> str:
        return f"<Carrier at ({self.position.x}, {self.position.y}) occupied={self.occupied_slots}/{STORAGE_CAPACITY}>"


@dataclass
class Individual:
    """
    One candidate schedule in the GA population.

    Attributes:
        chromosome: Permutation of the full input task set
        fitness: makespan_weight * makespan + idle_distance_weight * idle_distance
        makespan: Total completion time of the sequence
        idle_distance: Distance travelled on DELIVERY legs
        evaluated: False until the objective evaluator has run
    """
    chromosome: List[Task]
    fitness: float = 0.0
    makespan: float = 0.0
    idle_distance: float = 0.0
    evaluated: bool = False

    def copy(self) -> "Individual":
        """Copy with its own chromosome list (task references are shared)"""
        return Individual(
            chromosome=list(self.chromosome),
            fitness=self.fitness,
            makespan=self.makespan,
            idle_distance=self.idle_distance,
            evaluated=self.evaluated,
        )

    def task_ids(self) -> List[int]:
        return [task.id for task in self.chromosome]


@dataclass(frozen=True)
class PopulationStats:
    """Fitness statistics over one evaluated population"""
    average_fitness: float
    worst_fitness: float
    standard_deviation: float


@dataclass(frozen=True)
class GenerationResult:
    """
    Report emitted once per generation (generation 0 is the initial population).

    The best_* fields describe the best-so-far individual, not necessarily
    the best of this generation's population.
    """
    generation: int
    best_chromosome: Tuple[Task, ...]
    fitness: float
    makespan: float
    idle_distance: float
    stats: PopulationStats
