"""
Objective evaluation for task sequences.

Replays a virtual carrier over an ordered task list and measures makespan
and idle distance. Shared by the FIFO baseline and the genetic scheduler.
"""

from typing import NamedTuple, Sequence

from .data_models import Task, TaskType, Position, HOME_POSITION


class ObjectiveResult(NamedTuple):
    """Makespan and idle distance of one sequence"""
    makespan: float
    idle_distance: float


def euclidean_distance(a: Position, b: Position) -> float:
    """Straight-line distance between two grid positions"""
    return a.distance_to(b)


def evaluate(sequence: Sequence[Task], home: Position = HOME_POSITION) -> ObjectiveResult:
    """
    Compute makespan and idle distance for an ordered task sequence.

    Travel time equals distance. Every DELIVERY leg counts as idle distance,
    since the carrier is assumed empty while approaching a drop-off. Capacity
    feasibility is not checked; any permutation is evaluable.

    Args:
        sequence: Tasks in execution order
        home: Start position of the virtual carrier

    Returns:
        ObjectiveResult(makespan, idle_distance)
    """
    current_time = 0.0
    idle_distance = 0.0
    current_position = home

    for task in sequence:
        distance = euclidean_distance(current_position, task.position)
        current_time += distance

        if task.task_type == TaskType.DELIVERY:
            idle_distance += distance

        current_time += task.processing_time
        current_position = task.position

    return ObjectiveResult(makespan=current_time, idle_distance=idle_distance)


def weighted_fitness(result: ObjectiveResult, makespan_weight: float,
                     idle_distance_weight: float) -> float:
    """Combine an objective result into a scalar fitness (lower is better)"""
    return makespan_weight * result.makespan + idle_distance_weight * result.idle_distance
