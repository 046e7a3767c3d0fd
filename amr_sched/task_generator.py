"""
Random task-set generation.

Samples spaced-out task positions on the factory floor with a fixed task
type distribution.
"""

from typing import List
import numpy as np

from .data_models import Task, TaskType, Position


# Sampling area avoids the edges and the carrier's home position
X_RANGE = (3, 14)
Y_RANGE = (3, 10)
MIN_SPACING = 2

# 50% delivery, 30% pickup, 20% pickup+delivery
TYPE_PROBABILITIES = {
    TaskType.DELIVERY: 0.5,
    TaskType.PICKUP: 0.3,
    TaskType.PICKUP_DELIVERY: 0.2,
}
PROCESSING_TIME_RANGE = (3, 10)


def is_too_close(position: Position, tasks: List[Task], spacing: int = MIN_SPACING) -> bool:
    """True if position is within spacing of an existing task on both axes"""
    return any(
        abs(task.position.x - position.x) < spacing and abs(task.position.y - position.y) < spacing
        for task in tasks
    )


def generate_random_tasks(
    count: int,
    rng: np.random.Generator,
    max_attempts: int = 10000
) -> List[Task]:
    """
    Generate count tasks with ids 1..count at spaced-out positions.

    Positions that crowd an existing task are resampled.

    Args:
        count: Number of tasks
        rng: Random number generator
        max_attempts: Total position samples before giving up

    Returns:
        List of tasks in id order

    Raises:
        ValueError: If count is not positive or the tasks cannot be spaced out
    """
    if count <= 0:
        raise ValueError(f"Task count must be positive, got {count}")

    types = list(TYPE_PROBABILITIES.keys())
    probabilities = list(TYPE_PROBABILITIES.values())

    tasks = []
    attempts = 0

    while len(tasks) < count:
        if attempts >= max_attempts:
            raise ValueError(
                f"Could not place {count} spaced-out tasks after {max_attempts} attempts "
                f"(placed {len(tasks)})"
            )
        attempts += 1

        position = Position(
            int(rng.integers(X_RANGE[0], X_RANGE[1] + 1)),
            int(rng.integers(Y_RANGE[0], Y_RANGE[1] + 1)),
        )
        if is_too_close(position, tasks):
            continue

        task_type = types[int(rng.choice(len(types), p=probabilities))]
        processing_time = int(rng.integers(PROCESSING_TIME_RANGE[0], PROCESSING_TIME_RANGE[1] + 1))

        tasks.append(Task(
            id=len(tasks) + 1,
            task_type=task_type,
            position=position,
            processing_time=processing_time,
        ))

    return tasks
