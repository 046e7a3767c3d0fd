"""
FIFO baseline scheduler.

Implements the capacity grouping policy shared with chromosome construction
and the deterministic FIFO scheduler built on it.
"""

from typing import List, Sequence, Tuple

from .data_models import Task, TaskType, STORAGE_CAPACITY


# A PICKUP_DELIVERY needs one free slot before it can proceed
PICKUP_DELIVERY_LIMIT = STORAGE_CAPACITY - 1


def update_slots_used(slots_used: int, task: Task) -> int:
    """Apply one task to the running slot count of a group"""
    if task.task_type == TaskType.DELIVERY:
        return slots_used + 1
    if task.task_type == TaskType.PICKUP:
        return max(0, slots_used - 1)
    return slots_used


def group_by_capacity(tasks: Sequence[Task]) -> Tuple[List[List[Task]], List[Task]]:
    """
    Split tasks into capacity-respecting groups.

    Each pass scans the remaining tasks front to back with slots_used
    starting at 0:
    - a PICKUP_DELIVERY seen at slots_used >= 3 is skipped and stays for a
      later group, and scanning continues;
    - any task seen at slots_used >= 4 closes the group immediately;
    - otherwise the task joins the group and slots_used is updated.

    A pass that admits nothing stops the loop.

    Args:
        tasks: Tasks in arrival order

    Returns:
        Tuple of (groups, remainder) where remainder holds tasks that could
        not be grouped (empty unless the loop stalled)
    """
    remaining = list(tasks)
    groups = []

    while remaining:
        group = []
        slots_used = 0
        kept = []

        for index, task in enumerate(remaining):
            if task.task_type == TaskType.PICKUP_DELIVERY and slots_used >= PICKUP_DELIVERY_LIMIT:
                kept.append(task)
                continue
            if slots_used >= STORAGE_CAPACITY:
                kept.extend(remaining[index:])
                break

            group.append(task)
            slots_used = update_slots_used(slots_used, task)

        if not group:
            break

        groups.append(group)
        remaining = kept

    return groups, remaining


def schedule_fifo(tasks: Sequence[Task]) -> List[Task]:
    """
    Deterministic constrained-greedy baseline ordering.

    Args:
        tasks: Tasks in arrival order

    Returns:
        Flattened capacity groups
    """
    groups, _ = group_by_capacity(tasks)
    return [task for group in groups for task in group]

