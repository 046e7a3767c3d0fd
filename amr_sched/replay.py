"""
Execution replay of a chosen ordering.

Executes a task sequence on a Carrier step by step and records
before/after snapshots, forwarding each step to a session recorder.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .data_models import Carrier, CarrierSnapshot, Task


@dataclass(frozen=True)
class StepRecord:
    """
    One executed task with carrier state around it.

    Attributes:
        execution_order: 0-based index in the replayed sequence
        task: Executed task
        before: Carrier state before moving to the task
        after: Carrier state after executing the task
        distance_traveled: Leg length from the previous position
        elapsed_time: Simulated time at task completion
        was_feasible: Result of the carrier's capacity check before execution
    """
    execution_order: int
    task: Task
    before: CarrierSnapshot
    after: CarrierSnapshot
    distance_traveled: float
    elapsed_time: float
    was_feasible: bool


def replay_schedule(
    sequence: Sequence[Task],
    method: str = "ga",
    recorder=None,
    session_id: Optional[str] = None,
    carrier: Optional[Carrier] = None
) -> List[StepRecord]:
    """
    Execute an ordering on a carrier and record every step.

    Args:
        sequence: Tasks in execution order
        method: Scheduling method label ("fifo" or "ga")
        recorder: Optional SessionRecorder receiving record_step calls
        session_id: Session the steps belong to (required with a recorder)
        carrier: Carrier to drive (a fresh one at home if omitted; reset otherwise)

    Returns:
        List of StepRecord in execution order
    """
    if carrier is None:
        carrier = Carrier()
    else:
        carrier.reset()

    steps = []
    elapsed = 0.0

    for order, task in enumerate(sequence):
        before = carrier.snapshot()
        feasible = carrier.can_handle_task(task)
        distance = task.distance_from(before.position)

        carrier.execute_task(task)
        elapsed += distance + task.processing_time

        step = StepRecord(
            execution_order=order,
            task=task,
            before=before,
            after=carrier.snapshot(),
            distance_traveled=distance,
            elapsed_time=elapsed,
            was_feasible=feasible,
        )
        steps.append(step)

        if recorder is not None:
            recorder.record_step(session_id, method, step)

    return steps


def capacity_violations(sequence: Sequence[Task]) -> List[int]:
    """
    Positions where the carrier could not handle a task when replayed.

    Crossover and mutation can move a chromosome away from the capacity
    grouping it was built with. Fitness does not see this; the audit does.

    Returns:
        Indices in the sequence whose capacity check failed
    """
    return [step.execution_order for step in replay_schedule(sequence) if not step.was_feasible]
