"""
Session recording for scheduling runs.

Defines the collaborator interface the core reports into and an in-memory
implementation that keeps generation logs, replay steps and algorithm
results per session.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Any, Optional, Sequence
import uuid

from .data_models import GenerationResult, Task, TaskType


class SessionRecorder:
    """
    Collaborator that receives run records.

    Lifecycle is owned by the caller; the base implementation discards
    everything.
    """

    def record_generation(self, session_id: str, result: GenerationResult) -> None:
        pass

    def record_step(self, session_id: str, method: str, step) -> None:
        pass

    def record_result(self, session_id: str, algorithm: str, summary: Dict[str, Any]) -> None:
        pass


@dataclass
class GenerationLog:
    """Per-generation record with derived convergence figures"""
    generation: int
    best_fitness: float
    makespan: float
    idle_distance: float
    solution: List[int]
    average_fitness: float
    worst_fitness: float
    standard_deviation: float
    timestamp: str
    improvement_from_previous: Optional[float] = None
    convergence_rate: Optional[float] = None
    cargo_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass
class SessionData:
    """Tasks and parameters a session was started with"""
    session_id: str
    tasks: List[Task]
    created_at: str
    algorithm_params: Dict[str, Any] = field(default_factory=dict)


def percentage_change(previous: float, current: float) -> float:
    """Relative improvement in percent; 0.0 when previous is zero"""
    if previous == 0:
        return 0.0
    return (previous - current) / previous * 100


def cargo_distribution(tasks: Sequence[Task]) -> Dict[str, int]:
    counts = {task_type.name.lower(): 0 for task_type in TaskType}
    for task in tasks:
        counts[task.task_type.name.lower()] += 1
    return counts


class InMemoryRecorder(SessionRecorder):
    """
    Keeps all records in memory, keyed by session.

    Not shared across runs: create one per application session.
    """

    def __init__(self):
        self.sessions: Dict[str, SessionData] = {}
        self.generation_logs: Dict[str, List[GenerationLog]] = {}
        self.step_logs: Dict[str, List[Dict[str, Any]]] = {}
        self.algorithm_results: Dict[str, List[Dict[str, Any]]] = {}

    def start_session(self, tasks: Sequence[Task], algorithm_params: Optional[Dict[str, Any]] = None) -> str:
        """
        Register a new session.

        Returns:
            New session id
        """
        session_id = f"session_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        self.sessions[session_id] = SessionData(
            session_id=session_id,
            tasks=list(tasks),
            created_at=datetime.now().isoformat(),
            algorithm_params=dict(algorithm_params or {}),
        )
        self.generation_logs[session_id] = []
        self.step_logs[session_id] = []
        self.algorithm_results[session_id] = []
        return session_id

    def _require_session(self, session_id: str) -> SessionData:
        if session_id not in self.sessions:
            raise KeyError(f"Unknown session: {session_id}")
        return self.sessions[session_id]

    def record_generation(self, session_id: str, result: GenerationResult) -> None:
        self._require_session(session_id)
        logs = self.generation_logs[session_id]

        log = GenerationLog(
            generation=result.generation,
            best_fitness=result.fitness,
            makespan=result.makespan,
            idle_distance=result.idle_distance,
            solution=[task.id for task in result.best_chromosome],
            average_fitness=result.stats.average_fitness,
            worst_fitness=result.stats.worst_fitness,
            standard_deviation=result.stats.standard_deviation,
            timestamp=datetime.now().isoformat(),
            cargo_distribution=cargo_distribution(result.best_chromosome),
        )

        if logs:
            previous = logs[-1]
            log.improvement_from_previous = percentage_change(previous.best_fitness, log.best_fitness)

            if log.generation > 1:
                total_improvement = percentage_change(logs[0].best_fitness, log.best_fitness)
                log.convergence_rate = total_improvement / max(log.generation - 1, 1)

        logs.append(log)

    def record_step(self, session_id: str, method: str, step) -> None:
        self._require_session(session_id)
        self.step_logs[session_id].append({
            'method': method,
            'execution_order': step.execution_order,
            'task_id': step.task.id,
            'task_type': step.task.task_type.name,
            'task_x': step.task.position.x,
            'task_y': step.task.position.y,
            'processing_time': step.task.processing_time,
            'position_before': tuple(step.before.position),
            'position_after': tuple(step.after.position),
            'slots_before': step.before.occupied_slots,
            'slots_after': step.after.occupied_slots,
            'distance_traveled': step.distance_traveled,
            'elapsed_time': step.elapsed_time,
            'was_feasible': step.was_feasible,
        })

    def record_result(self, session_id: str, algorithm: str, summary: Dict[str, Any]) -> None:
        session = self._require_session(session_id)
        record = {
            'algorithm': algorithm,
            'timestamp': datetime.now().isoformat(),
            'algorithm_params': dict(session.algorithm_params),
        }
        record.update(summary)
        self.algorithm_results[session_id].append(record)

    def get_generation_logs(self, session_id: str) -> List[GenerationLog]:
        return list(self.generation_logs.get(session_id, []))

    def get_step_logs(self, session_id: str, method: Optional[str] = None) -> List[Dict[str, Any]]:
        steps = self.step_logs.get(session_id, [])
        if method is not None:
            steps = [step for step in steps if step['method'] == method]
        return list(steps)

    def get_algorithm_results(self, session_id: str) -> List[Dict[str, Any]]:
        return list(self.algorithm_results.get(session_id, []))
