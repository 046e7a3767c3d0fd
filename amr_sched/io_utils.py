"""
I/O utilities for the AMR scheduler.

Handles task CSV parsing/serialization, session export to JSON/CSV, and
YAML metadata sidecars.
"""

import csv
import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union
import yaml

from .data_models import Task, TaskType, Position
from .recorder import InMemoryRecorder


TASK_COLUMNS = ['id', 'type', 'x', 'y', 'processing_time']


def _prepare_output(output_path: Union[str, Path], overwrite: bool) -> Path:
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    # Create parent directory if needed
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def load_tasks_csv(csv_path: Union[str, Path]) -> List[Task]:
    """
    Load a task list from CSV.

    CSV format:
        id,type,x,y,processing_time
        1,DELIVERY,5,5,5
        2,PICKUP,6,5,3
        ...

    The type column accepts names or integer codes; an empty
    processing_time falls back to the default.

    Args:
        csv_path: Path to CSV file

    Returns:
        Tasks in file order

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If CSV format is invalid
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    tasks = []
    with open(csv_path, 'r', newline='') as f:
        reader = csv.DictReader(f)

        # Validate header
        required = ['id', 'type', 'x', 'y']
        if not reader.fieldnames or not all(col in reader.fieldnames for col in required):
            raise ValueError(f"Invalid CSV format in {csv_path}. Expected columns: {','.join(TASK_COLUMNS)}")

        for line_number, row in enumerate(reader, start=2):
            try:
                processing_time = row.get('processing_time') or None
                tasks.append(Task(
                    id=int(row['id']),
                    task_type=TaskType.from_value(row['type']),
                    position=Position(int(row['x']), int(row['y'])),
                    processing_time=float(processing_time) if processing_time else None,
                ))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid task on line {line_number} of {csv_path}: {e}")

    return tasks


def save_tasks_csv(
    tasks: Sequence[Task],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save a task list to CSV (same format as load_tasks_csv).

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = _prepare_output(output_path, overwrite)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(TASK_COLUMNS)
        for task in tasks:
            writer.writerow([task.id, task.task_type.name, task.position.x,
                             task.position.y, task.processing_time])

    return output_path


def task_to_dict(task: Task) -> dict:
    return {
        'id': task.id,
        'type': task.task_type.name,
        'x': task.position.x,
        'y': task.position.y,
        'processing_time': task.processing_time,
    }


def export_session_json(
    recorder: InMemoryRecorder,
    session_id: str,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Export everything recorded for a session to one JSON document.

    Raises:
        KeyError: If the session is unknown
        FileExistsError: If file exists and overwrite=False
    """
    if session_id not in recorder.sessions:
        raise KeyError(f"Unknown session: {session_id}")

    session = recorder.sessions[session_id]
    document = {
        'session_id': session_id,
        'created_at': session.created_at,
        'exported_at': datetime.now().isoformat(),
        'algorithm_params': session.algorithm_params,
        'tasks': [task_to_dict(task) for task in session.tasks],
        'algorithm_results': recorder.get_algorithm_results(session_id),
        'generation_logs': [asdict(log) for log in recorder.get_generation_logs(session_id)],
        'simulation_steps': recorder.get_step_logs(session_id),
    }

    output_path = _prepare_output(output_path, overwrite)
    with open(output_path, 'w') as f:
        json.dump(document, f, indent=2, default=str)

    return output_path


def export_generations_csv(
    recorder: InMemoryRecorder,
    session_id: str,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """Export the session's generation logs, one row per generation"""
    output_path = _prepare_output(output_path, overwrite)

    fieldnames = ['generation', 'best_fitness', 'makespan', 'idle_distance',
                  'average_fitness', 'worst_fitness', 'standard_deviation',
                  'improvement_from_previous', 'convergence_rate', 'solution', 'timestamp']

    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction='ignore')
        writer.writeheader()
        for log in recorder.get_generation_logs(session_id):
            row = asdict(log)
            row['solution'] = ' '.join(str(task_id) for task_id in log.solution)
            writer.writerow(row)

    return output_path


def export_steps_csv(
    recorder: InMemoryRecorder,
    session_id: str,
    output_path: Union[str, Path],
    method: Optional[str] = None,
    overwrite: bool = False
) -> Path:
    """Export replayed simulation steps, optionally for one method only"""
    output_path = _prepare_output(output_path, overwrite)
    steps = recorder.get_step_logs(session_id, method)

    fieldnames = ['method', 'execution_order', 'task_id', 'task_type', 'task_x', 'task_y',
                  'processing_time', 'position_before', 'position_after', 'slots_before',
                  'slots_after', 'distance_traveled', 'elapsed_time', 'was_feasible']

    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for step in steps:
            writer.writerow(step)

    return output_path


def save_metadata(
    metadata: dict,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save metadata to YAML sidecar file.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = _prepare_output(output_path, overwrite)

    with open(output_path, 'w') as f:
        yaml.dump(metadata, f, default_flow_style=False, sort_keys=False)

    return output_path
