"""
Orchestration module for the AMR scheduler.

Implements the comparison workflow: build the FIFO baseline, run the
genetic scheduler, replay both schedules, record and export the session.
"""

import time
from pathlib import Path
from typing import Dict, Any, List
import numpy as np

from .config import GAConfig
from .data_models import Task
from .evaluation import evaluate, weighted_fitness
from .fifo import schedule_fifo
from .genetic import GeneticScheduler
from .io_utils import (
    load_tasks_csv,
    save_tasks_csv,
    export_session_json,
    export_generations_csv,
    export_steps_csv,
    save_metadata
)
from .recorder import InMemoryRecorder, percentage_change
from .replay import replay_schedule
from .task_generator import generate_random_tasks


def load_or_generate_tasks(tasks_config: Dict[str, Any], rng: np.random.Generator) -> List[Task]:
    """
    Resolve the 'tasks' section of a run config into a task list.

    A 'generate' section may carry its own seed; otherwise the run's
    generator is used.
    """
    if 'csv' in tasks_config:
        return load_tasks_csv(tasks_config['csv'])

    generate = tasks_config['generate']
    seed = generate.get('seed')
    task_rng = np.random.default_rng(seed) if seed is not None else rng
    return generate_random_tasks(generate['count'], task_rng)


def summarize_solution(sequence: List[Task], ga_config: GAConfig) -> Dict[str, Any]:
    """Objective values of a sequence under the run's weights"""
    result = evaluate(sequence)
    return {
        'solution': [task.id for task in sequence],
        'makespan': result.makespan,
        'idle_distance': result.idle_distance,
        'fitness': weighted_fitness(result, ga_config.makespan_weight, ga_config.idle_distance_weight),
    }


def run_comparison(run_config: Dict) -> Dict[str, Any]:
    """
    Compare the FIFO baseline against the genetic scheduler.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Setup RNG (run_config['random_seed'] or ga.random_seed)
        2. Load tasks from CSV or generate them
        3. Create output directory: run_config['output']['root']
        4. Schedule FIFO and evaluate it
        5. Run GA chunk by chunk, recording every generation
        6. Replay both schedules on a carrier
        7. Export session JSON/CSVs and optional plots
        8. Print summary report

    Returns:
        Summary dict with 'session_id', 'fifo', 'ga' and 'output_root'
    """
    print("=" * 70)
    print("FIFO vs GA COMPARISON")
    print("=" * 70)

    ga_config = GAConfig.from_dict(run_config.get('ga', {}))

    # Setup RNG
    seed = run_config.get('random_seed', ga_config.random_seed)
    if seed is None:
        seed = int(np.random.randint(0, 2**31))
    print(f"Random seed: {seed}")
    rng = np.random.default_rng(seed)

    tasks = load_or_generate_tasks(run_config['tasks'], rng)
    print(f"Tasks: {len(tasks)}")

    # Create output directory
    output_root = Path(run_config['output']['root'])
    overwrite = run_config['output'].get('overwrite', False)

    if output_root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    output_root.mkdir(parents=True, exist_ok=overwrite)
    print(f"Output directory: {output_root}\n")

    recorder = InMemoryRecorder()
    session_id = recorder.start_session(tasks, ga_config.to_dict())

    # FIFO baseline
    start_time = time.time()
    fifo_solution = schedule_fifo(tasks)
    fifo_summary = summarize_solution(fifo_solution, ga_config)
    fifo_summary['generations'] = 0
    fifo_summary['execution_time'] = time.time() - start_time
    recorder.record_result(session_id, "FIFO", fifo_summary)
    print(f"FIFO: makespan={fifo_summary['makespan']:.2f} "
          f"idle_distance={fifo_summary['idle_distance']:.2f} fitness={fifo_summary['fitness']:.2f}")

    # Genetic scheduler
    print(f"\nRunning GA (population={ga_config.population_size}, "
          f"max_generations={ga_config.max_generations})...")
    start_time = time.time()
    scheduler = GeneticScheduler(tasks, ga_config, rng)

    for chunk in scheduler.chunks():
        for result in chunk:
            recorder.record_generation(session_id, result)
        last = chunk[-1]
        print(f"  Progress: generation {last.generation}/{ga_config.max_generations} "
              f"best={last.fitness:.2f} avg={last.stats.average_fitness:.2f}")

    best = scheduler.best
    ga_summary = summarize_solution(best.chromosome, ga_config)
    ga_summary['generations'] = scheduler.generation
    ga_summary['stopped_early'] = scheduler.stopped_early
    ga_summary['execution_time'] = time.time() - start_time
    recorder.record_result(session_id, "GA", ga_summary)

    # Replay both schedules
    fifo_steps = replay_schedule(fifo_solution, "fifo", recorder, session_id)
    ga_steps = replay_schedule(best.chromosome, "ga", recorder, session_id)
    fifo_summary['capacity_violations'] = sum(1 for step in fifo_steps if not step.was_feasible)
    ga_summary['capacity_violations'] = sum(1 for step in ga_steps if not step.was_feasible)

    # Export
    save_tasks_csv(tasks, output_root / 'tasks.csv', overwrite=overwrite)
    export_session_json(recorder, session_id, output_root / 'session.json', overwrite=overwrite)
    export_generations_csv(recorder, session_id, output_root / 'generations.csv', overwrite=overwrite)
    export_steps_csv(recorder, session_id, output_root / 'steps.csv', overwrite=overwrite)
    save_metadata(
        {'session_id': session_id, 'random_seed': seed, 'ga': ga_config.to_dict()},
        output_root / 'run_metadata.yaml',
        overwrite=overwrite
    )

    if run_config['output'].get('plots', False):
        print("\nGenerating plots...")
        import matplotlib.pyplot as plt
        from .visualization import plot_convergence, plot_comparison, plot_route
        figures = [
            plot_convergence(recorder.get_generation_logs(session_id),
                             save_path=str(output_root / 'convergence.png')),
            plot_comparison(fifo_summary, ga_summary, save_path=str(output_root / 'comparison.png')),
            plot_route(fifo_solution, title="FIFO route", save_path=str(output_root / 'route_fifo.png')),
            plot_route(best.chromosome, title="GA route", save_path=str(output_root / 'route_ga.png')),
        ]
        for fig in figures:
            plt.close(fig)

    # Print summary
    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"{'':16}{'FIFO':>12}{'GA':>12}{'Improvement':>14}")
    for key in ['makespan', 'idle_distance', 'fitness']:
        improvement = percentage_change(fifo_summary[key], ga_summary[key])
        print(f"{key:16}{fifo_summary[key]:>12.2f}{ga_summary[key]:>12.2f}{improvement:>13.1f}%")
    print(f"GA generations: {scheduler.generation}"
          f"{' (early stop)' if scheduler.stopped_early else ''}")
    print(f"Capacity violations on replay: FIFO={fifo_summary['capacity_violations']} "
          f"GA={ga_summary['capacity_violations']}")
    print(f"Session: {session_id}")
    print(f"Output directory: {output_root}")

    return {
        'session_id': session_id,
        'fifo': fifo_summary,
        'ga': ga_summary,
        'output_root': output_root,
        'recorder': recorder,
    }
