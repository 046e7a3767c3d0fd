"""
Visualization for scheduling runs.

Plots GA convergence, the FIFO-vs-GA metric comparison, and the carrier's
route over the factory floor.
"""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from .data_models import Task, TaskType, Position, HOME_POSITION
from .recorder import GenerationLog


TASK_COLORS = {
    TaskType.DELIVERY: "tab:blue",
    TaskType.PICKUP: "tab:green",
    TaskType.PICKUP_DELIVERY: "tab:purple",
}


def plot_convergence(
    generation_logs: Sequence[GenerationLog],
    save_path: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 6)
):
    """
    Plot best, average and worst fitness per generation.

    Args:
        generation_logs: Logs from InMemoryRecorder.get_generation_logs
        save_path: Optional path to save the figure
        figsize: Figure size (width, height)

    Returns:
        The matplotlib Figure
    """
    generations = [log.generation for log in generation_logs]
    best = np.array([log.best_fitness for log in generation_logs])
    average = np.array([log.average_fitness for log in generation_logs])
    worst = np.array([log.worst_fitness for log in generation_logs])
    std = np.array([log.standard_deviation for log in generation_logs])

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(generations, best, color="tab:green", linewidth=2, label="Best (so far)")
    ax.plot(generations, average, color="tab:blue", label="Average")
    ax.fill_between(generations, average - std, average + std, color="tab:blue", alpha=0.15)
    ax.plot(generations, worst, color="tab:red", linestyle="--", label="Worst")

    ax.set_xlabel("Generation")
    ax.set_ylabel("Fitness (lower is better)")
    ax.set_title("GA Convergence")
    ax.grid(True, alpha=0.3)
    ax.legend()

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
    return fig


def plot_comparison(
    fifo_metrics: Dict[str, float],
    ga_metrics: Dict[str, float],
    save_path: Optional[str] = None,
    figsize: Tuple[int, int] = (8, 5)
):
    """
    Grouped bar chart of makespan, idle distance and fitness for both schedulers.

    Args:
        fifo_metrics: Dict with 'makespan', 'idle_distance', 'fitness'
        ga_metrics: Same keys for the GA solution
    """
    labels = ["makespan", "idle_distance", "fitness"]
    x = np.arange(len(labels))
    width = 0.35

    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(x - width / 2, [fifo_metrics[key] for key in labels], width, label="FIFO", color="tab:blue")
    ax.bar(x + width / 2, [ga_metrics[key] for key in labels], width, label="GA", color="tab:green")

    ax.set_xticks(x)
    ax.set_xticklabels(["Makespan", "Idle distance", "Fitness"])
    ax.set_title("FIFO vs GA")
    ax.grid(True, axis="y", alpha=0.3)
    ax.legend()

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
    return fig


def plot_route(
    sequence: Sequence[Task],
    home: Position = HOME_POSITION,
    title: str = "Carrier route",
    save_path: Optional[str] = None,
    figsize: Tuple[int, int] = (10, 7)
):
    """
    Draw the task positions and the carrier's path through them.

    Tasks are colored by type and annotated with their execution order.
    """
    fig, ax = plt.subplots(figsize=figsize)

    path_x = [home.x] + [task.position.x for task in sequence]
    path_y = [home.y] + [task.position.y for task in sequence]
    ax.plot(path_x, path_y, color="gray", linewidth=1, alpha=0.7, zorder=1)

    for task_type, color in TASK_COLORS.items():
        points = [task.position for task in sequence if task.task_type == task_type]
        if points:
            ax.scatter([p.x for p in points], [p.y for p in points], c=color, s=120,
                       label=task_type.name.replace("_", "+").lower(), zorder=2)

    for order, task in enumerate(sequence, start=1):
        ax.annotate(f"{order}:T{task.id}", (task.position.x, task.position.y),
                    textcoords="offset points", xytext=(6, 6), fontsize=8)

    ax.scatter([home.x], [home.y], c="black", marker="s", s=140, label="home", zorder=3)

    ax.set_title(title)
    ax.set_aspect("equal")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right")

    plt.tight_layout()
    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
    return fig
