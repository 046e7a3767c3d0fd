"""
Crossover operators for the genetic scheduler.

Implements partially-mapped crossover (PMX) over task permutations.
"""

from typing import List, Sequence, Tuple
import numpy as np

from .data_models import Individual, Task


def select_segment(length: int, rng: np.random.Generator) -> Tuple[int, int]:
    """
    Pick an inclusive segment [point1, point2] of a chromosome.

    point1 is uniform in [0, length - 2]; point2 is point1 plus a uniform
    offset in [0, length - point1 - 1].

    Args:
        length: Chromosome length (must be at least 2)
        rng: Random number generator

    Returns:
        Tuple of (point1, point2)
    """
    point1 = int(rng.integers(0, length - 1))
    point2 = point1 + int(rng.integers(0, length - point1))
    return point1, point2


def fill_remaining_positions(
    parent: Sequence[Task],
    offspring: List,
    point1: int,
    point2: int
) -> None:
    """
    Fill offspring positions outside [point1, point2] from parent.

    Position i takes parent[i] unless that task is already placed, in which
    case the scan moves forward (wrapping around) to the next unused task.

    Args:
        parent: Parent chromosome supplying the fill order
        offspring: Partially filled offspring (None outside the segment)
        point1: Segment start (inclusive)
        point2: Segment end (inclusive)
    """
    length = len(parent)
    used_ids = {offspring[i].id for i in range(point1, point2 + 1)}

    for i in range(length):
        if point1 <= i <= point2:
            continue

        j = i
        while parent[j].id in used_ids:
            j = (j + 1) % length

        offspring[i] = parent[j]
        used_ids.add(parent[j].id)


def pmx_crossover(
    parent_a: Individual,
    parent_b: Individual,
    rng: np.random.Generator
) -> Tuple[Individual, Individual]:
    """
    Combine two parents with partially-mapped crossover.

    Offspring A receives parent B's segment at the same positions and is
    completed from parent A; offspring B is built symmetrically. Both
    offspring are unevaluated permutations of the parents' task set.

    Args:
        parent_a: First parent
        parent_b: Second parent
        rng: Random number generator

    Returns:
        Tuple of (offspring_a, offspring_b)
    """
    chromosome_a = list(parent_a.chromosome)
    chromosome_b = list(parent_b.chromosome)
    length = len(chromosome_a)

    if length != len(chromosome_b):
        raise ValueError(
            f"Parents must have equal length, got {length} and {len(chromosome_b)}"
        )

    if length < 2:
        return Individual(chromosome=chromosome_a), Individual(chromosome=chromosome_b)

    point1, point2 = select_segment(length, rng)

    offspring_a = [None] * length
    offspring_b = [None] * length

    # Copy the mapping section
    for i in range(point1, point2 + 1):
        offspring_a[i] = chromosome_b[i]
        offspring_b[i] = chromosome_a[i]

    fill_remaining_positions(chromosome_a, offspring_a, point1, point2)
    fill_remaining_positions(chromosome_b, offspring_b, point1, point2)

    return Individual(chromosome=offspring_a), Individual(chromosome=offspring_b)
