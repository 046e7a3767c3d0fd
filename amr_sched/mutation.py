"""
Mutation operators for the genetic scheduler.

Implements permutation-preserving swap and inversion mutation, plus the
orchestrator that decides whether and how an individual is mutated.
"""

from typing import List, Tuple
import numpy as np

from .data_models import Individual
from .crossover import select_segment


def swap_mutation(individual: Individual, rng: np.random.Generator) -> Tuple[int, int]:
    """
    Exchange the tasks at two uniformly random positions (in place).

    The two positions may coincide, in which case nothing changes.

    Returns:
        The swapped positions
    """
    length = len(individual.chromosome)
    index1 = int(rng.integers(0, length))
    index2 = int(rng.integers(0, length))

    chromosome = individual.chromosome
    chromosome[index1], chromosome[index2] = chromosome[index2], chromosome[index1]
    return index1, index2


def inversion_mutation(individual: Individual, rng: np.random.Generator) -> Tuple[int, int]:
    """
    Reverse a random contiguous sub-range (in place).

    Returns:
        The inclusive (start, end) of the reversed range
    """
    point1, point2 = select_segment(len(individual.chromosome), rng)

    chromosome = individual.chromosome
    chromosome[point1:point2 + 1] = chromosome[point1:point2 + 1][::-1]
    return point1, point2


def mutate(
    individual: Individual,
    mutation_rate: float,
    rng: np.random.Generator
) -> List[str]:
    """
    Apply at most one mutation to an individual.

    With probability mutation_rate, picks swap or inversion 50/50 and
    applies it in place. A mutated individual is marked unevaluated and
    its objective values are reset to zero.

    Args:
        individual: Individual to mutate
        mutation_rate: Probability of applying a mutation
        rng: Random number generator

    Returns:
        Operation log
    """
    if rng.random() >= mutation_rate:
        return ["no_mutation: skipped (probability)"]

    if len(individual.chromosome) < 2:
        return ["no_mutation: chromosome too short"]

    if rng.random() < 0.5:
        i, j = swap_mutation(individual, rng)
        log = [f"swap_mutation: positions {i} <-> {j}"]
    else:
        i, j = inversion_mutation(individual, rng)
        log = [f"inversion_mutation: reversed [{i}, {j}]"]

    individual.fitness = 0.0
    individual.makespan = 0.0
    individual.idle_distance = 0.0
    individual.evaluated = False
    return log
