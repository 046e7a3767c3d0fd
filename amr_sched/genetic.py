"""
Genetic scheduler.

Searches task permutations for a low weighted objective of makespan and
idle distance. The run is exposed as a finite generator of per-generation
results, grouped into chunks between which the host regains control.
"""

import asyncio
import math
from enum import Enum
from itertools import islice
from typing import Callable, Iterator, List, Optional, Sequence

import numpy as np

from .config import GAConfig, ELITE_FRACTION, TOURNAMENT_SIZE
from .crossover import pmx_crossover
from .data_models import (
    GenerationResult, Individual, PopulationStats, Task
)
from .evaluation import evaluate, weighted_fitness
from .fifo import group_by_capacity
from .mutation import mutate


GenerationCallback = Callable[..., None]


class SchedulerState(Enum):
    """Lifecycle of one genetic scheduler run"""
    IDLE = "idle"
    INITIALIZING = "initializing"
    EVALUATING = "evaluating"
    REPRODUCING = "reproducing"
    TERMINATED = "terminated"


def validate_tasks(tasks: Sequence[Task]) -> None:
    """
    Reject task lists no schedule can be built from.

    Raises:
        ValueError: If the list is empty or task ids repeat
    """
    if not tasks:
        raise ValueError("Task list must contain at least one task")

    seen = set()
    for task in tasks:
        if task.id in seen:
            raise ValueError(f"Duplicate task id: {task.id}")
        seen.add(task.id)


def build_random_chromosome(tasks: Sequence[Task], rng: np.random.Generator) -> List[Task]:
    """
    Create a random capacity-grouped chromosome.

    Shuffles the tasks, groups the shuffled order with the FIFO capacity
    policy and flattens the groups. Group boundaries are not kept.

    Args:
        tasks: Full input task set
        rng: Random number generator

    Returns:
        Permutation of tasks
    """
    shuffled = [tasks[i] for i in rng.permutation(len(tasks))]
    groups, remainder = group_by_capacity(shuffled)
    return [task for group in groups for task in group] + remainder


def elite_count(population_size: int, elite_fraction: float = ELITE_FRACTION) -> int:
    """Number of individuals carried over unchanged (at least one)"""
    # Rounding first keeps e.g. 0.1 * 30 from ceiling to 4
    return max(1, math.ceil(round(elite_fraction * population_size, 9)))


def tournament_select(
    population: Sequence[Individual],
    rng: np.random.Generator,
    tournament_size: int = TOURNAMENT_SIZE
) -> Individual:
    """
    Pick a parent by tournament; the lowest fitness wins.

    Contestants are sampled uniformly with replacement.

    Returns:
        Copy of the winning individual

    Raises:
        RuntimeError: If a sampled contestant has not been evaluated
    """
    best = None
    for _ in range(tournament_size):
        candidate = population[int(rng.integers(0, len(population)))]
        if not candidate.evaluated:
            raise RuntimeError("Tournament selection requires evaluated individuals")
        if best is None or candidate.fitness < best.fitness:
            best = candidate
    return best.copy()


def population_statistics(population: Sequence[Individual]) -> PopulationStats:
    """Mean, worst and (population) standard deviation of fitness"""
    fitness = np.array([individual.fitness for individual in population], dtype=float)
    return PopulationStats(
        average_fitness=float(np.mean(fitness)),
        worst_fitness=float(np.max(fitness)),
        standard_deviation=float(np.std(fitness)),
    )


def find_best_individual(population: Sequence[Individual]) -> Individual:
    """First individual with the lowest fitness"""
    best = population[0]
    for individual in population[1:]:
        if individual.fitness < best.fitness:
            best = individual
    return best


class GeneticScheduler:
    """
    Population search over task permutations.

    One instance owns one run: its population, best-so-far individual and
    early-stop counters. A run can be consumed once through generations()
    or chunks().
    """

    def __init__(self,
                 tasks: Sequence[Task],
                 config: GAConfig,
                 rng: Optional[np.random.Generator] = None):
        config.validate()
        validate_tasks(tasks)

        self.tasks = list(tasks)
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.random_seed)

        self.chunk_size, self.early_stop_generations = config.resolve_schedule(len(self.tasks))

        self.state = SchedulerState.IDLE
        self.population: List[Individual] = []
        self.best: Optional[Individual] = None
        self.generation = 0
        self.last_best_fitness = math.inf
        self.generations_without_improvement = 0
        self.stopped_early = False

    def initialize_population(self) -> None:
        self.population = [
            Individual(chromosome=build_random_chromosome(self.tasks, self.rng))
            for _ in range(self.config.population_size)
        ]

    def evaluate_individual(self, individual: Individual) -> None:
        result = evaluate(individual.chromosome)
        individual.makespan = result.makespan
        individual.idle_distance = result.idle_distance
        individual.fitness = weighted_fitness(
            result, self.config.makespan_weight, self.config.idle_distance_weight
        )
        individual.evaluated = True

    def evaluate_population(self) -> None:
        for individual in self.population:
            if not individual.evaluated:
                self.evaluate_individual(individual)

    def create_new_generation(self) -> List[Individual]:
        """
        Build the next population: elites first, then offspring.

        Offspring come from tournament-selected parent pairs, crossed over
        with probability crossover_rate (otherwise cloned) and then mutated
        independently.
        """
        population_size = self.config.population_size
        ranked = sorted(self.population, key=lambda individual: individual.fitness)
        new_population = [
            individual.copy()
            for individual in ranked[:elite_count(population_size, self.config.elite_fraction)]
        ]

        while len(new_population) < population_size:
            parent_a = tournament_select(self.population, self.rng, self.config.tournament_size)
            parent_b = tournament_select(self.population, self.rng, self.config.tournament_size)

            if self.rng.random() < self.config.crossover_rate:
                offspring_a, offspring_b = pmx_crossover(parent_a, parent_b, self.rng)
            else:
                offspring_a, offspring_b = parent_a, parent_b

            mutate(offspring_a, self.config.mutation_rate, self.rng)
            mutate(offspring_b, self.config.mutation_rate, self.rng)

            new_population.append(offspring_a)
            if len(new_population) < population_size:
                new_population.append(offspring_b)

        return new_population

    def _result(self, stats: PopulationStats) -> GenerationResult:
        return GenerationResult(
            generation=self.generation,
            best_chromosome=tuple(self.best.chromosome),
            fitness=self.best.fitness,
            makespan=self.best.makespan,
            idle_distance=self.best.idle_distance,
            stats=stats,
        )

    def generations(self) -> Iterator[GenerationResult]:
        """
        Run the search, yielding one result per generation.

        Yields generation 0 (the initial population) and then each new
        generation until max_generations is reached or the best fitness has
        not improved by more than early_stop_threshold for
        early_stop_generations consecutive generations.

        Raises:
            RuntimeError: If this scheduler has already been run
        """
        if self.state != SchedulerState.IDLE:
            raise RuntimeError("GeneticScheduler runs cannot be restarted")

        try:
            self.state = SchedulerState.INITIALIZING
            self.initialize_population()

            self.state = SchedulerState.EVALUATING
            self.evaluate_population()

            self.best = find_best_individual(self.population).copy()
            self.last_best_fitness = self.best.fitness
            yield self._result(population_statistics(self.population))

            while self.generation < self.config.max_generations:
                self.state = SchedulerState.REPRODUCING
                self.population = self.create_new_generation()

                self.state = SchedulerState.EVALUATING
                self.evaluate_population()

                generation_best = find_best_individual(self.population)
                stats = population_statistics(self.population)

                improvement = self.last_best_fitness - generation_best.fitness
                if improvement > self.config.early_stop_threshold:
                    self.last_best_fitness = generation_best.fitness
                    self.generations_without_improvement = 0
                else:
                    self.generations_without_improvement += 1

                if generation_best.fitness < self.best.fitness:
                    self.best = generation_best.copy()

                self.generation += 1
                yield self._result(stats)

                if (self.generations_without_improvement >= self.early_stop_generations
                        and self.generation < self.config.max_generations):
                    self.stopped_early = True
                    break
        finally:
            self.state = SchedulerState.TERMINATED

    def chunks(self) -> Iterator[List[GenerationResult]]:
        """
        Run the search in chunks of chunk_size generations.

        The first chunk also carries generation 0. Each yield is the point
        where a host may interleave its own work or stop resuming.
        """
        results = self.generations()
        chunk = list(islice(results, 1 + self.chunk_size))
        while chunk:
            yield chunk
            chunk = list(islice(results, self.chunk_size))


def _dispatch(on_generation: Optional[GenerationCallback], result: GenerationResult) -> None:
    if on_generation is None:
        return
    on_generation(
        result.generation,
        list(result.best_chromosome),
        result.fitness,
        result.makespan,
        result.idle_distance,
        result.stats,
    )


def run_ga(
    config: GAConfig,
    tasks: Sequence[Task],
    on_generation: Optional[GenerationCallback] = None,
    on_complete: Optional[Callable[[], None]] = None,
    rng: Optional[np.random.Generator] = None
) -> Individual:
    """
    Run the genetic scheduler to completion synchronously.

    on_generation(generation, best_chromosome, fitness, makespan,
    idle_distance, stats) fires once per generation in order, including
    generation 0; on_complete() fires exactly once at the end.

    Args:
        config: GA parameters
        tasks: Full input task set
        on_generation: Optional per-generation callback
        on_complete: Optional completion callback
        rng: Random number generator (defaults to one seeded from config)

    Returns:
        Best individual found
    """
    scheduler = GeneticScheduler(tasks, config, rng)
    for chunk in scheduler.chunks():
        for result in chunk:
            _dispatch(on_generation, result)

    if on_complete is not None:
        on_complete()
    return scheduler.best


async def run_ga_async(
    config: GAConfig,
    tasks: Sequence[Task],
    on_generation: Optional[GenerationCallback] = None,
    on_complete: Optional[Callable[[], None]] = None,
    rng: Optional[np.random.Generator] = None
) -> Individual:
    """
    Event-loop variant of run_ga that yields to the loop after every chunk.

    Cancelling the task stops the run at the next chunk boundary; on_complete
    is not called for a cancelled run.
    """
    scheduler = GeneticScheduler(tasks, config, rng)
    for chunk in scheduler.chunks():
        for result in chunk:
            _dispatch(on_generation, result)
        await asyncio.sleep(0)

    if on_complete is not None:
        on_complete()
    return scheduler.best
