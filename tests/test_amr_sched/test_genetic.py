"""
Tests for GA operations and the genetic scheduler run loop.
"""

import asyncio
import math
import unittest
import numpy as np

from amr_sched.config import GAConfig, ConfigValidationError, adaptive_schedule
from amr_sched.crossover import pmx_crossover, select_segment
from amr_sched.data_models import TaskType, Position, Task, Individual
from amr_sched.evaluation import evaluate, weighted_fitness
from amr_sched.fifo import schedule_fifo
from amr_sched.genetic import (
    GeneticScheduler,
    SchedulerState,
    build_random_chromosome,
    elite_count,
    tournament_select,
    population_statistics,
    run_ga,
    run_ga_async,
)
from amr_sched.mutation import swap_mutation, inversion_mutation, mutate
from amr_sched.task_generator import generate_random_tasks


TYPES = [TaskType.DELIVERY, TaskType.PICKUP, TaskType.PICKUP_DELIVERY]


def make_tasks(count):
    """Deterministic mixed task set with ids 1..count"""
    return [
        Task(
            id=i + 1,
            task_type=TYPES[i % 3],
            position=Position(3 + (i * 5) % 12, 3 + (i * 3) % 8),
            processing_time=3 + i % 5,
        )
        for i in range(count)
    ]


def assert_permutation(test, chromosome, tasks):
    test.assertEqual(len(chromosome), len(tasks))
    test.assertEqual(sorted(task.id for task in chromosome), sorted(task.id for task in tasks))


class TestOperators(unittest.TestCase):
    """Test chromosome construction, crossover and mutation."""

    def setUp(self):
        self.tasks = make_tasks(12)
        self.rng = np.random.default_rng(42)

    def test_random_chromosome_is_permutation(self):
        for _ in range(20):
            assert_permutation(self, build_random_chromosome(self.tasks, self.rng), self.tasks)

    def test_random_chromosome_varies(self):
        orders = {tuple(t.id for t in build_random_chromosome(self.tasks, self.rng)) for _ in range(10)}
        self.assertGreater(len(orders), 1)

    def test_select_segment_bounds(self):
        for length in [2, 3, 10]:
            for _ in range(50):
                point1, point2 = select_segment(length, self.rng)
                self.assertTrue(0 <= point1 <= length - 2)
                self.assertTrue(point1 <= point2 <= length - 1)

    def test_pmx_preserves_permutation(self):
        for _ in range(50):
            parent_a = Individual(chromosome=build_random_chromosome(self.tasks, self.rng))
            parent_b = Individual(chromosome=build_random_chromosome(self.tasks, self.rng))
            offspring_a, offspring_b = pmx_crossover(parent_a, parent_b, self.rng)

            assert_permutation(self, offspring_a.chromosome, self.tasks)
            assert_permutation(self, offspring_b.chromosome, self.tasks)
            self.assertFalse(offspring_a.evaluated)
            self.assertFalse(offspring_b.evaluated)

    def test_pmx_copies_other_parents_segment(self):
        """Offspring A carries parent B's segment at the same positions."""
        parent_a = Individual(chromosome=list(self.tasks))
        parent_b = Individual(chromosome=list(reversed(self.tasks)))

        rng = np.random.default_rng(3)
        point1, point2 = select_segment(len(self.tasks), np.random.default_rng(3))
        offspring_a, offspring_b = pmx_crossover(parent_a, parent_b, rng)

        for i in range(point1, point2 + 1):
            self.assertIs(offspring_a.chromosome[i], parent_b.chromosome[i])
            self.assertIs(offspring_b.chromosome[i], parent_a.chromosome[i])

    def test_pmx_identical_parents(self):
        parent = Individual(chromosome=list(self.tasks))
        offspring_a, offspring_b = pmx_crossover(parent, parent.copy(), self.rng)
        self.assertEqual(offspring_a.chromosome, self.tasks)
        self.assertEqual(offspring_b.chromosome, self.tasks)

    def test_pmx_single_task(self):
        single = make_tasks(1)
        offspring_a, offspring_b = pmx_crossover(
            Individual(chromosome=list(single)), Individual(chromosome=list(single)), self.rng
        )
        self.assertEqual(offspring_a.chromosome, single)
        self.assertEqual(offspring_b.chromosome, single)

    def test_pmx_length_mismatch(self):
        with self.assertRaises(ValueError):
            pmx_crossover(Individual(chromosome=self.tasks),
                          Individual(chromosome=self.tasks[:-1]), self.rng)

    def test_swap_mutation(self):
        individual = Individual(chromosome=list(self.tasks))
        i, j = swap_mutation(individual, self.rng)

        assert_permutation(self, individual.chromosome, self.tasks)
        self.assertIs(individual.chromosome[i], self.tasks[j])
        self.assertIs(individual.chromosome[j], self.tasks[i])

    def test_inversion_mutation(self):
        individual = Individual(chromosome=list(self.tasks))
        start, end = inversion_mutation(individual, self.rng)

        assert_permutation(self, individual.chromosome, self.tasks)
        self.assertEqual(individual.chromosome[start:end + 1], self.tasks[start:end + 1][::-1])
        self.assertEqual(individual.chromosome[:start], self.tasks[:start])
        self.assertEqual(individual.chromosome[end + 1:], self.tasks[end + 1:])

    def test_mutate_with_zero_rate(self):
        individual = Individual(chromosome=list(self.tasks), evaluated=True)
        for _ in range(20):
            log = mutate(individual, 0.0, self.rng)
            self.assertIn("no_mutation", log[0])
        self.assertEqual(individual.chromosome, self.tasks)
        self.assertTrue(individual.evaluated)

    def test_mutate_with_full_rate(self):
        individual = Individual(chromosome=list(self.tasks), fitness=42.0, makespan=50.0,
                                idle_distance=12.0, evaluated=True)
        log = mutate(individual, 1.0, self.rng)

        self.assertTrue(log[0].startswith(("swap_mutation", "inversion_mutation")))
        self.assertFalse(individual.evaluated)
        self.assertEqual(individual.fitness, 0.0)
        self.assertEqual(individual.makespan, 0.0)
        self.assertEqual(individual.idle_distance, 0.0)
        assert_permutation(self, individual.chromosome, self.tasks)

    def test_mutate_short_chromosome(self):
        individual = Individual(chromosome=make_tasks(1))
        log = mutate(individual, 1.0, self.rng)
        self.assertIn("too short", log[0])


class TestSelection(unittest.TestCase):
    """Test elitism and tournament selection."""

    def test_elite_count(self):
        self.assertEqual(elite_count(1), 1)
        self.assertEqual(elite_count(5), 1)
        self.assertEqual(elite_count(10), 1)
        self.assertEqual(elite_count(11), 2)
        self.assertEqual(elite_count(30), 3)
        self.assertEqual(elite_count(50), 5)

    def test_tournament_picks_lowest_fitness(self):
        tasks = make_tasks(3)
        population = [
            Individual(chromosome=list(tasks), fitness=float(f), evaluated=True)
            for f in [9, 4, 7]
        ]
        rng = np.random.default_rng(0)

        # With a tournament as large as the sample space, the best wins almost surely
        winners = [tournament_select(population, rng, tournament_size=30).fitness for _ in range(10)]
        self.assertEqual(winners, [4.0] * 10)

    def test_tournament_returns_copy(self):
        population = [Individual(chromosome=make_tasks(3), fitness=1.0, evaluated=True)]
        winner = tournament_select(population, np.random.default_rng(0))
        self.assertIsNot(winner, population[0])
        self.assertIsNot(winner.chromosome, population[0].chromosome)

    def test_tournament_rejects_unevaluated(self):
        population = [Individual(chromosome=make_tasks(3))]
        with self.assertRaises(RuntimeError):
            tournament_select(population, np.random.default_rng(0))

    def test_population_statistics(self):
        population = [Individual(chromosome=[], fitness=f, evaluated=True) for f in [2.0, 4.0, 6.0]]
        stats = population_statistics(population)

        self.assertAlmostEqual(stats.average_fitness, 4.0)
        self.assertAlmostEqual(stats.worst_fitness, 6.0)
        self.assertAlmostEqual(stats.standard_deviation, math.sqrt(8 / 3))


class TestConfig(unittest.TestCase):
    """Test GA configuration validation and defaults."""

    def test_adaptive_schedule(self):
        self.assertEqual(adaptive_schedule(25), (3, 5))
        self.assertEqual(adaptive_schedule(21), (3, 5))
        self.assertEqual(adaptive_schedule(20), (4, 8))
        self.assertEqual(adaptive_schedule(16), (4, 8))
        self.assertEqual(adaptive_schedule(15), (5, 10))
        self.assertEqual(adaptive_schedule(3), (5, 10))

    def test_overrides_win(self):
        config = GAConfig(chunk_size=2, early_stop_generations=4)
        self.assertEqual(config.resolve_schedule(30), (2, 4))

    def test_invalid_values(self):
        for kwargs in [
            {'population_size': 0},
            {'population_size': -3},
            {'max_generations': 0},
            {'crossover_rate': 1.5},
            {'mutation_rate': -0.1},
            {'makespan_weight': -1},
            {'chunk_size': 0},
        ]:
            with self.assertRaises(ConfigValidationError, msg=str(kwargs)):
                GAConfig(**kwargs).validate()

    def test_rejects_wrong_types(self):
        """Null, string and boolean values fail validation cleanly."""
        for data in [
            {'crossover_rate': None},
            {'mutation_rate': 'high'},
            {'makespan_weight': None},
            {'population_size': True},
            {'max_generations': 10.5},
            {'tournament_size': '3'},
            {'chunk_size': False},
            {'random_seed': 'abc'},
        ]:
            with self.assertRaises(ConfigValidationError, msg=str(data)):
                GAConfig.from_dict(data)

    def test_from_dict_accepts_camel_case(self):
        config = GAConfig.from_dict({
            'populationSize': 20,
            'maxGenerations': 15,
            'crossoverRate': 0.9,
            'mutationRate': 0.2,
            'makeSpanWeight': 0.5,
            'idleDistanceWeight': 0.5,
        })
        self.assertEqual(config.population_size, 20)
        self.assertEqual(config.max_generations, 15)
        self.assertEqual(config.makespan_weight, 0.5)

    def test_from_dict_rejects_unknown_keys(self):
        with self.assertRaises(ConfigValidationError):
            GAConfig.from_dict({'populaton_size': 20})


class TestGeneticScheduler(unittest.TestCase):
    """Test the GA run loop and its reporting contract."""

    def setUp(self):
        self.tasks = make_tasks(10)
        self.config = GAConfig(population_size=20, max_generations=30, crossover_rate=0.8,
                               mutation_rate=0.2, random_seed=42)

    def test_fails_fast_on_bad_input(self):
        with self.assertRaises(ValueError):
            GeneticScheduler([], self.config)
        with self.assertRaises(ConfigValidationError):
            GeneticScheduler(self.tasks, GAConfig(population_size=0))
        with self.assertRaises(ConfigValidationError):
            GeneticScheduler(self.tasks, GAConfig(max_generations=0))
        with self.assertRaises(ValueError):
            GeneticScheduler(self.tasks + self.tasks[:1], self.config)

    def test_permutation_invariant_every_generation(self):
        scheduler = GeneticScheduler(self.tasks, self.config)
        for result in scheduler.generations():
            assert_permutation(self, result.best_chromosome, self.tasks)
            self.assertEqual(len(scheduler.population), self.config.population_size)
            for individual in scheduler.population:
                assert_permutation(self, individual.chromosome, self.tasks)
                self.assertTrue(individual.evaluated)

    def test_fitness_matches_evaluator(self):
        scheduler = GeneticScheduler(self.tasks, self.config)
        for result in scheduler.generations():
            objective = evaluate(result.best_chromosome)
            self.assertAlmostEqual(result.makespan, objective.makespan)
            self.assertAlmostEqual(result.idle_distance, objective.idle_distance)
            self.assertAlmostEqual(result.fitness, weighted_fitness(objective, 0.7, 0.3))

    def test_best_fitness_is_monotone(self):
        results = list(GeneticScheduler(self.tasks, self.config).generations())
        for previous, current in zip(results, results[1:]):
            self.assertLessEqual(current.fitness, previous.fitness)

    def test_generation_indices_and_bound(self):
        results = list(GeneticScheduler(self.tasks, self.config).generations())

        self.assertEqual(results[0].generation, 0)
        self.assertEqual([r.generation for r in results], list(range(len(results))))
        self.assertLessEqual(len(results), self.config.max_generations + 1)

    def test_runs_full_budget_without_early_stop(self):
        config = GAConfig(population_size=10, max_generations=7, early_stop_generations=100,
                          random_seed=1)
        scheduler = GeneticScheduler(self.tasks, config)
        results = list(scheduler.generations())

        self.assertEqual(len(results), 8)
        self.assertEqual(scheduler.generation, 7)
        self.assertFalse(scheduler.stopped_early)
        self.assertEqual(scheduler.state, SchedulerState.TERMINATED)

    def test_early_stop(self):
        """A single-task problem can never improve, so patience runs out."""
        config = GAConfig(population_size=5, max_generations=100, random_seed=0)
        scheduler = GeneticScheduler(make_tasks(1), config)
        results = list(scheduler.generations())

        # Default patience for small task sets is 10
        self.assertEqual(len(results), 11)
        self.assertTrue(scheduler.stopped_early)

    def test_patience_on_last_generation_is_not_early_stop(self):
        """Running out of patience exactly at max_generations is a normal finish."""
        config = GAConfig(population_size=5, max_generations=3, early_stop_generations=3,
                          random_seed=0)
        scheduler = GeneticScheduler(make_tasks(1), config)
        results = list(scheduler.generations())

        self.assertEqual(len(results), 4)
        self.assertEqual(scheduler.generation, 3)
        self.assertEqual(scheduler.generations_without_improvement, 3)
        self.assertFalse(scheduler.stopped_early)

    def test_new_generation_keeps_size_and_elites(self):
        """Odd and tiny populations keep their size; elites lead unchanged."""
        for population_size in [1, 2, 7, 11]:
            config = GAConfig(population_size=population_size, max_generations=5,
                              mutation_rate=1.0, random_seed=3)
            scheduler = GeneticScheduler(self.tasks, config)
            scheduler.initialize_population()
            scheduler.evaluate_population()

            ranked = sorted(scheduler.population, key=lambda individual: individual.fitness)
            k = elite_count(population_size)
            new_population = scheduler.create_new_generation()

            self.assertEqual(len(new_population), population_size)
            self.assertEqual([individual.task_ids() for individual in new_population[:k]],
                             [individual.task_ids() for individual in ranked[:k]])
            for elite, original in zip(new_population[:k], ranked[:k]):
                self.assertTrue(elite.evaluated)
                self.assertEqual(elite.fitness, original.fitness)
            for individual in new_population:
                assert_permutation(self, individual.chromosome, self.tasks)

    def test_not_restartable(self):
        scheduler = GeneticScheduler(self.tasks, self.config)
        list(scheduler.generations())
        with self.assertRaises(RuntimeError):
            list(scheduler.generations())

    def test_chunks(self):
        """First chunk carries generation 0 plus chunk_size generations."""
        config = GAConfig(population_size=10, max_generations=12, chunk_size=5,
                          early_stop_generations=100, random_seed=5)
        chunks = list(GeneticScheduler(self.tasks, config).chunks())

        self.assertEqual([len(chunk) for chunk in chunks], [6, 5, 2])
        flattened = [result.generation for chunk in chunks for result in chunk]
        self.assertEqual(flattened, list(range(13)))

    def test_seeded_runs_are_reproducible(self):
        first = list(GeneticScheduler(self.tasks, self.config).generations())
        second = list(GeneticScheduler(self.tasks, self.config).generations())
        self.assertEqual([r.fitness for r in first], [r.fitness for r in second])

    def test_not_worse_than_fifo_on_small_instance(self):
        tasks = generate_random_tasks(8, np.random.default_rng(11))
        config = GAConfig(population_size=40, max_generations=60, random_seed=11)

        best = run_ga(config, tasks)
        fifo = evaluate(schedule_fifo(tasks))
        fifo_fitness = weighted_fitness(fifo, config.makespan_weight, config.idle_distance_weight)

        self.assertLessEqual(best.fitness, fifo_fitness + 1e-9)


class TestRunDrivers(unittest.TestCase):
    """Test the callback-based drivers."""

    def setUp(self):
        self.tasks = make_tasks(8)
        self.config = GAConfig(population_size=12, max_generations=15, random_seed=7)

    def test_run_ga_callbacks(self):
        generations = []
        completions = []

        def on_generation(generation, best_chromosome, fitness, makespan, idle_distance, stats):
            generations.append((generation, fitness))
            self.assertIsInstance(best_chromosome, list)
            self.assertLessEqual(fitness, stats.worst_fitness + 1e-9)
            self.assertGreaterEqual(stats.standard_deviation, 0.0)

        def on_complete():
            completions.append(len(generations))

        best = run_ga(self.config, self.tasks, on_generation, on_complete)

        self.assertEqual(generations[0][0], 0)
        self.assertEqual([g for g, _ in generations], list(range(len(generations))))
        self.assertLessEqual(len(generations), self.config.max_generations + 1)
        self.assertEqual(completions, [len(generations)])
        self.assertAlmostEqual(best.fitness, generations[-1][1])

    def test_run_ga_without_callbacks(self):
        best = run_ga(self.config, self.tasks)
        assert_permutation(self, best.chromosome, self.tasks)

    def test_run_ga_async(self):
        generations = []
        completions = []

        best = asyncio.run(run_ga_async(
            self.config, self.tasks,
            lambda generation, *args: generations.append(generation),
            lambda: completions.append(True),
        ))

        self.assertEqual(generations, list(range(len(generations))))
        self.assertEqual(completions, [True])
        assert_permutation(self, best.chromosome, self.tasks)

    def test_async_matches_sync_for_same_seed(self):
        sync_best = run_ga(self.config, self.tasks)
        async_best = asyncio.run(run_ga_async(self.config, self.tasks))
        self.assertEqual(sync_best.task_ids(), async_best.task_ids())


def run_tests():
    """Run all tests in this module."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestOperators))
    suite.addTests(loader.loadTestsFromTestCase(TestSelection))
    suite.addTests(loader.loadTestsFromTestCase(TestConfig))
    suite.addTests(loader.loadTestsFromTestCase(TestGeneticScheduler))
    suite.addTests(loader.loadTestsFromTestCase(TestRunDrivers))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == '__main__':
    import sys
    success = run_tests()
    sys.exit(0 if success else 1)
