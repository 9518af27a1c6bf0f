from typing import List, Optional

from loguru import logger

from lotto645.combination_generator import CombinationSelector, SelectionContext
from lotto645.config import (
    GA_ELITISM_RATE, GA_GENERATIONS, GA_INVALID_FITNESS, GA_MIN_FITNESS, GA_MUTATION_RATE,
    GA_POPULATION_SIZE, GA_TOURNAMENT_SIZE, PICK_SIZE
)
from lotto645.data_types import Combination, SelectionResult, as_combination, decade_zone
from lotto645.random_source import RandomSource

ANTI_POPULARITY_WEIGHT = 0.40
STRUCTURE_WEIGHT = 0.35
COVERAGE_WEIGHT = 0.25


class GeneticSelector(CombinationSelector):
    """Evolves 6-number chromosomes drawn from the candidate pool."""

    name = "genetic"

    def __init__(self, num_generations=GA_GENERATIONS, population_size=GA_POPULATION_SIZE,
                 mutation_rate=GA_MUTATION_RATE, tournament_size=GA_TOURNAMENT_SIZE,
                 elitism_rate=GA_ELITISM_RATE, min_fitness=GA_MIN_FITNESS):
        self.num_generations = num_generations
        self.population_size = population_size
        self.mutation_rate = mutation_rate
        self.tournament_size = tournament_size
        self.elitism_count = int(population_size * elitism_rate)
        self.min_fitness = min_fitness
        logger.info("GeneticSelector initialized.")

    def fitness(self, chromosome: Combination, context: SelectionContext) -> float:
        """0.40 anti-popularity + 0.35 structural fit + 0.25 coverage; invalid -> 0.001."""
        if not context.validator.passes_hard_constraints(chromosome):
            # near zero keeps the chromosome around for diversity
            return GA_INVALID_FITNESS

        anti_pop = sum(float(context.unpopularity[n]) for n in chromosome) / PICK_SIZE
        structure = context.structural_fit(chromosome)
        return (anti_pop * ANTI_POPULARITY_WEIGHT
                + structure * STRUCTURE_WEIGHT
                + self._coverage_score(chromosome, context) * COVERAGE_WEIGHT)

    @staticmethod
    def _coverage_score(chromosome: Combination, context: SelectionContext) -> float:
        pair_avg = sum(float(context.pair_scores[n]) for n in chromosome) / PICK_SIZE
        zone_coverage = len({decade_zone(n) for n in chromosome}) / 5
        return pair_avg * 0.6 + zone_coverage * 0.4

    def _random_chromosome(self, pool: List[int], rng: RandomSource) -> Combination:
        return as_combination(rng.shuffled(pool)[:PICK_SIZE])

    def _selection(self, population, rng: RandomSource):
        """Performs tournament selection."""
        best = None
        for _ in range(self.tournament_size):
            candidate = population[rng.integers(0, len(population))]
            if best is None or candidate['fitness'] > best['fitness']:
                best = candidate
        return best

    def _crossover(self, parent1: Combination, parent2: Combination, pool: List[int],
                   rng: RandomSource) -> List[int]:
        """Keeps the genes both parents share, fills from the rest of either parent, then the pool."""
        p2_genes = set(parent2)
        child = [n for n in parent1 if n in p2_genes]
        used = set(child)

        candidates = [n for n in parent1 if n not in p2_genes] + [n for n in parent2 if n not in set(parent1)]
        for gene in rng.shuffled(candidates):
            if len(child) >= PICK_SIZE:
                break
            if gene not in used:
                child.append(gene)
                used.add(gene)

        if len(child) < PICK_SIZE:
            for gene in rng.shuffled([n for n in pool if n not in used]):
                if len(child) >= PICK_SIZE:
                    break
                child.append(gene)
        return child

    def _mutate(self, play: List[int], pool: List[int], rng: RandomSource) -> List[int]:
        """Replaces one gene with a pool number not already present."""
        mutated_play = play[:]
        if rng.random() > self.mutation_rate:
            return mutated_play

        available = [n for n in pool if n not in set(mutated_play)]
        if not available:
            return mutated_play
        index_to_mutate = rng.integers(0, len(mutated_play))
        mutated_play[index_to_mutate] = rng.choice(available)
        return mutated_play

    def evolve(self, context: SelectionContext):
        """
        Evolves a population of combinations over a number of generations.
        :param context: Selection context holding the pool and scoring inputs.
        :return: The final population sorted by fitness, best first.
        """
        pool = list(context.pool)
        rng = context.rng.child("genetic")
        logger.info(f"Starting evolution for {self.num_generations} generations on a pool of {len(pool)}...")

        population = []
        for _ in range(self.population_size):
            chromosome = self._random_chromosome(pool, rng)
            population.append({'play': chromosome, 'fitness': self.fitness(chromosome, context)})

        for gen in range(self.num_generations):
            population.sort(key=lambda x: x['fitness'], reverse=True)

            # 1. Elitism
            new_population = [dict(individual) for individual in population[:self.elitism_count]]

            # 2. Selection, crossover and mutation
            while len(new_population) < self.population_size:
                parent1 = self._selection(population, rng)
                parent2 = self._selection(population, rng)
                child = self._crossover(parent1['play'], parent2['play'], pool, rng)
                child_play = as_combination(self._mutate(child, pool, rng))
                new_population.append({'play': child_play, 'fitness': self.fitness(child_play, context)})

            population = new_population

            if (gen + 1) % 10 == 0:
                logger.info(f"Completed generation {gen + 1}/{self.num_generations}")

        population.sort(key=lambda x: x['fitness'], reverse=True)
        logger.info("Evolution complete.")
        return population

    def select(self, context: SelectionContext) -> Optional[SelectionResult]:
        if len(context.pool) < PICK_SIZE:
            logger.warning(f"Pool of {len(context.pool)} numbers is too small for the genetic selector")
            return None

        population = self.evolve(context)
        best = population[0]
        if best['fitness'] < self.min_fitness:
            logger.warning(f"Genetic selector best fitness {best['fitness']:.4f} below {self.min_fitness}")
            return None

        return SelectionResult(
            combination=best['play'],
            score=best['fitness'],
            method="genetic",
            converged=True,
            diagnostics={
                "generations": self.num_generations,
                "population_size": self.population_size,
                "mean_fitness": sum(p['fitness'] for p in population) / len(population),
            },
        )
