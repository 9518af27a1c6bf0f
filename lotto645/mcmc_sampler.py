"""
MCMC Selector: constrained Metropolis-Hastings over 6-number combinations.

Target: log pi(c) = 0.6 * log(anti-popularity(c)) + 0.4 * log(structural fit(c)),
with a flat -1e9 for combinations that break a hard constraint. The proposal
swaps one number for one not already present, which is symmetric, so the
acceptance ratio is pi(proposed) / pi(current).

Four chains start from random valid combinations on independent random
streams; convergence is judged by the Gelman-Rubin R-hat of the sampled log
densities. A chain set that does not converge falls back to rejection
sampling over random valid combinations.
"""
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from lotto645.combination_generator import CombinationSelector, SelectionContext, zone_guaranteed_combination
from lotto645.config import (
    INVALID_LOG_DENSITY, MCMC_ANTI_POPULARITY_WEIGHT, MCMC_BURN_IN, MCMC_CHAINS, MCMC_R_HAT_THRESHOLD,
    MCMC_REJECTION_DRAWS, MCMC_SAMPLES, MCMC_STRUCTURE_WEIGHT, NUMBER_RANGE, PICK_SIZE, UNPOPULARITY_FLOOR
)
from lotto645.data_types import Combination, SelectionResult, as_combination
from lotto645.random_source import RandomSource

# valid combinations are a minority of all draws; cap the total rejection tries
_REJECTION_TRY_FACTOR = 50
# random draws tried for a valid chain start before the zone construction
_START_TRIES = 1000


@dataclass
class ChainTrace:
    samples: List[Combination]
    log_densities: List[float]
    acceptance_rate: float


def compute_r_hat(chain_scores: Sequence[Sequence[float]]) -> float:
    """
    Gelman-Rubin potential scale reduction factor.

    Returns 2.0 when there are fewer than two chains or two samples per
    chain, and 1.0 when every chain is constant (zero within-chain variance).
    """
    m = len(chain_scores)
    if m < 2:
        return 2.0
    n = min(len(chain) for chain in chain_scores)
    if n < 2:
        return 2.0

    scores = np.array([list(chain)[:n] for chain in chain_scores], dtype=float)
    chain_means = scores.mean(axis=1)
    between = n * chain_means.var(ddof=1)
    within = scores.var(axis=1, ddof=1).mean()
    if within == 0:
        return 1.0

    var_hat = ((n - 1) / n) * within + between / n
    return math.sqrt(var_hat / within)


def _random_combination(rng: RandomSource) -> Combination:
    return as_combination(rng.sample(NUMBER_RANGE, PICK_SIZE))


def _propose_swap(combo: Combination, rng: RandomSource) -> Combination:
    present = set(combo)
    available = [n for n in NUMBER_RANGE if n not in present]
    replaced = list(combo)
    replaced[rng.integers(0, PICK_SIZE)] = rng.choice(available)
    return as_combination(replaced)


class MCMCSelector(CombinationSelector):
    """Multi-chain Metropolis-Hastings selector with a rejection-sampling fallback."""

    name = "mcmc"

    def __init__(self, chains: int = MCMC_CHAINS, burn_in: int = MCMC_BURN_IN,
                 samples: int = MCMC_SAMPLES, r_hat_threshold: float = MCMC_R_HAT_THRESHOLD,
                 rejection_draws: int = MCMC_REJECTION_DRAWS, parallel: bool = True):
        self.chains = chains
        self.burn_in = burn_in
        self.samples = samples
        self.r_hat_threshold = r_hat_threshold
        self.rejection_draws = rejection_draws
        self.parallel = parallel

    def log_density_fn(self, context: SelectionContext) -> Callable[[Combination], float]:
        cache: Dict[Combination, float] = {}

        def log_density(combo: Combination) -> float:
            cached = cache.get(combo)
            if cached is not None:
                return cached
            if not context.validator.passes_hard_constraints(combo):
                value = INVALID_LOG_DENSITY
            else:
                anti_pop = max(context.anti_popularity(combo), UNPOPULARITY_FLOOR)
                fit = max(context.structural_fit(combo), UNPOPULARITY_FLOOR)
                value = MCMC_ANTI_POPULARITY_WEIGHT * math.log(anti_pop) + MCMC_STRUCTURE_WEIGHT * math.log(fit)
            cache[combo] = value
            return value

        return log_density

    def initial_state(self, log_density: Callable[[Combination], float], rng: RandomSource,
                      fallback: Optional[Callable[[], Combination]] = None) -> Combination:
        """A random valid combination, or `fallback()` after _START_TRIES invalid draws."""
        combo = None
        for _ in range(_START_TRIES):
            combo = _random_combination(rng)
            if log_density(combo) > INVALID_LOG_DENSITY:
                return combo
        if fallback is None:
            return combo
        logger.warning(f"No valid chain start in {_START_TRIES} random draws")
        return fallback()

    def run_chain(self, log_density: Callable[[Combination], float], rng: RandomSource,
                  fallback: Optional[Callable[[], Combination]] = None) -> ChainTrace:
        current = self.initial_state(log_density, rng, fallback)
        current_score = log_density(current)
        samples: List[Combination] = []
        scores: List[float] = []
        accepted = 0

        for iteration in range(self.burn_in + self.samples):
            proposed = _propose_swap(current, rng)
            proposed_score = log_density(proposed)
            log_alpha = proposed_score - current_score
            if log_alpha >= 0 or math.log(max(rng.random(), 1e-300)) < log_alpha:
                current, current_score = proposed, proposed_score
                accepted += 1
            if iteration >= self.burn_in:
                samples.append(current)
                scores.append(current_score)

        total = self.burn_in + self.samples
        return ChainTrace(samples=samples, log_densities=scores, acceptance_rate=accepted / total if total else 0.0)

    def select(self, context: SelectionContext) -> Optional[SelectionResult]:
        log_density = self.log_density_fn(context)

        def start_fallback() -> Combination:
            return zone_guaranteed_combination(context).combination

        chain_rngs = [context.rng.child("mcmc_chain", c) for c in range(self.chains)]
        logger.info(f"Running {self.chains} MCMC chains ({self.burn_in} burn-in + {self.samples} samples)")

        if self.parallel and self.chains > 1:
            with ThreadPoolExecutor(max_workers=self.chains) as executor:
                futures = [executor.submit(self.run_chain, log_density, rng, start_fallback) for rng in chain_rngs]
                traces = [future.result() for future in futures]
        else:
            traces = [self.run_chain(log_density, rng, start_fallback) for rng in chain_rngs]

        r_hat = compute_r_hat([trace.log_densities for trace in traces])
        acceptance = tuple(round(trace.acceptance_rate, 3) for trace in traces)
        logger.debug(f"MCMC R-hat={r_hat:.4f}, acceptance rates={acceptance}")

        best_combo, best_score = None, -math.inf
        for trace in traces:
            for combo, score in zip(trace.samples, trace.log_densities):
                if score > best_score:
                    best_combo, best_score = combo, score

        converged = r_hat < self.r_hat_threshold
        if converged and best_combo is not None and best_score > INVALID_LOG_DENSITY:
            logger.info(f"MCMC converged (R-hat={r_hat:.4f}), best log density {best_score:.4f}")
            return SelectionResult(
                combination=best_combo,
                score=best_score,
                method="mcmc",
                converged=True,
                r_hat=r_hat,
                diagnostics={"acceptance_rates": acceptance},
            )

        logger.warning(f"MCMC did not converge (R-hat={r_hat:.4f}); falling back to rejection sampling")
        return self.rejection_sample(log_density, context.rng.child("mcmc_rejection"), r_hat)

    def rejection_sample(self, log_density: Callable[[Combination], float], rng: RandomSource,
                         chain_r_hat: float = math.nan) -> Optional[SelectionResult]:
        """Best of `rejection_draws` valid uniformly random combinations."""
        best_combo, best_score = None, -math.inf
        valid = 0
        for _ in range(self.rejection_draws * _REJECTION_TRY_FACTOR):
            if valid >= self.rejection_draws:
                break
            combo = _random_combination(rng)
            score = log_density(combo)
            if score <= INVALID_LOG_DENSITY:
                continue
            valid += 1
            if score > best_score:
                best_combo, best_score = combo, score

        if best_combo is None:
            logger.warning("Rejection sampling found no valid combination")
            return None
        return SelectionResult(
            combination=best_combo,
            score=best_score,
            method="rejection",
            converged=False,
            diagnostics={"valid_draws": valid, "chain_r_hat": chain_r_hat},
        )
