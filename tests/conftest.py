"""
Shared fixtures for the LOTTO645 test suite
===========================================

Synthetic draw histories are generated from a seeded numpy generator so
every test sees the same data, and pipeline settings are scaled down so
the MCMC and genetic selectors finish quickly.
"""

from datetime import datetime, timedelta

import numpy as np
import pytest

from lotto645.combination_generator import SelectionContext
from lotto645.config_manager import PipelineSettings
from lotto645.constraint_validator import ConstraintValidator
from lotto645.data_types import DrawRecord
from lotto645.frequency_analysis import calculate_pair_correlation
from lotto645.fusion import select_pool
from lotto645.population_model import compute_unpopularity_vector
from lotto645.random_source import RandomSource
from lotto645.score_utils import normalize_scores
from lotto645.scoring_models import run_scoring_models

FIRST_DRAW = datetime(2002, 12, 7)
VALID_COMBINATION = (3, 14, 25, 31, 38, 42)


def make_draws(count, seed=7, favourite=None, start_number=1):
    """Weekly draws with uniformly random numbers; `favourite` is forced into every draw."""
    generator = np.random.default_rng(seed)
    draws = []
    for i in range(count):
        numbers = [int(n) for n in generator.choice(np.arange(1, 46), size=6, replace=False)]
        if favourite is not None and favourite not in numbers:
            numbers[0] = favourite
        remaining = [n for n in range(1, 46) if n not in numbers]
        bonus = int(remaining[int(generator.integers(0, len(remaining)))])
        draws.append(DrawRecord(
            draw_number=start_number + i,
            date=(FIRST_DRAW + timedelta(weeks=i)).strftime('%Y-%m-%d'),
            numbers=tuple(numbers),
            bonus=bonus,
        ))
    return draws


@pytest.fixture
def draw_factory():
    return make_draws


@pytest.fixture
def draws():
    return make_draws(100)


@pytest.fixture
def dominant_draws():
    """History in which number 45 appears in every draw."""
    return make_draws(90, seed=11, favourite=45)


@pytest.fixture
def valid_combination():
    return VALID_COMBINATION


@pytest.fixture
def fast_settings():
    return PipelineSettings(
        parallel=False,
        monte_carlo_trials=300,
        mcmc_chains=2,
        mcmc_burn_in=200,
        mcmc_samples=100,
        mcmc_rejection_draws=200,
        ga_population_size=30,
        ga_generations=5,
        fallback_attempts=200,
    )


@pytest.fixture
def selection_context(draws):
    rng = RandomSource(42)
    models = run_scoring_models(draws, rng.child("scoring"), parallel=False, monte_carlo_trials=300)
    pool_result = select_pool(models)
    return SelectionContext(
        pool=pool_result.pool,
        fused_scores=pool_result.fused_scores,
        unpopularity=compute_unpopularity_vector(draws),
        validator=ConstraintValidator.from_draws(draws),
        pair_scores=normalize_scores(calculate_pair_correlation(draws)),
        rng=rng.child("selector"),
    )
