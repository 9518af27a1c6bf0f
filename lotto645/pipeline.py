"""
Strategy pipeline for LOTTO645.

draws -> seven scoring models -> fusion and pool sizing -> population and
structural models -> combinatorial selector (with fallbacks) -> EV engine
-> StrategyResult.

Every random stream is derived from one seed, so identical draws and
timestamp always produce an identical result.
"""
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import pandas as pd
from loguru import logger

from lotto645.combination_generator import (
    CombinationSelector, SelectionContext, anchor_combination, weighted_sample_fallback,
    zone_guaranteed_combination
)
from lotto645.combinatorics import Combinatorics
from lotto645.config import MIN_MEANINGFUL_DRAWS
from lotto645.config_manager import PipelineSettings
from lotto645.constraint_validator import ConstraintValidator
from lotto645.data_types import DrawRecord, SelectionResult, StrategyResult, sort_draws
from lotto645.date_utils import DateManager
from lotto645.evolutionary_engine import GeneticSelector
from lotto645.exceptions import ConfigurationError
from lotto645.expected_value import calculate_expected_value
from lotto645.frequency_analysis import (
    calculate_frequencies, calculate_pair_correlation, chi_square_test, get_cold_numbers, get_hot_numbers
)
from lotto645.fusion import find_dominant_number, select_pool
from lotto645.mcmc_sampler import MCMCSelector
from lotto645.population_model import (
    combination_unpopularity, compute_unpopularity_vector, estimate_co_winners
)
from lotto645.random_source import RandomSource, seed_from_timestamp
from lotto645.score_utils import normalize_scores
from lotto645.scoring_models import run_scoring_models


@dataclass(frozen=True)
class AnalysisReport:
    """Descriptive statistics of the history plus the recommended strategy."""
    frequencies: pd.DataFrame
    hot_numbers: pd.DataFrame
    cold_numbers: pd.DataFrame
    chi_square: Dict[str, Any]
    total_draws: int
    first_draw_number: Optional[int]
    latest_draw: Optional[DrawRecord]
    next_draw_number: Optional[int]
    next_draw_date: str
    strategy: StrategyResult


def build_selector(settings: PipelineSettings) -> CombinationSelector:
    """Creates the configured combinatorial selector."""
    if settings.selector == "genetic":
        return GeneticSelector(
            num_generations=settings.ga_generations,
            population_size=settings.ga_population_size,
            mutation_rate=settings.ga_mutation_rate,
            tournament_size=settings.ga_tournament_size,
            elitism_rate=settings.ga_elitism_rate,
        )
    return MCMCSelector(
        chains=settings.mcmc_chains,
        burn_in=settings.mcmc_burn_in,
        samples=settings.mcmc_samples,
        r_hat_threshold=settings.mcmc_r_hat_threshold,
        rejection_draws=settings.mcmc_rejection_draws,
        parallel=settings.parallel,
    )


def _select_combination(selector: CombinationSelector, context: SelectionContext,
                        settings: PipelineSettings) -> SelectionResult:
    """Runs the selector, then the weighted and zone-guaranteed fallbacks as needed."""
    result = selector.select(context)
    if result is not None and context.validator.passes_hard_constraints(result.combination):
        return result
    if result is not None:
        logger.warning(f"{result.method} returned {result.combination}, which violates "
                       f"{context.validator.violations(result.combination)}")

    result = weighted_sample_fallback(context, attempts=settings.fallback_attempts,
                                      temperature=settings.fallback_temperature)
    if result is not None:
        return result
    return zone_guaranteed_combination(context)


def generate_strategy(draws: Sequence[DrawRecord], timestamp_ms: Optional[int] = None,
                      carryover_misses: int = 0,
                      settings: Optional[PipelineSettings] = None) -> StrategyResult:
    """
    Generates one recommended combination with its diagnostics and EV.

    Args:
        draws: Historical draws in any order.
        timestamp_ms: Epoch milliseconds used as the seed (defaults to now).
        carryover_misses: Consecutive draws without a first-prize winner.
        settings: Runtime settings; PipelineSettings() when omitted.

    Returns:
        StrategyResult: The combination plus everything used to justify it.

    Raises:
        ConfigurationError: If carryover_misses is negative.
    """
    if carryover_misses < 0:
        raise ConfigurationError(f"carryover_misses must be non-negative, got {carryover_misses}")
    settings = settings or PipelineSettings()
    ordered = sort_draws(draws)
    if len(ordered) < MIN_MEANINGFUL_DRAWS:
        logger.warning(f"Only {len(ordered)} draws available; estimates need at least {MIN_MEANINGFUL_DRAWS}")

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    seed = seed_from_timestamp(timestamp_ms)
    rng = RandomSource(seed)
    logger.info(f"Generating strategy from {len(ordered)} draws (seed={seed}, carryover={carryover_misses})")

    # 1. Scoring models and fusion
    models = run_scoring_models(ordered, rng.child("scoring"), parallel=settings.parallel,
                                monte_carlo_trials=settings.monte_carlo_trials)
    pool_result = select_pool(models, Combinatorics(), rrf_k=settings.rrf_k, rrf_weight=settings.rrf_weight)

    # 2. Population and structural models
    unpopularity = compute_unpopularity_vector(ordered, settings.population_bias_weights)
    validator = ConstraintValidator.from_draws(ordered, structural_bounds=settings.structural_bounds)
    pair_scores = normalize_scores(calculate_pair_correlation(ordered))

    # 3. Combinatorial selection
    context = SelectionContext(
        pool=pool_result.pool,
        fused_scores=pool_result.fused_scores,
        unpopularity=unpopularity,
        validator=validator,
        pair_scores=pair_scores,
        rng=rng.child("selector"),
    )
    selection = _select_combination(build_selector(settings), context, settings)
    dominant = find_dominant_number(models, ordered)
    if dominant is not None:
        selection = anchor_combination(context, selection, dominant)
    combo = selection.combination

    # 4. Expected value
    co_winners = estimate_co_winners(combo, unpopularity, weekly_sales=settings.weekly_sales)
    ev = calculate_expected_value(carryover_misses, co_winners, selection.converged,
                                  weekly_sales=settings.weekly_sales)

    anti_popularity = combination_unpopularity(combo, unpopularity)
    structural_fit = validator.score(combo).total_score
    rationale = (
        f"{selection.method} selection from a pool of {pool_result.pool_size}: "
        f"anti-popularity {anti_popularity:.2f}, structural fit {structural_fit:.2f}, "
        f"model agreement {pool_result.model_agreement:.0%}. {ev.reasoning}"
    )
    logger.info(f"Recommended {combo} via {selection.method} ({ev.recommendation.value}, EV={ev.total_ev:.0f})")

    return StrategyResult(
        combination=combo,
        method=selection.method,
        anti_popularity_score=anti_popularity,
        structural_fit=structural_fit,
        r_hat=selection.r_hat,
        pool=tuple(pool_result.pool),
        pool_size=pool_result.pool_size,
        model_agreement=pool_result.model_agreement,
        expected_value=ev,
        confidence_score=ev.confidence_score,
        rationale=rationale,
        seed=seed,
        carryover_misses=carryover_misses,
        diagnostics={
            "selection_score": selection.score,
            "converged": selection.converged,
            "optimal_pool_size": pool_result.optimal_pool_size,
            "partial_match_ev": pool_result.partial_match_ev,
            "estimated_co_winners": co_winners,
            **selection.diagnostics,
        },
    )


def generate_analysis(draws: Sequence[DrawRecord], timestamp_ms: Optional[int] = None,
                      carryover_misses: int = 0, settings: Optional[PipelineSettings] = None,
                      reference_date: Optional[datetime] = None, top_count: int = 6) -> AnalysisReport:
    """Frequency statistics, next-draw schedule and a strategy in one report."""
    ordered = sort_draws(draws)
    frequencies = calculate_frequencies(ordered)
    latest = ordered[-1] if ordered else None

    next_draw_date = DateManager.calculate_next_drawing_date(reference_date)
    next_draw_number = None
    if latest is not None:
        next_draw_number = DateManager.estimate_next_draw_number(latest.draw_number, latest.date, reference_date)

    strategy = generate_strategy(ordered, timestamp_ms=timestamp_ms, carryover_misses=carryover_misses,
                                 settings=settings)
    return AnalysisReport(
        frequencies=frequencies,
        hot_numbers=get_hot_numbers(frequencies, top_count),
        cold_numbers=get_cold_numbers(frequencies, top_count),
        chi_square=chi_square_test(frequencies, len(ordered)),
        total_draws=len(ordered),
        first_draw_number=ordered[0].draw_number if ordered else None,
        latest_draw=latest,
        next_draw_number=next_draw_number,
        next_draw_date=next_draw_date,
        strategy=strategy,
    )
