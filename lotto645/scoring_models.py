"""
Independent Scoring Models for LOTTO645.

Each model is a pure function of the draw history that returns a
ScoreVector: a pandas Series indexed by number (1..45). Models share no
state; the only randomness (Monte Carlo) comes from an explicitly passed
RandomSource.

Models:
- Adaptive Frequency: chi-square driven window search
- Bayesian Posterior: Beta(1,1) prior, posterior mean per number
- Momentum & Trend: three-epoch velocity and acceleration
- Markov Transition: Laplace-smoothed 45x45 transition matrix
- Monte Carlo: weighted sampling without replacement on posterior weights
- Spectral Analysis: see spectral_model.py
- Network Centrality: see network_model.py
"""
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from lotto645.config import (
    ADAPTIVE_WINDOWS, MARKOV_RECENT_WEIGHTS, MAX_NUMBER, MOMENTUM_ACCELERATION_WEIGHT,
    MOMENTUM_VELOCITY_WEIGHT, MONTE_CARLO_TRIALS, PICK_SIZE
)
from lotto645.data_types import DrawRecord, number_counts, occurrence_matrix, sort_draws
from lotto645.network_model import network_centrality_score
from lotto645.random_source import RandomSource
from lotto645.score_utils import normalize_scores, score_vector, uniform_vector
from lotto645.spectral_model import spectral_analysis_score


# --- Model A: Adaptive Frequency ---

def adaptive_frequency_score(draws: Sequence[DrawRecord]) -> pd.Series:
    """
    Occurrence rate per number in the window that deviates most from uniform.

    Candidate windows are clipped to the available history; the window with
    the largest chi-square statistic against the uniform null (expected
    count w * 6 / 45) wins.
    """
    ordered = sort_draws(draws)
    n = len(ordered)
    if n == 0:
        return uniform_vector("adaptive_frequency")

    windows = [w for w in ADAPTIVE_WINDOWS if w <= n]
    if not windows:
        logger.debug(f"Only {n} draws available, using full history for adaptive frequency")
        return score_vector(number_counts(ordered) / (n * PICK_SIZE), "adaptive_frequency")

    best_window = windows[0]
    best_chi_square = -1.0
    for window in windows:
        counts = number_counts(ordered[n - window:])
        expected = window * PICK_SIZE / MAX_NUMBER
        chi_square = float(((counts - expected) ** 2 / expected).sum())
        if chi_square > best_chi_square:
            best_chi_square = chi_square
            best_window = window

    logger.debug(f"Adaptive frequency window={best_window} (chi2={best_chi_square:.2f})")
    counts = number_counts(ordered[n - best_window:])
    return score_vector(counts / (best_window * PICK_SIZE), "adaptive_frequency")


# --- Model B: Bayesian Posterior ---

def bayesian_posterior_score(draws: Sequence[DrawRecord]) -> pd.Series:
    """Posterior mean of Beta(1 + c, 1 + 6N - c) for every number."""
    counts = number_counts(draws)
    total_picks = PICK_SIZE * len(draws)
    alpha = 1.0 + counts
    beta = 1.0 + total_picks - counts
    return score_vector(alpha / (alpha + beta), "bayesian_posterior")


# --- Model C: Momentum & Trend ---

def momentum_trend_score(draws: Sequence[DrawRecord]) -> pd.Series:
    """0.6 * velocity + 0.4 * acceleration over old/mid/recent thirds of the history."""
    ordered = sort_draws(draws)
    n = len(ordered)
    if n == 0:
        return score_vector(np.zeros(MAX_NUMBER), "momentum_trend")

    third = max(1, n // 3)
    matrix = occurrence_matrix(ordered)

    def rate(block: np.ndarray) -> np.ndarray:
        return block.sum(axis=0) / (len(block) or 1)

    old_rate = rate(matrix[:third])
    mid_rate = rate(matrix[third:2 * third])
    recent_rate = rate(matrix[2 * third:])

    velocity = recent_rate - mid_rate
    acceleration = velocity - (mid_rate - old_rate)
    combined = MOMENTUM_VELOCITY_WEIGHT * velocity + MOMENTUM_ACCELERATION_WEIGHT * acceleration
    return score_vector(combined, "momentum_trend")


# --- Model D: Markov Transition ---

def markov_transition_score(draws: Sequence[DrawRecord]) -> pd.Series:
    """
    Weighted transition probability from the most recent draws' numbers.

    T[i, j] counts how often j appears in draw t+1 after i appeared in draw t,
    smoothed as (count + 1) / (from_count + 45).
    """
    ordered = sort_draws(draws)
    n = len(ordered)
    if n == 0:
        return uniform_vector("markov_transition")

    matrix = occurrence_matrix(ordered)
    transition_counts = matrix[:-1].T @ matrix[1:]
    from_counts = matrix[:-1].sum(axis=0)
    transition_prob = (transition_counts + 1.0) / (from_counts[:, None] + MAX_NUMBER)

    total_prob = np.zeros(MAX_NUMBER)
    total_weight = 0.0
    for r in range(min(len(MARKOV_RECENT_WEIGHTS), n)):
        weight = MARKOV_RECENT_WEIGHTS[r]
        for number in ordered[n - 1 - r].numbers:
            total_prob += transition_prob[number - 1] * weight
            total_weight += weight

    return score_vector(total_prob / total_weight, "markov_transition")


# --- Model E: Monte Carlo ---

def monte_carlo_score(draws: Sequence[DrawRecord], rng: RandomSource,
                      trials: int = MONTE_CARLO_TRIALS) -> pd.Series:
    """
    Selection frequency over `trials` weighted draws of 6 without replacement.

    Uses the Gumbel top-k trick: taking the k largest log(p) + Gumbel keys is
    distributed exactly like k sequential weighted draws without replacement,
    which lets all trials run as one vectorised operation.
    """
    weights = bayesian_posterior_score(draws).to_numpy()
    log_p = np.log(weights / weights.sum())
    keys = log_p[None, :] + rng.generator.gumbel(size=(trials, MAX_NUMBER))
    picks = np.argpartition(-keys, PICK_SIZE - 1, axis=1)[:, :PICK_SIZE]
    tallies = np.bincount(picks.ravel(), minlength=MAX_NUMBER)
    return score_vector(tallies / (trials * PICK_SIZE), "monte_carlo")


# --- Ensemble runner ---

MODEL_NAMES = [
    "adaptive_frequency",
    "bayesian_posterior",
    "momentum_trend",
    "markov_transition",
    "monte_carlo",
    "spectral_analysis",
    "network_centrality",
]


def run_scoring_models(draws: Sequence[DrawRecord], rng: RandomSource,
                       parallel: bool = True,
                       monte_carlo_trials: Optional[int] = None) -> Dict[str, pd.Series]:
    """
    Runs the seven scoring models and returns them keyed by name, in a fixed order.

    Models are independent, so they may run on a thread pool; results are
    collected in MODEL_NAMES order regardless of completion order.
    """
    ordered = sort_draws(draws)
    trials = monte_carlo_trials or MONTE_CARLO_TRIALS
    mc_rng = rng.child("monte_carlo")

    tasks: Dict[str, Callable[[], pd.Series]] = {
        "adaptive_frequency": lambda: adaptive_frequency_score(ordered),
        "bayesian_posterior": lambda: bayesian_posterior_score(ordered),
        "momentum_trend": lambda: momentum_trend_score(ordered),
        "markov_transition": lambda: markov_transition_score(ordered),
        "monte_carlo": lambda: monte_carlo_score(ordered, mc_rng, trials),
        "spectral_analysis": lambda: spectral_analysis_score(ordered),
        "network_centrality": lambda: network_centrality_score(ordered),
    }

    logger.info(f"Running {len(tasks)} scoring models on {len(ordered)} draws (parallel={parallel})")
    if parallel:
        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = {name: executor.submit(task) for name, task in tasks.items()}
            results = {name: futures[name].result() for name in MODEL_NAMES}
    else:
        results = {name: tasks[name]() for name in MODEL_NAMES}

    for name, scores in results.items():
        logger.debug(f"Model {name}: top number {int(scores.idxmax())} ({scores.max():.4f})")
    return results
