"""
Structural Profile: Bayesian 8-dimension structural validator.

Each dimension (sum, odd count, ...) gets a Normal-Inverse-Gamma posterior
from the draw history and a Student-t predictive distribution. A candidate
combination is scored by how typical each of its dimension values is, and
hard-rejected if any value falls outside the dimension's configured bounds.
More history gives narrower predictive intervals.
"""
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from lotto645.config import LOW_NUMBER_CEILING, STRUCTURAL_BOUNDS, STRUCTURAL_WEIGHTS
from lotto645.data_types import Combination, DrawRecord, as_combination, decade_zone


def longest_run(combo: Sequence[int]) -> int:
    """Length of the longest run of consecutive numbers in a sorted combination."""
    longest = run = 1
    for prev, curr in zip(combo, combo[1:]):
        run = run + 1 if curr == prev + 1 else 1
        longest = max(longest, run)
    return longest


def _mean_gap(combo: Sequence[int]) -> float:
    return (combo[-1] - combo[0]) / (len(combo) - 1)


@dataclass(frozen=True)
class Dimension:
    name: str
    extract: Callable[[Combination], float]


DIMENSIONS: List[Dimension] = [
    Dimension("sum", lambda c: float(sum(c))),
    Dimension("odd_count", lambda c: float(sum(1 for n in c if n % 2 == 1))),
    Dimension("low_count", lambda c: float(sum(1 for n in c if n <= LOW_NUMBER_CEILING))),
    Dimension("max_consecutive", lambda c: float(longest_run(c))),
    Dimension("mean_gap", _mean_gap),
    Dimension("decade_coverage", lambda c: float(len({decade_zone(n) for n in c}))),
    Dimension("last_digit_diversity", lambda c: float(len({n % 10 for n in c}))),
    Dimension("range", lambda c: float(c[-1] - c[0])),
]


@dataclass(frozen=True)
class PosteriorParams:
    """Student-t predictive parameters for one dimension."""
    mu: float
    sigma: float
    nu: float


@dataclass(frozen=True)
class StructuralProfile:
    posteriors: Dict[str, PosteriorParams]
    draw_count: int


@dataclass(frozen=True)
class StructuralScore:
    total_score: float
    hard_reject: bool
    dimension_scores: Dict[str, float]


def compute_posterior(values: Iterable[float]) -> PosteriorParams:
    """
    Normal-Inverse-Gamma posterior mapped to its Student-t predictive.

    Prior: mu0 = sample mean, kappa0 = 1, alpha0 = 1, beta0 = max(var, 0.01).
    With fewer than two values the result is a deliberately vague
    (mu=0, sigma=100, nu=1).
    """
    data = np.asarray(list(values), dtype=float)
    n = len(data)
    if n < 2:
        return PosteriorParams(mu=0.0, sigma=100.0, nu=1.0)

    mean = float(data.mean())
    variance = float(data.var(ddof=1))

    mu0, kappa0, alpha0 = mean, 1.0, 1.0
    beta0 = max(variance, 0.01)

    kappa_n = kappa0 + n
    mu_n = (kappa0 * mu0 + n * mean) / kappa_n
    alpha_n = alpha0 + n / 2
    beta_n = beta0 + 0.5 * (n - 1) * variance + (kappa0 * n * (mean - mu0) ** 2) / (2 * kappa_n)

    nu = 2 * alpha_n
    sigma = math.sqrt(beta_n * (kappa_n + 1) / (alpha_n * kappa_n))
    return PosteriorParams(mu=mu_n, sigma=sigma, nu=nu)


def build_structural_profile(draws: Sequence[DrawRecord]) -> StructuralProfile:
    """Fits one posterior per dimension over the whole history."""
    posteriors = {}
    for dim in DIMENSIONS:
        posteriors[dim.name] = compute_posterior(dim.extract(draw.numbers) for draw in draws)
    logger.debug(
        "Structural profile: " + ", ".join(f"{k}=({p.mu:.1f}, {p.sigma:.1f})" for k, p in posteriors.items())
    )
    return StructuralProfile(posteriors=posteriors, draw_count=len(draws))


def _dimension_score(value: float, params: PosteriorParams) -> float:
    z = abs(value - params.mu) / (params.sigma or 1.0)
    return math.exp(-0.5 * z * z)


def _out_of_bounds(value: float, bounds: Tuple[float, float]) -> bool:
    low, high = bounds
    return value < low or value > high


def score_combination_structure(combo: Iterable[int], profile: StructuralProfile,
                                bounds: Optional[Dict[str, Tuple[float, float]]] = None,
                                weights: Optional[Dict[str, float]] = None) -> StructuralScore:
    """Weighted mean of per-dimension exp(-z^2/2) scores plus the hard-reject flag."""
    bounds = bounds or STRUCTURAL_BOUNDS
    weights = weights or STRUCTURAL_WEIGHTS
    sorted_combo = as_combination(combo)

    dimension_scores = {}
    hard_reject = False
    weighted_sum = 0.0
    total_weight = 0.0
    for dim in DIMENSIONS:
        value = dim.extract(sorted_combo)
        if _out_of_bounds(value, bounds[dim.name]):
            hard_reject = True
        score = _dimension_score(value, profile.posteriors[dim.name])
        dimension_scores[dim.name] = score
        weighted_sum += score * weights[dim.name]
        total_weight += weights[dim.name]

    total = weighted_sum / total_weight if total_weight > 0 else 0.0
    return StructuralScore(total_score=total, hard_reject=hard_reject, dimension_scores=dimension_scores)


def passes_structural_bounds(combo: Iterable[int],
                             bounds: Optional[Dict[str, Tuple[float, float]]] = None) -> bool:
    bounds = bounds or STRUCTURAL_BOUNDS
    sorted_combo = as_combination(combo)
    return not any(_out_of_bounds(dim.extract(sorted_combo), bounds[dim.name]) for dim in DIMENSIONS)
