"""
Population Model: human-bias engine for manual number pickers.

Estimates how popular each number is among players who choose their own
numbers and turns that into a 45-dimensional unpopularity vector (higher
means fewer expected co-winners). Eight bias sources are combined with
configurable weights; the combination-level score uses the geometric mean
so that a single popular number drags the whole combination down.
"""
import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from lotto645.config import (
    AUTO_PICK_SHARE, ESTIMATED_WEEKLY_SALES, NUMBER_RANGE, POPULARITY_CLAMP,
    POPULATION_BIAS_WEIGHTS, TICKET_PRICE, TOTAL_COMBINATIONS, UNPOPULARITY_FLOOR
)
from lotto645.data_types import DrawRecord, sort_draws
from lotto645.score_utils import score_vector

LUCKY_NUMBER_BIAS: Dict[int, float] = {
    7: 0.06, 3: 0.04, 8: 0.03,
    17: 0.03, 27: 0.02, 37: 0.02,
    13: 0.02, 23: 0.01, 33: 0.01, 43: 0.01,
    18: 0.01, 28: 0.01, 38: 0.01,
}
SLIP_COLUMNS = 7
RECENT_MIMICRY_DRAWS = 10


@dataclass(frozen=True)
class BiasSource:
    name: str
    compute: Callable[[int, Sequence[DrawRecord]], float]


def _birthday_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    if n <= 12:
        return 0.08
    if n <= 31:
        return 0.05
    return 0.0


def _lucky_number_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    return LUCKY_NUMBER_BIAS.get(n, 0.0)


def _cultural_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    # 4 sounds like "death"; 8 is auspicious
    if n % 10 == 4:
        return -0.03
    if n % 10 == 8 and n < 40:
        return 0.02
    return 0.0


def _slip_position_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    # the slip is a 7-column grid, 1..7 on the top row
    row = math.ceil(n / SLIP_COLUMNS)
    column = (n - 1) % SLIP_COLUMNS + 1
    bias = max(0.0, (SLIP_COLUMNS - row) * 0.005)
    if 3 <= column <= 5:
        bias += 0.01
    return bias


def _round_number_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    if n % 10 == 0:
        return 0.02
    if n % 5 == 0:
        return 0.01
    return 0.0


def _recent_mimicry_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    recent = draws[-RECENT_MIMICRY_DRAWS:][::-1]
    return sum(0.015 * math.exp(-0.2 * age) for age, draw in enumerate(recent) if n in draw.numbers)


def _arithmetic_pattern_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    bias = 0.0
    if n % 5 == 0:
        bias += 0.015
    if n % 7 == 0:
        bias += 0.01
    return bias


def _low_familiarity_bias(n: int, draws: Sequence[DrawRecord]) -> float:
    if n <= 10:
        return 0.03
    if n <= 22:
        return 0.015
    return 0.0


BIAS_SOURCES: List[BiasSource] = [
    BiasSource("birthday", _birthday_bias),
    BiasSource("lucky_numbers", _lucky_number_bias),
    BiasSource("cultural", _cultural_bias),
    BiasSource("slip_position", _slip_position_bias),
    BiasSource("round_numbers", _round_number_bias),
    BiasSource("recent_mimicry", _recent_mimicry_bias),
    BiasSource("arithmetic_pattern", _arithmetic_pattern_bias),
    BiasSource("low_familiarity", _low_familiarity_bias),
]


def compute_popularity_vector(draws: Sequence[DrawRecord],
                              weights: Optional[Dict[str, float]] = None) -> pd.Series:
    """Weighted mean of the bias sources per number (raw, unclamped)."""
    weights = weights or POPULATION_BIAS_WEIGHTS
    ordered = sort_draws(draws)
    total_weight = sum(weights.get(source.name, 0.0) for source in BIAS_SOURCES)
    if total_weight <= 0:
        logger.warning("All population bias weights are zero; treating every number as equally popular")
        return score_vector(np.zeros(len(NUMBER_RANGE)), "popularity")

    popularity = []
    for n in NUMBER_RANGE:
        raw = sum(weights.get(source.name, 0.0) * source.compute(n, ordered) for source in BIAS_SOURCES)
        popularity.append(raw / total_weight)
    return score_vector(popularity, "popularity")


def compute_unpopularity_vector(draws: Sequence[DrawRecord],
                                weights: Optional[Dict[str, float]] = None) -> pd.Series:
    """
    Per-number unpopularity in [0, 1].

    Popularity is clamped to [-0.05, 0.15] and rescaled by the upper clamp,
    so the most popular numbers approach 0 and bias-free numbers sit at 1.
    """
    low, high = POPULARITY_CLAMP
    popularity = compute_popularity_vector(draws, weights).clip(lower=low, upper=high)
    unpopularity = (1.0 - popularity / high).clip(lower=0.0, upper=1.0)
    return unpopularity.rename("unpopularity")


def combination_unpopularity(combo: Iterable[int], unpopularity: pd.Series) -> float:
    """
    Geometric mean of the six per-number unpopularity scores.

    Inputs are floored at 0.001 so a zero score cannot produce -inf.
    """
    numbers = list(combo)
    log_sum = sum(math.log(max(float(unpopularity.get(n, 0.5)), UNPOPULARITY_FLOOR)) for n in numbers)
    return math.exp(log_sum / len(numbers))


def estimate_co_winners(combo: Iterable[int], unpopularity: pd.Series,
                        weekly_sales: float = ESTIMATED_WEEKLY_SALES,
                        ticket_price: float = TICKET_PRICE) -> float:
    """
    Expected number of other tickets holding the same combination.

    P(combo) = 0.7 * p_auto + 0.3 * p_manual, where p_auto = 1 / C(45,6) and
    p_manual scales p_auto by up to 5x for the most popular combinations.
    """
    total_tickets = weekly_sales / ticket_price
    p_auto = 1.0 / TOTAL_COMBINATIONS
    combo_popularity = 1.0 - combination_unpopularity(combo, unpopularity)
    p_manual = p_auto * (1 + combo_popularity * 4)
    p_combo = AUTO_PICK_SHARE * p_auto + (1 - AUTO_PICK_SHARE) * p_manual
    return total_tickets * p_combo
