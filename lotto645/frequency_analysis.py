"""
Frequency Analysis Module for LOTTO645.

Descriptive statistics of the draw history: per-number counts, hot and
cold numbers, a chi-square goodness-of-fit test against the uniform
distribution, and the mean pair-co-occurrence strength per number.
"""
from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd
from scipy.stats import chi2

from lotto645.config import MAX_NUMBER, NUMBER_RANGE, PICK_SIZE
from lotto645.data_types import DrawRecord, number_counts
from lotto645.network_model import co_occurrence_matrix
from lotto645.score_utils import score_vector

SIGNIFICANCE_LEVEL = 0.05


def calculate_frequencies(draws: Sequence[DrawRecord]) -> pd.DataFrame:
    """
    Counts how often each number was drawn.

    Returns:
        pd.DataFrame: One row per number with 'number', 'count' and
        'percentage' (share of draws containing the number).
    """
    counts = number_counts(draws).astype(int)
    total = len(draws)
    percentage = counts / total * 100 if total else np.zeros(MAX_NUMBER)
    return pd.DataFrame({"number": NUMBER_RANGE, "count": counts, "percentage": percentage})


def get_hot_numbers(frequencies: pd.DataFrame, count: int = 6) -> pd.DataFrame:
    return frequencies.sort_values(["count", "number"], ascending=[False, True]).head(count)


def get_cold_numbers(frequencies: pd.DataFrame, count: int = 6) -> pd.DataFrame:
    return frequencies.sort_values(["count", "number"], ascending=[True, True]).head(count)


def get_expected_frequency(total_draws: int) -> float:
    return total_draws * PICK_SIZE / MAX_NUMBER


def chi_square_test(frequencies: pd.DataFrame, total_draws: int) -> Dict[str, Any]:
    """
    Pearson chi-square test of the counts against a uniform distribution.

    Returns the statistic, degrees of freedom, the upper-tail p-value and
    whether uniformity is not rejected at the 5% level.
    """
    expected = get_expected_frequency(total_draws)
    df = len(frequencies) - 1
    if expected <= 0:
        return {"chi_square": 0.0, "degrees_of_freedom": df, "p_value": 1.0, "is_uniform": True}

    observed = frequencies["count"].to_numpy(dtype=float)
    statistic = float(((observed - expected) ** 2 / expected).sum())
    p_value = float(chi2.sf(statistic, df))
    return {
        "chi_square": statistic,
        "degrees_of_freedom": df,
        "p_value": p_value,
        "is_uniform": p_value > SIGNIFICANCE_LEVEL,
    }


def calculate_pair_correlation(draws: Sequence[DrawRecord]) -> pd.Series:
    """Mean co-occurrence count of each number with the other 44."""
    co = co_occurrence_matrix(draws)
    return score_vector(co.sum(axis=1) / (MAX_NUMBER - 1), "pair_correlation")
