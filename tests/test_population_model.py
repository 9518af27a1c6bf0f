"""
Tests for the Population Model - LOTTO645
=========================================

Bias sources, the unpopularity vector and the combination-level
anti-popularity score.
"""

import numpy as np
import pytest

from lotto645.config import ESTIMATED_WEEKLY_SALES, TICKET_PRICE, TOTAL_COMBINATIONS
from lotto645.population_model import (
    BIAS_SOURCES, combination_unpopularity, compute_popularity_vector,
    compute_unpopularity_vector, estimate_co_winners
)
from lotto645.score_utils import score_vector


class TestUnpopularityVector:
    """Per-number unpopularity."""

    def test_range_and_shape(self, draws):
        unpopularity = compute_unpopularity_vector(draws)
        assert len(unpopularity) == 45
        assert unpopularity.name == "unpopularity"
        assert unpopularity.min() >= 0.0
        assert unpopularity.max() <= 1.0

    def test_birthday_and_lucky_numbers_are_popular(self):
        unpopularity = compute_unpopularity_vector([])
        assert unpopularity[7] < unpopularity[44]
        assert unpopularity[3] < unpopularity[41]

    def test_number_four_is_avoided(self):
        """Numbers ending in 4 carry a negative cultural bias."""
        popularity = compute_popularity_vector([], weights={"cultural": 1.0})
        assert popularity[14] == pytest.approx(-0.03)
        assert popularity[18] == pytest.approx(0.02)
        assert popularity[40] == pytest.approx(0.0)

    def test_recent_draws_raise_popularity(self, draws):
        latest = draws[-1]
        with_history = compute_popularity_vector(draws, weights={"recent_mimicry": 1.0})
        without_history = compute_popularity_vector([], weights={"recent_mimicry": 1.0})
        for n in latest.numbers:
            assert with_history[n] > without_history[n]

    def test_zero_weights_mean_no_bias(self, draws):
        weights = {source.name: 0.0 for source in BIAS_SOURCES}
        unpopularity = compute_unpopularity_vector(draws, weights)
        assert (unpopularity == 1.0).all()


class TestCombinationScore:
    """Geometric-mean anti-popularity."""

    def test_weakest_link(self):
        """One popular number drags the score below the arithmetic mean."""
        values = np.ones(45)
        values[0] = 0.0
        vector = score_vector(values, "unpopularity")
        combo = (1, 14, 25, 31, 38, 42)
        geometric = combination_unpopularity(combo, vector)
        arithmetic = float(np.mean([vector[n] for n in combo]))
        assert geometric < arithmetic
        assert geometric == pytest.approx(0.001 ** (1 / 6))

    @pytest.mark.parametrize("previous, sixth", [(0.9, 0.5), (0.5, 0.1), (0.1, 0.01), (0.01, 0.0)])
    def test_weakest_link_sweep(self, previous, sixth):
        """With five numbers at 0.9, lowering the sixth drops the score faster than the mean."""
        combo = (3, 14, 25, 31, 38, 42)

        def scores(value):
            values = np.full(45, 0.9)
            values[42 - 1] = value
            vector = score_vector(values, "unpopularity")
            return combination_unpopularity(combo, vector), float(np.mean([vector[n] for n in combo]))

        geometric_before, arithmetic_before = scores(previous)
        geometric_after, arithmetic_after = scores(sixth)
        assert geometric_after < geometric_before
        assert geometric_before - geometric_after > arithmetic_before - arithmetic_after

    def test_uniform_vector(self):
        vector = score_vector(np.full(45, 0.8), "unpopularity")
        assert combination_unpopularity((3, 14, 25, 31, 38, 42), vector) == pytest.approx(0.8)

    def test_co_winners_grow_with_popularity(self):
        unpopularity = compute_unpopularity_vector([])
        popular = estimate_co_winners((1, 3, 7, 8, 12, 17), unpopularity)
        unpopular = estimate_co_winners((34, 36, 39, 41, 44, 45), unpopularity)
        assert popular > unpopular

    def test_co_winners_floor_is_random_play(self):
        vector = score_vector(np.ones(45), "unpopularity")
        expected = ESTIMATED_WEEKLY_SALES / TICKET_PRICE / TOTAL_COMBINATIONS
        assert estimate_co_winners((3, 14, 25, 31, 38, 42), vector) == pytest.approx(expected)
