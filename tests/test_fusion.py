"""
Tests for the Fusion Layer and Coverage Optimizer - LOTTO645
============================================================
"""

import numpy as np
import pytest

from lotto645.combinatorics import Combinatorics
from lotto645.coverage_optimizer import compute_coverage_stats, find_optimal_pool_size
from lotto645.fusion import (
    calculate_model_agreement, check_diversity, find_dominant_number, hybrid_fusion, interference_fusion,
    rank_based_fusion, repair_pool_diversity, select_pool
)
from lotto645.random_source import RandomSource
from lotto645.score_utils import normalize_scores, score_vector
from lotto645.scoring_models import run_scoring_models


def descending_scores(name="model"):
    """Number 1 scores highest, number 45 lowest."""
    return score_vector(np.arange(45, 0, -1), name)


class TestCombinatorics:
    """Memoised binomial coefficients."""

    def test_known_values(self):
        comb = Combinatorics()
        assert comb.binomial(45, 6) == 8_145_060
        assert comb.binomial(10, 0) == 1
        assert comb.binomial(10, 10) == 1
        assert comb.binomial(5, 7) == 0
        assert comb.binomial(5, -1) == 0

    def test_memo_is_shared_by_symmetric_calls(self):
        comb = Combinatorics()
        comb.binomial(45, 6)
        assert comb.memo_size == 1
        comb.binomial(45, 39)
        comb.binomial(45, 6)
        assert comb.memo_size == 1

    def test_instances_do_not_share_memo(self):
        first, second = Combinatorics(), Combinatorics()
        first.binomial(20, 6)
        assert second.memo_size == 0


class TestCoverageOptimizer:
    """Partial-match probabilities and pool sizing."""

    def test_full_pool_is_a_random_ticket(self):
        stats = compute_coverage_stats(45)
        assert stats.match6_prob == pytest.approx(1 / 8_145_060)
        assert stats.match3_prob == pytest.approx(20 * 9139 / 8_145_060)

    def test_probabilities_are_bounded(self):
        stats = compute_coverage_stats(18)
        assert all(0.0 <= p <= 1.0 for p in stats.match_probabilities.values())
        assert sum(stats.match_probabilities.values()) <= 1.0
        assert stats.total_ev > 0

    def test_optimal_pool_size_within_limits(self):
        ranked = list(np.linspace(1.0, 0.0, 45))
        size, ev = find_optimal_pool_size(ranked, Combinatorics())
        assert 14 <= size <= 24
        assert ev > 0

    def test_empty_range_uses_default(self):
        size, _ = find_optimal_pool_size([1.0] * 45, min_size=20, max_size=19)
        assert size == 18


class TestFusion:
    """RRF, interference and the hybrid blend."""

    def test_rank_based_fusion(self):
        models = {"a": descending_scores("a"), "b": descending_scores("b")}
        rrf = rank_based_fusion(models, k=60)
        assert rrf[1] == pytest.approx(2 / 61)
        assert rrf[45] == pytest.approx(2 / 105)
        assert rrf.idxmax() == 1

    def test_single_model_interference_is_squared_amplitude(self):
        scores = descending_scores()
        interference = interference_fusion({"a": scores})
        expected = normalize_scores(scores) ** 2
        assert interference.to_numpy() == pytest.approx(expected.to_numpy())

    def test_hybrid_fusion_is_normalised(self):
        models = {"a": descending_scores("a"), "b": score_vector(np.arange(45), "b")}
        fused = hybrid_fusion(rank_based_fusion(models), interference_fusion(models))
        assert fused.name == "fused"
        assert fused.min() >= 0.0
        assert fused.max() <= 1.0

    def test_model_agreement(self):
        models = {"a": descending_scores("a"), "b": descending_scores("b")}
        assert calculate_model_agreement(models, 18) == pytest.approx(1.0)

        models["c"] = score_vector(np.arange(45), "c")
        assert calculate_model_agreement(models, 18) == pytest.approx(0.0)


class TestPoolDiversity:
    """Zone coverage of the candidate pool."""

    def test_check_diversity(self):
        assert check_diversity([1, 2, 3, 11, 12, 21])
        assert not check_diversity(list(range(1, 15)))

    def test_repair_swaps_in_missing_zone(self):
        pool = list(range(1, 15))
        repaired = repair_pool_diversity(pool, normalize_scores(descending_scores()))
        assert len(repaired) == len(pool)
        assert check_diversity(repaired)
        assert 21 in repaired
        assert 14 not in repaired

    def test_select_pool(self, draws):
        models = run_scoring_models(draws, RandomSource(8), parallel=False, monte_carlo_trials=200)
        result = select_pool(models, Combinatorics())
        assert 14 <= result.pool_size <= 24
        assert result.pool == sorted(result.pool)
        assert len(set(result.pool)) == result.pool_size
        assert check_diversity(result.pool)
        assert set(result.model_ranks) == set(models)
        assert 0.0 <= result.model_agreement <= 1.0


class TestDominantNumber:
    """Consensus leader of the frequency models."""

    @staticmethod
    def _models(draws):
        return run_scoring_models(draws, RandomSource(3), parallel=False, monte_carlo_trials=200)

    def test_number_in_every_draw(self, dominant_draws):
        assert find_dominant_number(self._models(dominant_draws), dominant_draws) == 45

    def test_uniform_history(self, draws):
        assert find_dominant_number(self._models(draws), draws) is None

    def test_rate_threshold(self, dominant_draws):
        models = self._models(dominant_draws)
        assert find_dominant_number(models, dominant_draws, min_rate=1.01) is None

    def test_short_history(self, draw_factory):
        short = draw_factory(12, favourite=7)
        assert find_dominant_number(self._models(short), short) is None

    def test_models_must_agree(self, dominant_draws):
        models = dict(self._models(dominant_draws))
        flipped = models["bayesian_posterior"].copy()
        flipped[1], flipped[45] = flipped[45], flipped[1]
        models["bayesian_posterior"] = flipped
        assert find_dominant_number(models, dominant_draws) is None
