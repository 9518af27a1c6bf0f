"""
Tests for the Strategy Pipeline - LOTTO645
==========================================

End-to-end generation on a synthetic history with scaled-down selector
settings.
"""

import json
import random
from dataclasses import replace
from datetime import datetime

import pytest

from lotto645.combination_generator import CombinationSelector
from lotto645.constraint_validator import ConstraintValidator
from lotto645.data_types import Recommendation
from lotto645.exceptions import ConfigurationError
from lotto645.pipeline import _select_combination, build_selector, generate_analysis, generate_strategy
from lotto645.scoring_models import adaptive_frequency_score, bayesian_posterior_score

TIMESTAMP = 1_754_000_000_000
METHODS = {"mcmc", "rejection", "genetic", "weighted_fallback", "zone_fallback"}


class GivesUpSelector(CombinationSelector):
    name = "gives_up"

    def select(self, context):
        return None


class TestGenerateStrategy:
    """generate_strategy."""

    def test_combination_satisfies_constraints(self, draws, fast_settings):
        strategy = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=fast_settings)
        combo = strategy.combination
        assert len(combo) == 6
        assert combo == tuple(sorted(set(combo)))
        assert all(1 <= n <= 45 for n in combo)
        assert ConstraintValidator.from_draws(draws).passes_hard_constraints(combo)
        assert strategy.method in METHODS

    def test_result_fields(self, draws, fast_settings):
        strategy = generate_strategy(draws, timestamp_ms=TIMESTAMP, carryover_misses=2, settings=fast_settings)
        assert 14 <= strategy.pool_size <= 24
        assert len(strategy.pool) == strategy.pool_size
        assert 0.0 < strategy.anti_popularity_score <= 1.0
        assert 0.0 <= strategy.structural_fit <= 1.0
        assert 0.0 <= strategy.model_agreement <= 1.0
        assert strategy.carryover_misses == 2
        assert strategy.confidence_score == strategy.expected_value.confidence_score
        assert strategy.recommendation in (Recommendation.BUY, Recommendation.STRONG_BUY)
        assert "estimated_co_winners" in strategy.diagnostics

    def test_same_timestamp_same_result(self, draws, fast_settings):
        first = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=fast_settings)
        shuffled = list(draws)
        random.Random(3).shuffle(shuffled)
        second = generate_strategy(shuffled, timestamp_ms=TIMESTAMP, settings=fast_settings)
        assert first.to_dict() == second.to_dict()

    def test_parallel_matches_serial(self, draws, fast_settings):
        serial = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=fast_settings)
        parallel = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=replace(fast_settings, parallel=True))
        assert serial.combination == parallel.combination

    def test_genetic_selector(self, draws, fast_settings):
        settings = replace(fast_settings, selector="genetic")
        strategy = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=settings)
        assert strategy.method in {"genetic", "weighted_fallback", "zone_fallback"}
        assert ConstraintValidator.from_draws(draws).passes_hard_constraints(strategy.combination)

    def test_to_dict_is_json_serialisable(self, draws, fast_settings):
        strategy = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=fast_settings)
        payload = json.loads(json.dumps(strategy.to_dict()))
        assert payload["combination"] == list(strategy.combination)
        assert payload["expected_value"]["recommendation"] == strategy.recommendation.value
        assert set(payload["expected_value"]["ev_by_rank"]) == {"1", "2", "3", "4", "5"}

    def test_dominant_number_is_kept(self, draw_factory, fast_settings):
        """Number 7 drawn every week leads both frequency models and stays in the pick."""
        history = draw_factory(80, seed=5, favourite=7)
        for model in (adaptive_frequency_score, bayesian_posterior_score):
            scores = model(history).sort_values(ascending=False)
            assert scores.index[0] == 7
            assert scores.iloc[0] > scores.iloc[1]

        strategy = generate_strategy(history, timestamp_ms=TIMESTAMP, settings=fast_settings)
        assert 7 in strategy.combination
        assert ConstraintValidator.from_draws(history).passes_hard_constraints(strategy.combination)

    def test_uniform_history_has_no_anchor(self, draws, fast_settings):
        strategy = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=fast_settings)
        assert "anchored_number" not in strategy.diagnostics

    def test_negative_carryover_is_rejected(self, draws, fast_settings):
        with pytest.raises(ConfigurationError):
            generate_strategy(draws, timestamp_ms=TIMESTAMP, carryover_misses=-1, settings=fast_settings)

    def test_results_are_read_only(self, draws, fast_settings):
        strategy = generate_strategy(draws, timestamp_ms=TIMESTAMP, settings=fast_settings)
        with pytest.raises(TypeError):
            strategy.diagnostics["converged"] = False
        with pytest.raises(TypeError):
            strategy.expected_value.ev_by_rank[1] = 0.0

    def test_short_history_still_produces_a_combination(self, draw_factory, fast_settings):
        short = draw_factory(8)
        strategy = generate_strategy(short, timestamp_ms=TIMESTAMP, settings=fast_settings)
        assert ConstraintValidator.from_draws(short).passes_hard_constraints(strategy.combination)


class TestSelectionFallbacks:
    """Selector -> weighted fallback -> zone-guaranteed construction."""

    def test_build_selector(self, fast_settings):
        assert build_selector(fast_settings).name == "mcmc"
        assert build_selector(replace(fast_settings, selector="genetic")).name == "genetic"

    def test_selector_giving_up_uses_weighted_fallback(self, selection_context, fast_settings):
        result = _select_combination(GivesUpSelector(), selection_context, fast_settings)
        assert result.method in ("weighted_fallback", "zone_fallback")
        assert selection_context.validator.passes_hard_constraints(result.combination)

    def test_zone_fallback_is_last_resort(self, selection_context, fast_settings):
        settings = replace(fast_settings, fallback_attempts=0)
        result = _select_combination(GivesUpSelector(), selection_context, settings)
        assert result.method == "zone_fallback"
        assert selection_context.validator.passes_hard_constraints(result.combination)


class TestGenerateAnalysis:
    """generate_analysis."""

    def test_report(self, draws, fast_settings):
        reference = datetime(2025, 8, 4, 10, 0)
        report = generate_analysis(draws, timestamp_ms=TIMESTAMP, settings=fast_settings,
                                   reference_date=reference, top_count=5)
        assert report.total_draws == len(draws)
        assert report.first_draw_number == 1
        assert report.latest_draw.draw_number == len(draws)
        assert report.next_draw_date == "2025-08-09"
        assert report.next_draw_number > report.latest_draw.draw_number
        assert len(report.hot_numbers) == 5
        assert len(report.cold_numbers) == 5
        assert report.frequencies["count"].sum() == 6 * len(draws)
        assert report.strategy.combination == generate_strategy(
            draws, timestamp_ms=TIMESTAMP, settings=fast_settings).combination


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
