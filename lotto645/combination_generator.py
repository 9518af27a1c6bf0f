"""
Combination Generator for LOTTO645.

Holds the selector strategy interface shared by the MCMC and genetic
selectors, plus the two fallbacks every selection path can rely on:

- weighted_sample_fallback: temperature-weighted sampling over the fused
  scores with a bounded attempt limit and pool expansion checkpoints.
- zone_guaranteed_combination: deterministic construction that orders the
  numbers round-robin across decade zones and walks combinations in that
  order until the validator accepts one. It is exhaustive, so it always
  returns when any valid combination exists.
- anchor_combination: keeps a dominant number in the final pick by swapping
  it in, or by the same zone walk restricted to combinations holding it.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from itertools import combinations
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from lotto645.config import (
    FALLBACK_ATTEMPTS, FALLBACK_EXPANSION_CHECKPOINTS, FALLBACK_EXPANSION_STEP, FALLBACK_TEMPERATURE,
    MAX_NUMBER, PICK_SIZE
)
from lotto645.constraint_validator import ConstraintValidator
from lotto645.data_types import Combination, SelectionResult, as_combination, decade_zone
from lotto645.population_model import combination_unpopularity
from lotto645.random_source import RandomSource


@dataclass(frozen=True)
class SelectionContext:
    """Everything a selector needs for one run."""
    pool: List[int]
    fused_scores: pd.Series
    unpopularity: pd.Series
    validator: ConstraintValidator
    pair_scores: pd.Series
    rng: RandomSource

    def anti_popularity(self, combo: Combination) -> float:
        return combination_unpopularity(combo, self.unpopularity)

    def structural_fit(self, combo: Combination) -> float:
        return self.validator.score(combo).total_score


class CombinationSelector(ABC):
    """Strategy interface: pick one valid 6-number combination."""

    name: str = "selector"

    @abstractmethod
    def select(self, context: SelectionContext) -> Optional[SelectionResult]:
        """Returns a SelectionResult, or None when the selector gives up."""


def _ranked_numbers(fused_scores: pd.Series) -> List[int]:
    return [int(n) for n in fused_scores.sort_values(ascending=False, kind="mergesort").index]


def _softmax_weights(scores: np.ndarray, temperature: float) -> np.ndarray:
    logits = scores / temperature
    logits = logits - logits.max()
    weights = np.exp(logits)
    return weights / weights.sum()


def weighted_sample_fallback(context: SelectionContext,
                             attempts: int = FALLBACK_ATTEMPTS,
                             temperature: float = FALLBACK_TEMPERATURE,
                             checkpoints: Optional[List[int]] = None,
                             expansion_step: int = FALLBACK_EXPANSION_STEP) -> Optional[SelectionResult]:
    """
    Samples 6 numbers without replacement with softmax(fused / T) weights.

    Sampling starts inside the pool; at each checkpoint the candidate set
    grows by the next `expansion_step` best numbers outside it. Returns None
    when the attempt limit is exhausted.
    """
    checkpoints = FALLBACK_EXPANSION_CHECKPOINTS if checkpoints is None else checkpoints
    rng = context.rng.child("weighted_fallback")
    ranked = _ranked_numbers(context.fused_scores)
    pool = set(context.pool)
    candidates = [n for n in ranked if n in pool]
    outside = [n for n in ranked if n not in pool]
    if len(candidates) < PICK_SIZE:
        candidates, outside = candidates + outside[:PICK_SIZE - len(candidates)], outside[PICK_SIZE - len(candidates):]

    for attempt in range(attempts):
        if attempt in checkpoints and outside:
            candidates, outside = candidates + outside[:expansion_step], outside[expansion_step:]
            logger.debug(f"Weighted fallback expanded to {len(candidates)} numbers at attempt {attempt}")

        scores = context.fused_scores.loc[candidates].to_numpy()
        probs = _softmax_weights(scores, temperature)
        picked = rng.generator.choice(len(candidates), size=PICK_SIZE, replace=False, p=probs)
        combo = as_combination(candidates[i] for i in picked)
        if context.validator.passes_hard_constraints(combo):
            logger.info(f"Weighted fallback found a valid combination after {attempt + 1} attempts")
            return SelectionResult(
                combination=combo,
                score=context.anti_popularity(combo),
                method="weighted_fallback",
                converged=False,
                diagnostics={"attempts": attempt + 1, "candidates": len(candidates)},
            )

    logger.warning(f"Weighted fallback exhausted {attempts} attempts")
    return None


def zone_round_robin_order(fused_scores: pd.Series) -> List[int]:
    """All 45 numbers, taking the best remaining number of each zone in turn."""
    zones: Dict[int, List[int]] = {z: [] for z in range(5)}
    for n in _ranked_numbers(fused_scores):
        zones[decade_zone(n)].append(n)

    order: List[int] = []
    while len(order) < MAX_NUMBER:
        for z in range(5):
            if zones[z]:
                order.append(zones[z].pop(0))
    return order


def zone_guaranteed_combination(context: SelectionContext) -> SelectionResult:
    """
    Deterministic last-resort construction.

    Walks combinations of the zone round-robin order, earliest positions
    first, and returns the first one the validator accepts. Early positions
    already spread over all five zones, so in practice this ends within a
    few hundred candidates.
    """
    order = zone_round_robin_order(context.fused_scores)
    for checked, candidate in enumerate(combinations(order, PICK_SIZE), start=1):
        combo = as_combination(candidate)
        if context.validator.passes_hard_constraints(combo):
            logger.info(f"Zone-guaranteed construction accepted {combo} after {checked} candidates")
            return SelectionResult(
                combination=combo,
                score=context.anti_popularity(combo),
                method="zone_fallback",
                converged=False,
                diagnostics={"candidates_checked": checked},
            )
    raise RuntimeError("No combination of 45 numbers satisfies the hard constraints")


def anchor_combination(context: SelectionContext, result: SelectionResult, anchor: int) -> SelectionResult:
    """
    Makes `anchor` part of the selected combination when the constraints allow it.

    Tries every single swap first and keeps the valid one with the best
    anti-popularity. When no swap is valid, walks the zone round-robin order
    over combinations that contain the anchor. Returns `result` unchanged
    when the anchor is already present or no valid combination holds it.
    """
    if anchor in result.combination:
        return result

    swaps = []
    for position in range(PICK_SIZE):
        numbers = list(result.combination)
        numbers[position] = anchor
        combo = as_combination(numbers)
        if context.validator.passes_hard_constraints(combo):
            swaps.append(combo)

    if swaps:
        combo = max(swaps, key=lambda c: (context.anti_popularity(c), context.structural_fit(c)))
    else:
        combo = None
        order = [n for n in zone_round_robin_order(context.fused_scores) if n != anchor]
        for rest in combinations(order, PICK_SIZE - 1):
            candidate = as_combination((anchor, *rest))
            if context.validator.passes_hard_constraints(candidate):
                combo = candidate
                break
        if combo is None:
            logger.warning(f"No valid combination contains {anchor}; keeping {result.combination}")
            return result

    logger.info(f"Anchored {anchor}: {result.combination} -> {combo}")
    return replace(
        result,
        combination=combo,
        score=context.anti_popularity(combo),
        diagnostics={**result.diagnostics, "anchored_number": anchor,
                     "unanchored_combination": result.combination},
    )
