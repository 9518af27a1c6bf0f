"""
Fusion Layer: from seven ScoreVectors to one candidate pool.

Ranks are fused with Reciprocal Rank Fusion (k=60), amplitudes with an
interference model that rewards cross-model agreement, and the two are
blended 0.6 / 0.4. The pool size comes from the coverage optimizer and the
pool is then repaired to span at least three decade zones.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from lotto645.combinatorics import Combinatorics
from lotto645.config import (
    ANCHOR_MODELS, DOMINANT_APPEARANCE_RATE, MAX_NUMBER, MIN_MEANINGFUL_DRAWS, MIN_POOL_ZONES, NUMBER_RANGE,
    RRF_BLEND_WEIGHT, RRF_K
)
from lotto645.coverage_optimizer import find_optimal_pool_size
from lotto645.data_types import DrawRecord, decade_zone, number_counts
from lotto645.score_utils import normalize_scores, rank_scores, score_vector


@dataclass(frozen=True)
class PoolSelectionResult:
    pool: List[int]
    pool_size: int
    optimal_pool_size: int
    fused_scores: pd.Series
    model_ranks: Dict[str, pd.Series] = field(default_factory=dict)
    model_agreement: float = 0.0
    partial_match_ev: float = 0.0


def rank_based_fusion(models: Mapping[str, pd.Series], k: int = RRF_K) -> pd.Series:
    """RRF(n) = sum over models of 1 / (k + rank_m(n)); unranked numbers count as rank 45."""
    total = score_vector(np.zeros(MAX_NUMBER), "rrf")
    for scores in models.values():
        ranks = rank_scores(scores).reindex(NUMBER_RANGE).fillna(MAX_NUMBER)
        total = total + 1.0 / (k + ranks.to_numpy())
    return total.rename("rrf")


def interference_fusion(models: Mapping[str, pd.Series]) -> pd.Series:
    """
    Treats each model's normalised score as an amplitude with an evenly
    spaced phase 2*pi*m/M and returns |sum|^2 / M^2 per number.

    Numbers that every model rates highly interfere constructively;
    disagreement cancels out.
    """
    count = len(models)
    if count == 0:
        return score_vector(np.zeros(MAX_NUMBER), "interference")
    amplitudes = np.vstack([normalize_scores(scores).reindex(NUMBER_RANGE).fillna(0.0).to_numpy()
                            for scores in models.values()])
    phases = 2 * np.pi * np.arange(count) / count
    real = (amplitudes * np.cos(phases)[:, None]).sum(axis=0)
    imag = (amplitudes * np.sin(phases)[:, None]).sum(axis=0)
    return score_vector((real ** 2 + imag ** 2) / count ** 2, "interference")


def hybrid_fusion(rrf: pd.Series, interference: pd.Series,
                  rrf_weight: float = RRF_BLEND_WEIGHT) -> pd.Series:
    blended = rrf_weight * normalize_scores(rrf) + (1 - rrf_weight) * normalize_scores(interference)
    return blended.rename("fused")


def zone_count(numbers) -> int:
    return len({decade_zone(n) for n in numbers})


def check_diversity(pool: List[int], min_zones: int = MIN_POOL_ZONES) -> bool:
    """True when the pool spans at least `min_zones` of the five decade zones."""
    return zone_count(pool) >= min_zones


def repair_pool_diversity(pool: List[int], fused: pd.Series, min_zones: int = MIN_POOL_ZONES) -> List[int]:
    """
    Swaps zone representatives into a pool that covers too few zones.

    For each missing zone (in zone order) its best-scoring number replaces
    the lowest-ranked pool member whose zone is still represented twice, so
    no swap removes a zone already covered. Pool size is preserved.
    """
    repaired = sorted(pool, key=lambda n: (-fused[n], n))
    present = {decade_zone(n) for n in repaired}
    outside = [int(n) for n in fused.sort_values(ascending=False, kind="mergesort").index if n not in repaired]

    for zone in range(5):
        if len(present) >= min_zones:
            break
        if zone in present:
            continue
        candidates = [n for n in outside if decade_zone(n) == zone]
        if not candidates:
            continue
        for i in range(len(repaired) - 1, -1, -1):
            victim_zone = decade_zone(repaired[i])
            if sum(1 for n in repaired if decade_zone(n) == victim_zone) > 1:
                logger.debug(f"Pool diversity repair: {repaired[i]} -> {candidates[0]} (zone {zone})")
                repaired[i] = candidates[0]
                present.add(zone)
                break
    return sorted(repaired)


def calculate_model_agreement(models: Mapping[str, pd.Series], pool_size: int) -> float:
    """Fraction of pool_size numbers that sit in every model's top pool_size."""
    if not models or pool_size <= 0:
        return 0.0
    top_sets = [set(rank_scores(scores).nsmallest(pool_size, keep="first").index) for scores in models.values()]
    common = set.intersection(*top_sets)
    return len(common) / pool_size


def select_pool(models: Mapping[str, pd.Series], combinatorics: Optional[Combinatorics] = None,
                rrf_k: int = RRF_K, rrf_weight: float = RRF_BLEND_WEIGHT) -> PoolSelectionResult:
    """Fuses the model vectors, sizes the pool and returns it sorted ascending."""
    rrf = rank_based_fusion(models, k=rrf_k)
    interference = interference_fusion(models)
    fused = hybrid_fusion(rrf, interference, rrf_weight)

    ordered = fused.sort_values(ascending=False, kind="mergesort")
    optimal_size, partial_ev = find_optimal_pool_size(list(ordered.to_numpy()), combinatorics)

    pool = sorted(int(n) for n in ordered.index[:optimal_size])
    if not check_diversity(pool):
        logger.warning(f"Pool spans only {zone_count(pool)} zones, repairing")
        pool = repair_pool_diversity(pool, fused)

    agreement = calculate_model_agreement(models, optimal_size)
    model_ranks = {name: rank_scores(scores) for name, scores in models.items()}
    logger.info(f"Pool of {len(pool)} numbers selected (agreement={agreement:.2f}, partial EV={partial_ev:.0f})")

    return PoolSelectionResult(
        pool=pool,
        pool_size=len(pool),
        optimal_pool_size=optimal_size,
        fused_scores=fused,
        model_ranks=model_ranks,
        model_agreement=agreement,
        partial_match_ev=partial_ev,
    )


def find_dominant_number(models: Mapping[str, pd.Series], draws: Sequence[DrawRecord],
                         anchor_models: Sequence[str] = ANCHOR_MODELS,
                         min_rate: float = DOMINANT_APPEARANCE_RATE) -> Optional[int]:
    """
    Returns the number every anchor model ranks strictly first, provided it
    was drawn in at least `min_rate` of the history; None otherwise.
    """
    if len(draws) < MIN_MEANINGFUL_DRAWS or any(name not in models for name in anchor_models):
        return None

    leaders = set()
    for name in anchor_models:
        top_two = models[name].sort_values(ascending=False, kind="mergesort").iloc[:2]
        if top_two.iloc[0] <= top_two.iloc[1]:
            return None
        leaders.add(int(top_two.index[0]))
    if len(leaders) != 1:
        return None

    number = leaders.pop()
    rate = number_counts(draws)[number - 1] / len(draws)
    if rate < min_rate:
        return None
    logger.info(f"Number {number} leads {', '.join(anchor_models)} and appears in {rate:.0%} of draws")
    return number
