"""
Coverage Optimizer: dynamic pool sizing by marginal expected value.

A larger pool is more likely to contain winning numbers but makes picking
the right six from it harder. Pool sizes 14..24 are compared through an
exact hypergeometric model of partial matches combined with the quality of
the top-ranked numbers.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from lotto645.combinatorics import Combinatorics
from lotto645.config import (
    DEFAULT_POOL_SIZE, MAX_NUMBER, MAX_POOL_SIZE, MIN_POOL_SIZE, PARTIAL_MATCH_PAYOUTS, PICK_SIZE
)


@dataclass(frozen=True)
class CoverageStats:
    """Partial-match probabilities for one ticket picked from a pool."""
    pool_size: int
    match_probabilities: Dict[int, float]
    total_ev: float

    @property
    def match3_prob(self) -> float:
        return self.match_probabilities[3]

    @property
    def match6_prob(self) -> float:
        return self.match_probabilities[6]


def compute_coverage_stats(pool_size: int, combinatorics: Optional[Combinatorics] = None) -> CoverageStats:
    """
    Exact probability of matching m = 3..6 winning numbers.

    The number of winning numbers j inside the pool is hypergeometric
    C(P, j) C(45 - P, 6 - j) / C(45, 6); given j, a uniformly picked 6-subset
    of the pool matches exactly m of them with probability
    C(j, m) C(P - j, 6 - m) / C(P, 6).
    """
    comb = combinatorics or Combinatorics()
    total = comb.binomial(MAX_NUMBER, PICK_SIZE)
    pool_combinations = comb.binomial(pool_size, PICK_SIZE)

    probabilities = {m: 0.0 for m in PARTIAL_MATCH_PAYOUTS}
    if pool_combinations > 0:
        for j in range(min(PICK_SIZE, pool_size) + 1):
            p_pool_has_j = comb.binomial(pool_size, j) * comb.binomial(MAX_NUMBER - pool_size, PICK_SIZE - j) / total
            for m in range(max(0, j - (pool_size - PICK_SIZE)), min(j, PICK_SIZE) + 1):
                if m not in probabilities:
                    continue
                p_pick_m = comb.binomial(j, m) * comb.binomial(pool_size - j, PICK_SIZE - m) / pool_combinations
                probabilities[m] += p_pool_has_j * p_pick_m

    total_ev = sum(probabilities[m] * payout for m, payout in PARTIAL_MATCH_PAYOUTS.items())
    return CoverageStats(pool_size=pool_size, match_probabilities=probabilities, total_ev=total_ev)


def find_optimal_pool_size(ranked_scores: Sequence[float],
                           combinatorics: Optional[Combinatorics] = None,
                           min_size: int = MIN_POOL_SIZE,
                           max_size: int = MAX_POOL_SIZE) -> Tuple[int, float]:
    """
    Picks the pool size from fused scores sorted best-first.

    composite(P) = EV(P) * mean(top-P scores) * (1 + 1e6 / C(P, 6)). The
    first size where the composite starts to fall (checked from the third
    size on) wins; otherwise the arg-max. Returns (size, partial-match EV).
    """
    comb = combinatorics or Combinatorics()
    candidates: List[Tuple[int, float, float]] = []
    for size in range(min_size, max_size + 1):
        coverage = compute_coverage_stats(size, comb)
        top = ranked_scores[:size]
        quality = sum(top) / size
        selection_accuracy = 1.0 / comb.binomial(size, PICK_SIZE)
        composite = coverage.total_ev * quality * (1 + selection_accuracy * 1e6)
        candidates.append((size, composite, coverage.total_ev))

    if not candidates:
        return DEFAULT_POOL_SIZE, compute_coverage_stats(DEFAULT_POOL_SIZE, comb).total_ev

    best_size, best_composite, best_ev = max(candidates, key=lambda c: c[1])
    for i in range(2, len(candidates)):
        if candidates[i][1] - candidates[i - 1][1] < 0:
            best_size, best_composite, best_ev = candidates[i - 1]
            break

    logger.debug(f"Optimal pool size {best_size} (composite={best_composite:.4f}, partial EV={best_ev:.1f})")
    return best_size, best_ev
