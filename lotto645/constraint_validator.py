"""
Constraint Validator for LOTTO645.

The single gate every selector and fallback goes through. A combination
passes when it satisfies each of the selector-level filters below and the
structural profile's hard-reject bounds.
"""
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from lotto645.config import (
    HIGH_ZONE_FLOOR, LOW_NUMBER_CEILING, MAX_CONSECUTIVE_RUN, MAX_LOW_COUNT, MAX_ODD_COUNT,
    MAX_PER_DECADE, MAX_RECENT_OVERLAP, MAX_SUM_FILTER, MIN_COLOR_GROUPS, MIN_HIGH_ZONE_COUNT,
    MIN_LAST_DIGITS, MIN_LOW_COUNT, MIN_ODD_COUNT, MIN_SUM_FILTER, PICK_SIZE, RECENT_DRAWS_FOR_OVERLAP
)
from lotto645.data_types import (
    Combination, DrawRecord, as_combination, color_group, decade_bucket, recent_numbers, sort_draws
)
from lotto645.structural_profile import (
    StructuralProfile, StructuralScore, build_structural_profile, longest_run,
    passes_structural_bounds, score_combination_structure
)


def _passes_sum_filter(combination: Combination) -> bool:
    """Checks if the combination's sum is within the valid range."""
    return MIN_SUM_FILTER <= sum(combination) <= MAX_SUM_FILTER


def _passes_parity_filter(combination: Combination) -> bool:
    """Checks for odd/even balance (2 to 4 odd numbers)."""
    odds = sum(1 for n in combination if n % 2 == 1)
    return MIN_ODD_COUNT <= odds <= MAX_ODD_COUNT


def _passes_low_high_filter(combination: Combination) -> bool:
    lows = sum(1 for n in combination if n <= LOW_NUMBER_CEILING)
    return MIN_LOW_COUNT <= lows <= MAX_LOW_COUNT


def _passes_color_filter(combination: Combination) -> bool:
    return len({color_group(n) for n in combination}) >= MIN_COLOR_GROUPS


def _passes_high_zone_filter(combination: Combination) -> bool:
    """Requires at least one number outside the birthday range."""
    return sum(1 for n in combination if n >= HIGH_ZONE_FLOOR) >= MIN_HIGH_ZONE_COUNT


def _passes_last_digit_filter(combination: Combination) -> bool:
    return len({n % 10 for n in combination}) >= MIN_LAST_DIGITS


def _passes_progression_filter(combination: Combination) -> bool:
    """Discards arithmetic progressions (all adjacent differences equal)."""
    diffs = {b - a for a, b in zip(combination, combination[1:])}
    return len(diffs) > 1


def _passes_decade_filter(combination: Combination) -> bool:
    counts: Dict[int, int] = {}
    for n in combination:
        bucket = decade_bucket(n)
        counts[bucket] = counts.get(bucket, 0) + 1
    return max(counts.values()) <= MAX_PER_DECADE


def _passes_consecutive_filter(combination: Combination) -> bool:
    """Discards combinations with 3 or more consecutive numbers."""
    return longest_run(combination) <= MAX_CONSECUTIVE_RUN


class ConstraintValidator:
    """
    Hard-constraint checks and structural scoring for candidate combinations.

    Args:
        profile: Structural profile built from the draw history.
        recent: Union of the numbers in the most recent draws, or None to skip
            the overlap rule.
        structural_bounds: Optional override of the per-dimension reject bounds.
        structural_weights: Optional override of the per-dimension weights.
    """

    def __init__(self, profile: StructuralProfile, recent: Optional[FrozenSet[int]] = None,
                 structural_bounds: Optional[Dict[str, Tuple[float, float]]] = None,
                 structural_weights: Optional[Dict[str, float]] = None):
        self.profile = profile
        self.recent = recent or frozenset()
        self.structural_bounds = structural_bounds
        self.structural_weights = structural_weights
        self._rules = [
            ("sum", _passes_sum_filter),
            ("parity", _passes_parity_filter),
            ("low_high", _passes_low_high_filter),
            ("color_groups", _passes_color_filter),
            ("high_zone", _passes_high_zone_filter),
            ("last_digits", _passes_last_digit_filter),
            ("progression", _passes_progression_filter),
            ("decade_crowding", _passes_decade_filter),
            ("consecutive", _passes_consecutive_filter),
            ("recent_overlap", self._passes_recent_overlap_filter),
            ("structural_bounds", self._passes_structural_filter),
        ]

    @classmethod
    def from_draws(cls, draws: Sequence[DrawRecord], **kwargs) -> "ConstraintValidator":
        ordered = sort_draws(draws)
        return cls(build_structural_profile(ordered), recent_numbers(ordered, RECENT_DRAWS_FOR_OVERLAP), **kwargs)

    def _passes_recent_overlap_filter(self, combination: Combination) -> bool:
        return len(self.recent.intersection(combination)) <= MAX_RECENT_OVERLAP

    def _passes_structural_filter(self, combination: Combination) -> bool:
        return passes_structural_bounds(combination, self.structural_bounds)

    def violations(self, combo: Iterable[int]) -> List[str]:
        """Names of every rule the combination breaks (empty when valid)."""
        combination = as_combination(combo)
        if len(combination) != PICK_SIZE or len(set(combination)) != PICK_SIZE:
            return ["shape"]
        return [name for name, rule in self._rules if not rule(combination)]

    def passes_hard_constraints(self, combo: Iterable[int]) -> bool:
        combination = as_combination(combo)
        if len(combination) != PICK_SIZE or len(set(combination)) != PICK_SIZE:
            return False
        return all(rule(combination) for _, rule in self._rules)

    def score(self, combo: Iterable[int]) -> StructuralScore:
        return score_combination_structure(
            combo, self.profile, bounds=self.structural_bounds, weights=self.structural_weights
        )
