"""
Core data types for LOTTO645.

DrawRecord is the only persistent fact in the system; everything else is
derived per generation request and never mutated after construction.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from lotto645.config import MAX_NUMBER, PICK_SIZE
from lotto645.exceptions import InvalidDrawError

Combination = Tuple[int, ...]


def _read_only(mapping: Mapping) -> Mapping:
    """Read-only copy of a mapping held by a frozen result."""
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class DrawRecord:
    """One historical 6/45 draw."""
    draw_number: int
    date: str
    numbers: Tuple[int, ...]
    bonus: int

    def __post_init__(self):
        numbers = tuple(sorted(int(n) for n in self.numbers))
        if len(numbers) != PICK_SIZE or len(set(numbers)) != PICK_SIZE:
            raise InvalidDrawError(
                f"Draw {self.draw_number} must contain {PICK_SIZE} distinct numbers, got {self.numbers}"
            )
        if numbers[0] < 1 or numbers[-1] > MAX_NUMBER:
            raise InvalidDrawError(f"Draw {self.draw_number} has numbers outside 1..{MAX_NUMBER}: {numbers}")
        if not 1 <= int(self.bonus) <= MAX_NUMBER:
            raise InvalidDrawError(f"Draw {self.draw_number} has an invalid bonus number: {self.bonus}")
        if int(self.bonus) in numbers:
            raise InvalidDrawError(f"Draw {self.draw_number} repeats its bonus number {self.bonus}")
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "numbers", numbers)
        object.__setattr__(self, "bonus", int(self.bonus))


class Recommendation(Enum):
    """Purchase recommendation tiers produced by the EV engine."""
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    NEUTRAL = "neutral"
    SKIP = "skip"


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of one combinatorial selector run."""
    combination: Combination
    score: float
    method: str
    converged: bool
    r_hat: float = float("nan")
    diagnostics: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "diagnostics", _read_only(self.diagnostics))


@dataclass(frozen=True)
class ExpectedValueBreakdown:
    """Per-rank expected value of a single ticket plus the derived recommendation."""
    ev_by_rank: Mapping[int, float]
    total_ev: float
    recommendation: Recommendation
    reasoning: str
    confidence_score: float
    estimated_jackpot: float
    per_person_jackpot: float
    estimated_co_winners: float
    kelly_fraction: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "ev_by_rank", _read_only(self.ev_by_rank))


@dataclass(frozen=True)
class StrategyResult:
    """Everything one generation call hands to the presentation layer."""
    combination: Combination
    method: str
    anti_popularity_score: float
    structural_fit: float
    r_hat: float
    pool: Tuple[int, ...]
    pool_size: int
    model_agreement: float
    expected_value: ExpectedValueBreakdown
    confidence_score: float
    rationale: str
    seed: int
    carryover_misses: int
    diagnostics: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "diagnostics", _read_only(self.diagnostics))

    @property
    def recommendation(self) -> Recommendation:
        return self.expected_value.recommendation

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view for JSON output."""
        ev = self.expected_value
        return {
            "combination": list(self.combination),
            "method": self.method,
            "anti_popularity_score": round(self.anti_popularity_score, 4),
            "structural_fit": round(self.structural_fit, 4),
            "r_hat": None if np.isnan(self.r_hat) else round(self.r_hat, 4),
            "pool": list(self.pool),
            "pool_size": self.pool_size,
            "model_agreement": round(self.model_agreement, 4),
            "confidence_score": round(self.confidence_score, 2),
            "rationale": self.rationale,
            "seed": self.seed,
            "carryover_misses": self.carryover_misses,
            "expected_value": {
                "ev_by_rank": {str(rank): round(value, 2) for rank, value in ev.ev_by_rank.items()},
                "total_ev": round(ev.total_ev),
                "recommendation": ev.recommendation.value,
                "reasoning": ev.reasoning,
                "estimated_jackpot": round(ev.estimated_jackpot),
                "per_person_jackpot": round(ev.per_person_jackpot),
                "estimated_co_winners": round(ev.estimated_co_winners, 2),
                "kelly_fraction": round(ev.kelly_fraction, 6),
            },
        }


def sort_draws(draws: Iterable[DrawRecord]) -> List[DrawRecord]:
    """Returns draws ordered by draw number ascending."""
    return sorted(draws, key=lambda d: d.draw_number)


def occurrence_matrix(draws: Sequence[DrawRecord]) -> np.ndarray:
    """
    Builds the N x 45 binary occurrence matrix of a draw history.

    Row t is 1 at column n-1 when number n was drawn in draw t.
    """
    matrix = np.zeros((len(draws), MAX_NUMBER), dtype=float)
    for t, draw in enumerate(draws):
        matrix[t, [n - 1 for n in draw.numbers]] = 1.0
    return matrix


def number_counts(draws: Sequence[DrawRecord]) -> np.ndarray:
    """Occurrence count per number, index 0 holds number 1."""
    if not draws:
        return np.zeros(MAX_NUMBER)
    return occurrence_matrix(draws).sum(axis=0)


def color_group(number: int) -> int:
    """Ball colour group: 1-10, 11-20, 21-30, 31-40, 41-45."""
    return min((number - 1) // 10, 4)


def decade_zone(number: int) -> int:
    """Coverage zone: 1-10, 11-20, 21-30, 31-39, 40-45."""
    return 4 if number >= 40 else (number - 1) // 10


def decade_bucket(number: int) -> int:
    """Decade bucket used for crowding checks: 1-10, 11-20, ..., 41-45."""
    return (number - 1) // 10


def as_combination(numbers: Iterable[int]) -> Combination:
    return tuple(sorted(int(n) for n in numbers))


def recent_numbers(draws: Sequence[DrawRecord], count: int) -> Optional[frozenset]:
    """Union of the numbers in the last `count` draws (draws must be sorted)."""
    if not draws or count <= 0:
        return None
    union = set()
    for draw in draws[-count:]:
        union.update(draw.numbers)
    return frozenset(union)
