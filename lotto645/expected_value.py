"""
Expected Value Engine: full-rank EV of one ticket with Korean lottery tax.

Tax brackets on a single prize:
  <= 50,000 KRW           tax free
  <= 300,000,000 KRW      22%
  >  300,000,000 KRW      22% on the first 300M, 33% on the excess

Ranks 1 and 2 are shares of the weekly prize pool, ranks 3 to 5 are fixed
amounts. The first-prize share is divided by the expected number of
co-winners from the population model.
"""
from typing import Dict, Optional

from loguru import logger

from lotto645.combinatorics import Combinatorics
from lotto645.config import (
    CARRYOVER_SALES_INCREASE, ESTIMATED_WEEKLY_SALES, FIRST_PRIZE_RATE, FIXED_PRIZES, MAX_NUMBER,
    NEUTRAL_EV_FLOOR, PICK_SIZE, PRIZE_POOL_RATE, SECOND_PRIZE_RATE, TAX_BRACKET_LIMIT, TAX_FREE_LIMIT,
    TAX_RATE_HIGH, TAX_RATE_LOW, TICKET_PRICE
)
from lotto645.data_types import ExpectedValueBreakdown, Recommendation


def prize_tier_probabilities(combinatorics: Optional[Combinatorics] = None) -> Dict[int, float]:
    """
    Exact per-ticket probabilities of ranks 1..5.

    Rank 2 is five main numbers plus the bonus; rank 3 is five main numbers
    with the sixth being neither a winning number nor the bonus.
    """
    comb = combinatorics or Combinatorics()
    total = comb.binomial(MAX_NUMBER, PICK_SIZE)
    losers = MAX_NUMBER - PICK_SIZE
    counts = {
        1: 1,
        2: comb.binomial(PICK_SIZE, 5),
        3: comb.binomial(PICK_SIZE, 5) * (comb.binomial(losers, 1) - 1),
        4: comb.binomial(PICK_SIZE, 4) * comb.binomial(losers, 2),
        5: comb.binomial(PICK_SIZE, 3) * comb.binomial(losers, 3),
    }
    return {rank: count / total for rank, count in counts.items()}


PRIZE_TIER_PROBABILITIES: Dict[int, float] = prize_tier_probabilities()


def apply_tax(prize: float) -> float:
    """Net amount of a single prize after income and local tax."""
    if prize <= TAX_FREE_LIMIT:
        return prize
    if prize <= TAX_BRACKET_LIMIT:
        return prize * (1 - TAX_RATE_LOW)
    return prize - TAX_BRACKET_LIMIT * TAX_RATE_LOW - (prize - TAX_BRACKET_LIMIT) * TAX_RATE_HIGH


def estimate_jackpot(carryover_misses: int, co_winners: float,
                     weekly_sales: float = ESTIMATED_WEEKLY_SALES) -> Dict[str, float]:
    """
    First-prize estimate for the given carryover state.

    Returns the pre-tax jackpot, the post-tax amount per winner and the
    co-winner estimate scaled by the carryover sales increase.
    """
    base_jackpot = weekly_sales * PRIZE_POOL_RATE * FIRST_PRIZE_RATE
    estimated_jackpot = base_jackpot * (1 + carryover_misses)

    adjusted_co_winners = co_winners * (1 + carryover_misses * CARRYOVER_SALES_INCREASE)
    effective_winners = max(adjusted_co_winners, 1.0)
    per_person = apply_tax(estimated_jackpot / effective_winners)
    return {
        "estimated_jackpot": estimated_jackpot,
        "per_person_jackpot": per_person,
        "estimated_co_winners": adjusted_co_winners,
    }


def _second_prize(weekly_sales: float) -> float:
    # the rank-2 share is split between the expected number of rank-2 winners
    tickets = weekly_sales / TICKET_PRICE
    expected_winners = max(tickets * PRIZE_TIER_PROBABILITIES[2], 1.0)
    return apply_tax(weekly_sales * PRIZE_POOL_RATE * SECOND_PRIZE_RATE / expected_winners)


def kelly_fraction(per_person_jackpot: float) -> float:
    """Kelly bet fraction for the first prize alone (negative means do not bet)."""
    b = per_person_jackpot / TICKET_PRICE - 1
    if b <= 0:
        return -1.0
    p = PRIZE_TIER_PROBABILITIES[1]
    return (b * p - (1 - p)) / b


def calculate_expected_value(carryover_misses: int, co_winners: float, converged: bool,
                             weekly_sales: float = ESTIMATED_WEEKLY_SALES) -> ExpectedValueBreakdown:
    """Per-rank EV, net EV per ticket and the purchase recommendation."""
    jackpot = estimate_jackpot(carryover_misses, co_winners, weekly_sales)

    prizes = {
        1: jackpot["per_person_jackpot"],
        2: _second_prize(weekly_sales),
    }
    for rank, amount in FIXED_PRIZES.items():
        prizes[rank] = apply_tax(amount)

    ev_by_rank = {rank: PRIZE_TIER_PROBABILITIES[rank] * prizes[rank] for rank in sorted(prizes)}
    total_ev = sum(ev_by_rank.values()) - TICKET_PRICE

    co = jackpot["estimated_co_winners"]
    if total_ev > 0 and carryover_misses >= 2:
        recommendation = Recommendation.STRONG_BUY
        reasoning = (f"{carryover_misses} consecutive carryovers turn the expected value positive "
                     f"(+{round(total_ev)} KRW); an unpopular combination keeps the jackpot share high.")
        confidence = 0.90 if converged else 0.65
    elif carryover_misses >= 1:
        recommendation = Recommendation.BUY
        reasoning = (f"{carryover_misses} carryover(s) improve the expected value; "
                     f"estimated co-winners {co:.1f}.")
        confidence = 0.75 if converged else 0.55
    elif total_ev > NEUTRAL_EV_FLOOR:
        recommendation = Recommendation.NEUTRAL
        reasoning = "Regular draw. Unpopular combination chosen to maximise the share if it wins."
        confidence = 0.65 if converged else 0.45
    else:
        recommendation = Recommendation.SKIP
        reasoning = f"Expected value is strongly negative ({round(total_ev)} KRW per ticket). Purchase not recommended."
        confidence = 0.60 if converged else 0.40

    rounded = {rank: round(value, 2) for rank, value in ev_by_rank.items()}
    logger.debug(f"EV by rank: {rounded}, total={total_ev:.1f}")
    return ExpectedValueBreakdown(
        ev_by_rank=ev_by_rank,
        total_ev=total_ev,
        recommendation=recommendation,
        reasoning=reasoning,
        confidence_score=confidence,
        estimated_jackpot=jackpot["estimated_jackpot"],
        per_person_jackpot=jackpot["per_person_jackpot"],
        estimated_co_winners=co,
        kelly_fraction=kelly_fraction(jackpot["per_person_jackpot"]),
    )


def format_krw(amount: float) -> str:
    """Korean display string: 천억원 / 억원 / 만원 / 원."""
    if amount >= 100_000_000_000:
        return f"{amount / 100_000_000_000:.0f}천억원"
    if amount >= 100_000_000:
        return f"{amount / 100_000_000:.0f}억원"
    if amount >= 10_000:
        return f"{amount / 10_000:.0f}만원"
    return f"{amount:.0f}원"
