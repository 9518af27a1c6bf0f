"""
Configuration constants for LOTTO645.

This file contains the fixed parameters of the 6/45 game and the default
values of every tunable weight and bound used by the strategy pipeline.
Centralizing these parameters makes it easy to fine-tune the strategy
without modifying the core logic; runtime overrides come from
config/config.ini through the ConfigurationManager.
"""
from typing import Dict, List, Tuple

# --- Game Shape ---
MAX_NUMBER: int = 45
PICK_SIZE: int = 6
TOTAL_COMBINATIONS: int = 8_145_060
NUMBER_RANGE: List[int] = list(range(1, MAX_NUMBER + 1))

# --- Data Source ---
DATA_FILE_PATH: str = "data/lotto645_draws.csv"
CONFIG_FILE_PATH: str = "config/config.ini"
LOG_FILE_PATH: str = "logs/lotto645.log"
MIN_MEANINGFUL_DRAWS: int = 30
DEGENERATE_DRAW_COUNT: int = 10

# --- Hard Constraints (selector level) ---
MIN_SUM_FILTER: int = 100
MAX_SUM_FILTER: int = 175
MIN_ODD_COUNT: int = 2
MAX_ODD_COUNT: int = 4
LOW_NUMBER_CEILING: int = 22
MIN_LOW_COUNT: int = 2
MAX_LOW_COUNT: int = 4
MIN_COLOR_GROUPS: int = 3
HIGH_ZONE_FLOOR: int = 32
MIN_HIGH_ZONE_COUNT: int = 1
MIN_LAST_DIGITS: int = 4
MAX_PER_DECADE: int = 3
MAX_CONSECUTIVE_RUN: int = 2
RECENT_DRAWS_FOR_OVERLAP: int = 2
MAX_RECENT_OVERLAP: int = 3

# --- Scoring Models ---
ADAPTIVE_WINDOWS: List[int] = [20, 30, 40, 50, 60, 78]
MARKOV_RECENT_WEIGHTS: List[float] = [0.5, 0.3, 0.2]
MONTE_CARLO_TRIALS: int = 5000
MOMENTUM_VELOCITY_WEIGHT: float = 0.6
MOMENTUM_ACCELERATION_WEIGHT: float = 0.4
PAGERANK_DAMPING: float = 0.85
PAGERANK_ITERATIONS: int = 30
PAGERANK_WEIGHT: float = 0.7
BETWEENNESS_WEIGHT: float = 0.3

# --- Population Model (bias source weights) ---
POPULATION_BIAS_WEIGHTS: Dict[str, float] = {
    "birthday": 0.25,
    "lucky_numbers": 0.15,
    "cultural": 0.10,
    "slip_position": 0.10,
    "round_numbers": 0.08,
    "recent_mimicry": 0.12,
    "arithmetic_pattern": 0.10,
    "low_familiarity": 0.10,
}
POPULARITY_CLAMP: Tuple[float, float] = (-0.05, 0.15)
UNPOPULARITY_FLOOR: float = 0.001
AUTO_PICK_SHARE: float = 0.7

# --- Structural Profile (hard-reject bounds per dimension) ---
STRUCTURAL_BOUNDS: Dict[str, Tuple[float, float]] = {
    "sum": (80, 200),
    "odd_count": (0.5, 5.5),
    "low_count": (0.5, 5.5),
    "max_consecutive": (float("-inf"), 2.5),
    "mean_gap": (1.5, 30),
    "decade_coverage": (2.5, float("inf")),
    "last_digit_diversity": (2.5, float("inf")),
    "range": (15, float("inf")),
}
STRUCTURAL_WEIGHTS: Dict[str, float] = {
    "sum": 0.20,
    "odd_count": 0.15,
    "low_count": 0.12,
    "max_consecutive": 0.08,
    "mean_gap": 0.15,
    "decade_coverage": 0.10,
    "last_digit_diversity": 0.10,
    "range": 0.10,
}

# --- Fusion Layer ---
RRF_K: int = 60
RRF_BLEND_WEIGHT: float = 0.6
MIN_POOL_SIZE: int = 14
MAX_POOL_SIZE: int = 24
DEFAULT_POOL_SIZE: int = 18
MIN_POOL_ZONES: int = 3

# A number ranked strictly first by every anchor model and drawn in at least
# this share of a history of MIN_MEANINGFUL_DRAWS or more is kept in the pick
DOMINANT_APPEARANCE_RATE: float = 0.5
ANCHOR_MODELS: List[str] = ["adaptive_frequency", "bayesian_posterior"]

# Partial-match payouts used for pool sizing (KRW)
PARTIAL_MATCH_PAYOUTS: Dict[int, int] = {
    3: 5_000,
    4: 50_000,
    5: 1_500_000,
    6: 2_000_000_000,
}

# --- MCMC Selector ---
MCMC_CHAINS: int = 4
MCMC_BURN_IN: int = 5000
MCMC_SAMPLES: int = 500
MCMC_R_HAT_THRESHOLD: float = 1.1
MCMC_REJECTION_DRAWS: int = 1000
MCMC_ANTI_POPULARITY_WEIGHT: float = 0.6
MCMC_STRUCTURE_WEIGHT: float = 0.4
INVALID_LOG_DENSITY: float = -1e9

# --- Genetic Selector ---
GA_POPULATION_SIZE: int = 200
GA_GENERATIONS: int = 50
GA_TOURNAMENT_SIZE: int = 3
GA_MUTATION_RATE: float = 0.15
GA_ELITISM_RATE: float = 0.10
GA_MIN_FITNESS: float = 0.1
GA_INVALID_FITNESS: float = 0.001

# --- Fallback Sampling ---
FALLBACK_ATTEMPTS: int = 500
FALLBACK_EXPANSION_CHECKPOINTS: List[int] = [200, 350]
FALLBACK_EXPANSION_STEP: int = 5
FALLBACK_TEMPERATURE: float = 0.15

# --- Expected Value ---
TICKET_PRICE: int = 1_000
ESTIMATED_WEEKLY_SALES: int = 70_000_000_000
PRIZE_POOL_RATE: float = 0.5
FIRST_PRIZE_RATE: float = 0.75
SECOND_PRIZE_RATE: float = 0.125
CARRYOVER_SALES_INCREASE: float = 0.3
FIXED_PRIZES: Dict[int, int] = {
    3: 1_500_000,
    4: 50_000,
    5: 5_000,
}
TAX_FREE_LIMIT: int = 50_000
TAX_BRACKET_LIMIT: int = 300_000_000
TAX_RATE_LOW: float = 0.22
TAX_RATE_HIGH: float = 0.33
NEUTRAL_EV_FLOOR: float = -400.0
