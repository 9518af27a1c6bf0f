"""Helpers for building and rescaling ScoreVectors (pandas Series indexed 1..45)."""
import numpy as np
import pandas as pd

from lotto645.config import MAX_NUMBER, NUMBER_RANGE


def score_vector(values, name: str) -> pd.Series:
    """Wraps 45 values (number 1 first) as a ScoreVector."""
    return pd.Series(np.asarray(values, dtype=float), index=pd.Index(NUMBER_RANGE, name="number"), name=name)


def uniform_vector(name: str) -> pd.Series:
    return score_vector(np.full(MAX_NUMBER, 1.0 / MAX_NUMBER), name)


def normalize_scores(scores: pd.Series) -> pd.Series:
    """
    Min-max rescales a ScoreVector to [0, 1].

    An all-equal vector has its range treated as 1 so it maps to zeros
    instead of dividing by zero.
    """
    low = scores.min()
    spread = scores.max() - low
    if spread == 0:
        spread = 1.0
    return (scores - low) / spread


def rank_scores(scores: pd.Series) -> pd.Series:
    """1-based ranks, best score first; ties keep number order."""
    ordered = scores.sort_values(ascending=False, kind="mergesort")
    return pd.Series(np.arange(1, len(ordered) + 1), index=ordered.index, name=scores.name).sort_index()
