"""
Spectral Analysis Model: DFT-based periodicity detection.

For every number a mean-subtracted binary occurrence series is transformed
with numpy's FFT. The dominant frequency among periods of at least three
draws is found and the number is scored by how close the next draw index
sits to that frequency's phase peak, weighted by the frequency's amplitude,
plus the base occurrence rate.
"""
from typing import Sequence

import numpy as np
import pandas as pd
from loguru import logger

from lotto645.config import DEGENERATE_DRAW_COUNT, MAX_NUMBER
from lotto645.data_types import DrawRecord, occurrence_matrix, sort_draws
from lotto645.score_utils import score_vector, uniform_vector


def spectral_analysis_score(draws: Sequence[DrawRecord]) -> pd.Series:
    ordered = sort_draws(draws)
    n = len(ordered)
    if n < DEGENERATE_DRAW_COUNT:
        logger.warning(f"Spectral analysis needs {DEGENERATE_DRAW_COUNT} draws, got {n}; using uniform scores")
        return uniform_vector("spectral_analysis")

    series = occurrence_matrix(ordered)
    mean = series.mean(axis=0)
    centered = series - mean

    # fft gives X_k = sum_t x_t * exp(-2*pi*i*k*t/N); keep k = 1..N//3
    max_k = n // 3
    spectrum = np.fft.fft(centered, axis=0)[1:max_k + 1]
    amplitude = np.abs(spectrum) / n

    # first k wins ties
    best = np.argmax(amplitude, axis=0)
    columns = np.arange(MAX_NUMBER)
    best_amplitude = amplitude[best, columns]
    best_phase = np.angle(spectrum[best, columns])
    best_k = best + 1

    # phase of the dominant component at t = N
    current_angle = 2 * np.pi * best_k * n / n + best_phase
    phase_score = (np.cos(current_angle) + 1) / 2
    scores = best_amplitude * phase_score + mean
    return score_vector(scores, "spectral_analysis")
