"""
Network Centrality Model: hub numbers of the co-occurrence graph.

Nodes are the 45 numbers; edge weight is the count of draws in which two
numbers appeared together. The score blends PageRank (70%) with Brandes
betweenness centrality (30%), each min-max normalised.
"""
from typing import List, Sequence

import numpy as np
import pandas as pd

from lotto645.config import (
    BETWEENNESS_WEIGHT, MAX_NUMBER, PAGERANK_DAMPING, PAGERANK_ITERATIONS, PAGERANK_WEIGHT
)
from lotto645.data_types import DrawRecord, occurrence_matrix
from lotto645.score_utils import normalize_scores, score_vector

_TIE_TOLERANCE = 1e-10


def co_occurrence_matrix(draws: Sequence[DrawRecord]) -> np.ndarray:
    """45 x 45 joint-appearance counts with a zero diagonal."""
    if not draws:
        return np.zeros((MAX_NUMBER, MAX_NUMBER))
    matrix = occurrence_matrix(draws)
    co = matrix.T @ matrix
    np.fill_diagonal(co, 0.0)
    return co


def pagerank(co_matrix: np.ndarray, damping: float = PAGERANK_DAMPING,
             iterations: int = PAGERANK_ITERATIONS) -> np.ndarray:
    """Power-iteration PageRank; isolated nodes restart uniformly."""
    n = co_matrix.shape[0]
    row_sums = co_matrix.sum(axis=1)
    transition = np.full((n, n), 1.0 / n)
    connected = row_sums > 0
    transition[connected] = co_matrix[connected] / row_sums[connected, None]

    rank = np.full(n, 1.0 / n)
    for _ in range(iterations):
        rank = (1 - damping) / n + damping * (transition.T @ rank)
    return rank


def betweenness_centrality(co_matrix: np.ndarray) -> np.ndarray:
    """
    Brandes betweenness on the weighted co-occurrence graph.

    Edge length is 1 / (co + 1) so frequent partners are close. Shortest
    paths come from an O(N^2) Dijkstra per source, which is fine for N=45.
    The result is halved because the graph is undirected.
    """
    n = co_matrix.shape[0]
    adjacent = co_matrix > 0
    lengths = np.where(adjacent, 1.0 / (co_matrix + 1.0), np.inf)
    centrality = np.zeros(n)

    for source in range(n):
        dist = np.full(n, np.inf)
        sigma = np.zeros(n)
        delta = np.zeros(n)
        visited = np.zeros(n, dtype=bool)
        stack: List[int] = []
        dist[source] = 0.0
        sigma[source] = 1.0

        for _ in range(n):
            candidates = np.where(visited, np.inf, dist)
            u = int(np.argmin(candidates))
            if not np.isfinite(candidates[u]):
                break
            visited[u] = True
            stack.append(u)
            for v in np.flatnonzero(adjacent[u]):
                new_dist = dist[u] + lengths[u, v]
                if new_dist < dist[v] - _TIE_TOLERANCE:
                    dist[v] = new_dist
                    sigma[v] = sigma[u]
                elif abs(new_dist - dist[v]) < _TIE_TOLERANCE:
                    sigma[v] += sigma[u]

        while stack:
            w = stack.pop()
            for v in np.flatnonzero(adjacent[w]):
                if abs(dist[w] - (dist[v] + lengths[w, v])) < _TIE_TOLERANCE and sigma[w] > 0:
                    delta[v] += (sigma[v] / sigma[w]) * (1 + delta[w])
            if w != source:
                centrality[w] += delta[w]

    return centrality / 2


def network_centrality_score(draws: Sequence[DrawRecord]) -> pd.Series:
    co = co_occurrence_matrix(draws)
    pr = normalize_scores(score_vector(pagerank(co), "pagerank"))
    bc = normalize_scores(score_vector(betweenness_centrality(co), "betweenness"))
    return (PAGERANK_WEIGHT * pr + BETWEENNESS_WEIGHT * bc).rename("network_centrality")
