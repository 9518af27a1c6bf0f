"""Binomial coefficients with a per-instance memo table."""
from typing import Dict, Tuple


class Combinatorics:
    """
    Pascal-triangle binomial coefficients.

    The memo lives on the instance, so each pipeline run (or test) can own
    its table and nothing is shared across the process.
    """

    def __init__(self):
        self._memo: Dict[Tuple[int, int], int] = {}

    def binomial(self, n: int, k: int) -> int:
        if k < 0 or k > n:
            return 0
        if k == 0 or k == n:
            return 1
        k = min(k, n - k)
        key = (n, k)
        cached = self._memo.get(key)
        if cached is not None:
            return cached
        # after i passes row[j] holds C(i + j, j)
        row = [1] * (k + 1)
        for _ in range(n - k):
            for j in range(1, k + 1):
                row[j] += row[j - 1]
        result = row[k]
        self._memo[key] = result
        return result

    @property
    def memo_size(self) -> int:
        return len(self._memo)
