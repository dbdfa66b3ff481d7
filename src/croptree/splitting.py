"""Information-gain threshold search for a single numeric feature."""
from __future__ import annotations

from typing import NamedTuple

import numpy as np

from .dataset import RowSubset


class Split(NamedTuple):
    threshold: float
    information_gain: float


def entropy(counts: np.ndarray) -> float:
    """Base-2 entropy of a vector of class counts (0 for an empty vector)."""
    counts = np.asarray(counts, dtype=float)
    tot = counts.sum()
    if tot <= 0:
        return 0.0
    p = counts / tot
    p = p[p > 0]
    return float(-np.sum(p * np.log2(p)))


def _entropy_rows(counts: np.ndarray) -> np.ndarray:
    # row-wise entropy of an (m, K) count matrix whose rows are all non-empty
    p = counts / counts.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        logs = np.where(p > 0, np.log2(p), 0.0)
    return -(p * logs).sum(axis=1)


def best_threshold(values: np.ndarray, codes: np.ndarray, n_classes: int) -> Split | None:
    """Best binary threshold of ``values`` for predicting ``codes``.

    Candidates are midpoints between consecutive distinct sorted values.
    Among equal gains the smallest threshold wins.  Returns ``None`` when
    every value is identical.
    """
    n = values.shape[0]
    if n < 2:
        return None
    order = np.argsort(values, kind="mergesort")
    v = values[order]
    bd = np.nonzero(v[:-1] != v[1:])[0]
    if bd.size == 0:
        return None

    M = np.zeros((n, n_classes), dtype=float)
    M[np.arange(n), codes[order]] = 1.0
    SW = M.cumsum(axis=0)
    total = SW[-1]

    left = SW[bd]
    right = total - left
    n_left = bd + 1.0
    n_right = n - n_left
    child = (n_left * _entropy_rows(left) + n_right * _entropy_rows(right)) / n
    gains = entropy(total) - child

    best = int(np.argmax(gains))
    i = bd[best]
    thr = 0.5 * (v[i] + v[i + 1])
    if thr >= v[i + 1]:
        # adjacent floats: the midpoint rounds up onto the right-hand value
        thr = float(v[i])
    return Split(float(thr), float(gains[best]))


def best_split(rows: RowSubset, feature_index: int) -> Split | None:
    """Best information-gain split of ``rows`` on one feature."""
    ds = rows.dataset
    return best_threshold(ds.X[rows.indices, feature_index], rows.y, ds.n_classes)
