"""
croptree.dataset
================

Immutable tabular dataset: a float feature matrix plus integer-coded labels.

Labels are coded in first-seen order and the vocabulary is closed once the
dataset is built.  Folds and train/test splits are :class:`RowSubset` views
that hold only an index array into the same backing rows, so every subset of
one dataset agrees on what each label code means.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from .config import CROP_FEATURES
from .exceptions import DataError


class Row(NamedTuple):
    features: tuple
    label: str


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.array(a, copy=True)
    a.flags.writeable = False
    return a


def _label_vocabulary(labels: Sequence) -> tuple[tuple[str, ...], np.ndarray]:
    # first-seen order, not sorted
    vocab: dict[str, int] = {}
    codes = np.empty(len(labels), dtype=np.intp)
    for i, lab in enumerate(labels):
        codes[i] = vocab.setdefault(str(lab), len(vocab))
    return tuple(vocab), codes


class Dataset:
    """Numeric feature rows with one categorical label each.

    Parameters
    ----------
    features : array-like of shape (n_rows, n_features)
        Numeric feature values.  Every row must have the same length and
        every value must be finite; missing values are rejected.
    labels : sequence of str or int
        One label per row.  Strings are coded in first-seen order.  Integer
        codes are accepted only together with ``classes``.
    classes : sequence of str, optional
        Explicit label vocabulary for integer-coded ``labels``.
    feature_names : sequence of str, optional
        Column names.  Defaults to the seven crop measurements when the
        arity matches, otherwise ``f0..f{n-1}``.

    Raises
    ------
    DataError
        If the dataset is empty, ragged, non-numeric, contains non-finite
        values, or labels do not line up with the rows.
    """

    def __init__(self, features, labels, *, classes=None, feature_names=None):
        rows = list(features) if not isinstance(features, np.ndarray) else features
        if len(rows) == 0:
            raise DataError("dataset is empty")
        if not isinstance(rows, np.ndarray):
            try:
                arity = {len(r) for r in rows}
            except TypeError as exc:
                raise DataError("features must be a 2-D table") from exc
            if len(arity) != 1:
                raise DataError(f"inconsistent row arity: {sorted(arity)}")
        try:
            X = np.asarray(rows, dtype=float)
        except (TypeError, ValueError) as exc:
            raise DataError(f"feature values must be numeric: {exc}") from exc
        if X.ndim != 2 or X.shape[1] == 0:
            raise DataError(f"features must be a non-empty 2-D table, got shape {X.shape}")
        if not np.isfinite(X).all():
            bad = np.argwhere(~np.isfinite(X))[0]
            raise DataError(f"missing or non-finite value at row {bad[0]}, column {bad[1]}")
        if len(labels) != X.shape[0]:
            raise DataError(f"{len(labels)} labels for {X.shape[0]} rows")

        if classes is None:
            vocab, codes = _label_vocabulary(labels)
        else:
            vocab = tuple(str(c) for c in classes)
            codes = np.asarray(labels)
            if codes.dtype.kind not in "iu":
                raise DataError("integer label codes are required when classes is given")
            if len(vocab) == 0 or codes.min() < 0 or codes.max() >= len(vocab):
                raise DataError("label code outside the class vocabulary")
            codes = codes.astype(np.intp)

        if feature_names is None:
            n = X.shape[1]
            feature_names = CROP_FEATURES if n == len(CROP_FEATURES) else tuple(f"f{i}" for i in range(n))
        feature_names = tuple(str(f) for f in feature_names)
        if len(feature_names) != X.shape[1]:
            raise DataError("feature_names length must match the number of feature columns")

        self._X = _readonly(X)
        self._y = _readonly(codes)
        self._classes = vocab
        self._feature_names = feature_names

    # ------------------------------------------------------------------
    # Construction from tabular sources
    # ------------------------------------------------------------------
    @classmethod
    def from_frame(cls, frame: pd.DataFrame, label_column: str | None = None) -> Dataset:
        """Build a dataset from a DataFrame; the label defaults to the last column."""
        if frame.shape[0] == 0:
            raise DataError("dataset is empty")
        if label_column is None:
            label_column = frame.columns[-1]
        elif label_column not in frame.columns:
            raise DataError(f"label column {label_column!r} not found")
        feats = frame.drop(columns=[label_column])
        try:
            feats = feats.apply(pd.to_numeric)
        except (TypeError, ValueError) as exc:
            raise DataError(f"feature columns must be numeric: {exc}") from exc
        labels = frame[label_column]
        if labels.isna().any():
            raise DataError(f"label column {label_column!r} has missing values")
        return cls(feats.to_numpy(dtype=float), labels.astype(str).tolist(),
                   feature_names=[str(c) for c in feats.columns])

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def X(self) -> np.ndarray:
        return self._X

    @property
    def y(self) -> np.ndarray:
        return self._y

    @property
    def classes(self) -> tuple[str, ...]:
        """Label vocabulary; position is the class code."""
        return self._classes

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self._feature_names

    @property
    def n_rows(self) -> int:
        return self._X.shape[0]

    @property
    def n_features(self) -> int:
        return self._X.shape[1]

    @property
    def n_classes(self) -> int:
        return len(self._classes)

    def __len__(self) -> int:
        return self.n_rows

    def __getitem__(self, i: int) -> Row:
        return Row(tuple(float(v) for v in self._X[i]), self._classes[self._y[i]])

    def label_of(self, code: int) -> str:
        if not 0 <= code < len(self._classes):
            raise DataError(f"class code {code} is not in the label vocabulary")
        return self._classes[code]

    def class_counts(self) -> np.ndarray:
        return np.bincount(self._y, minlength=self.n_classes)

    def column_stats(self) -> pd.DataFrame:
        """Per-feature count, mean, std, min, quartiles and max."""
        return pd.DataFrame(self._X, columns=list(self._feature_names)).describe()

    def view(self, indices=None) -> RowSubset:
        """Return a subset view over ``indices`` (all rows when omitted)."""
        if indices is None:
            idx = np.arange(self.n_rows, dtype=np.intp)
        else:
            idx = np.asarray(indices, dtype=np.intp).ravel()
            if idx.size and (idx.min() < 0 or idx.max() >= self.n_rows):
                raise IndexError("subset index out of range")
        return RowSubset(self, _readonly(idx))

    def __repr__(self) -> str:
        return (f"Dataset(n_rows={self.n_rows}, n_features={self.n_features}, "
                f"n_classes={self.n_classes})")


@dataclass(frozen=True, eq=False)
class RowSubset:
    """Index view over the rows of a :class:`Dataset`."""

    dataset: Dataset
    indices: np.ndarray

    def __len__(self) -> int:
        return int(self.indices.shape[0])

    @property
    def X(self) -> np.ndarray:
        return self.dataset.X[self.indices]

    @property
    def y(self) -> np.ndarray:
        return self.dataset.y[self.indices]

    def class_counts(self) -> np.ndarray:
        return np.bincount(self.y, minlength=self.dataset.n_classes)


def load_csv(path, label_column: str | None = None) -> Dataset:
    """Read a CSV file into a :class:`Dataset`.

    The label is the last column unless ``label_column`` names another.
    A missing file raises ``FileNotFoundError``; a file without data rows,
    with ragged rows or with undecodable bytes raises :class:`DataError`.
    """
    try:
        frame = pd.read_csv(path)
    except pd.errors.EmptyDataError as exc:
        raise DataError("dataset is empty") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise DataError(f"cannot parse {path}: {exc}") from exc
    ds = Dataset.from_frame(frame, label_column=label_column)
    logger.info("loaded {} rows, {} features, {} classes from {}",
                ds.n_rows, ds.n_features, ds.n_classes, path)
    return ds
