"""
croptree.validation
===================

Seeded, unstratified k-fold cross-validation of the tree builder.

The row indices are shuffled once with ``numpy.random.default_rng(seed)``
(PCG64, so the permutation is the same on every platform) and cut into ``k``
contiguous slices whose sizes differ by at most one.  Each slice is the test
set of one fold; a tree is grown on the remaining rows and scored on it.

Per fold the report keeps the confusion matrix, per-class precision and
recall (NaN where the denominator is zero), accuracy in percent, and
precision/recall weighted by each class's share of the test rows with NaN
classes left out.  The aggregate is the plain mean over folds.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.metrics import confusion_matrix

from .builder import TreeBuilder
from .config import DEFAULT_FOLDS, DEFAULT_SEED, validate_folds
from .dataset import Dataset


@dataclass(frozen=True)
class FoldMetrics:
    accuracy: float
    weighted_precision: float
    weighted_recall: float


@dataclass(frozen=True, eq=False)
class FoldResult:
    """Everything measured on one fold."""

    fold: int
    test_indices: np.ndarray
    confusion: np.ndarray
    precision: np.ndarray
    recall: np.ndarray
    metrics: FoldMetrics


@dataclass(frozen=True, eq=False)
class CrossValidationReport:
    folds: tuple[FoldResult, ...]
    aggregate: FoldMetrics
    classes: tuple[str, ...]

    @property
    def per_fold_metrics(self) -> tuple[FoldMetrics, ...]:
        return tuple(f.metrics for f in self.folds)

    def to_frame(self) -> pd.DataFrame:
        """One row per fold plus an ``Avg`` row."""
        rows = [(str(f.fold + 1), f.metrics.accuracy, f.metrics.weighted_precision,
                 f.metrics.weighted_recall) for f in self.folds]
        a = self.aggregate
        rows.append(("Avg", a.accuracy, a.weighted_precision, a.weighted_recall))
        return pd.DataFrame(rows, columns=["fold", "accuracy", "precision", "recall"]).set_index("fold")

    def format_table(self) -> str:
        lines = ["Fold\tAccuracy\tPrecision\tRecall",
                 "----\t--------\t---------\t------"]
        for f in self.folds:
            m = f.metrics
            lines.append(f"{f.fold + 1}\t{m.accuracy:.4f}%\t{m.weighted_precision:.4f}\t\t"
                         f"{m.weighted_recall:.4f}")
        a = self.aggregate
        lines.append("----\t--------\t---------\t------")
        lines.append(f"Avg\t{a.accuracy:.4f}%\t{a.weighted_precision:.4f}\t\t{a.weighted_recall:.4f}")
        return "\n".join(lines)


def fold_indices(n_rows: int, k: int, seed: int) -> list[np.ndarray]:
    """Shuffle ``range(n_rows)`` with ``seed`` and cut it into ``k`` slices."""
    k = validate_folds(k, n_rows)
    perm = np.random.default_rng(seed).permutation(n_rows)
    return np.array_split(perm, k)


def per_class_scores(confusion: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Per-class precision and recall from a (true x predicted) confusion matrix."""
    tp = np.diag(confusion).astype(float)
    predicted = confusion.sum(axis=0)
    actual = confusion.sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        precision = np.where(predicted > 0, tp / predicted, np.nan)
        recall = np.where(actual > 0, tp / actual, np.nan)
    return precision, recall


def fold_metrics(confusion: np.ndarray) -> FoldMetrics:
    total = float(confusion.sum())
    precision, recall = per_class_scores(confusion)
    weights = confusion.sum(axis=1) / total
    ok_p = ~np.isnan(precision)
    ok_r = ~np.isnan(recall)
    return FoldMetrics(
        accuracy=float(np.trace(confusion) / total * 100.0),
        weighted_precision=float(np.sum(weights[ok_p] * precision[ok_p])),
        weighted_recall=float(np.sum(weights[ok_r] * recall[ok_r])),
    )


class CrossValidator:
    """k-fold cross-validation of :class:`~croptree.builder.TreeBuilder`.

    Parameters
    ----------
    k : int, default=5
        Number of folds; must be at least 2 and at most the row count.
    seed : int, default=1
        Seed of the shuffling permutation.
    confidence_factor : float, default=0.25
    min_instances_per_leaf : int, default=2
        Passed to the tree builder of every fold.
    """

    def __init__(self, k: int = DEFAULT_FOLDS, seed: int = DEFAULT_SEED,
                 confidence_factor: float = 0.25, min_instances_per_leaf: int = 2):
        self.k = k
        self.seed = seed
        self.builder = TreeBuilder(confidence_factor, min_instances_per_leaf)

    def evaluate(self, dataset: Dataset) -> CrossValidationReport:
        """Run every fold; a failure in any fold aborts the whole evaluation."""
        slices = fold_indices(dataset.n_rows, self.k, self.seed)
        labels = np.arange(dataset.n_classes)
        results = []
        for i, test_idx in enumerate(slices):
            train_idx = np.concatenate([s for j, s in enumerate(slices) if j != i])
            tree = self.builder.build(dataset.view(train_idx))
            test = dataset.view(test_idx)
            predicted = tree.classify_many(test.X)
            cm = confusion_matrix(test.y, predicted, labels=labels)
            precision, recall = per_class_scores(cm)
            metrics = fold_metrics(cm)
            logger.info("fold {}/{}: accuracy {:.4f}%, precision {:.4f}, recall {:.4f}",
                        i + 1, self.k, metrics.accuracy, metrics.weighted_precision,
                        metrics.weighted_recall)
            results.append(FoldResult(i, test.indices, cm, precision, recall, metrics))

        aggregate = FoldMetrics(
            accuracy=float(np.mean([r.metrics.accuracy for r in results])),
            weighted_precision=float(np.mean([r.metrics.weighted_precision for r in results])),
            weighted_recall=float(np.mean([r.metrics.weighted_recall for r in results])),
        )
        return CrossValidationReport(tuple(results), aggregate, dataset.classes)


def cross_validate(dataset: Dataset, k: int = DEFAULT_FOLDS, seed: int = DEFAULT_SEED,
                   confidence_factor: float = 0.25,
                   min_instances_per_leaf: int = 2) -> CrossValidationReport:
    """Functional form of :meth:`CrossValidator.evaluate`."""
    return CrossValidator(k, seed, confidence_factor, min_instances_per_leaf).evaluate(dataset)
