"""scikit-learn estimator facade over :class:`~croptree.builder.TreeBuilder`."""
from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_is_fitted

from .builder import TreeBuilder
from .dataset import Dataset


class C45Classifier(ClassifierMixin, BaseEstimator):
    """
    Information-gain decision tree with confidence-factor pruning.

    Thin adapter that lets the croptree builder take part in scikit-learn
    pipelines, grid searches and ``cross_val_score``.

    Parameters
    ----------
    confidence_factor : float, default=0.25
        Pruning confidence in (0, 1).  Smaller values prune more.
    min_instances_per_leaf : int, default=2
        Minimum number of training rows per leaf.

    Attributes
    ----------
    classes_ : ndarray of shape (n_classes,)
        Sorted class labels seen during ``fit``.
    tree_ : DecisionTree
        The fitted tree; its class codes index ``classes_``.
    n_features_in_ : int
        Number of features seen during ``fit``.
    """

    def __init__(self, confidence_factor: float = 0.25, min_instances_per_leaf: int = 2):
        self.confidence_factor = confidence_factor
        self.min_instances_per_leaf = min_instances_per_leaf

    def fit(self, X, y, feature_names=None):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        self.classes_, codes = np.unique(y, return_inverse=True)
        dataset = Dataset(X, codes.astype(np.intp), classes=[str(c) for c in self.classes_],
                          feature_names=feature_names)
        builder = TreeBuilder(self.confidence_factor, self.min_instances_per_leaf)
        self.tree_ = builder.build(dataset.view())
        self.n_features_in_ = dataset.n_features
        return self

    def predict(self, X):
        check_is_fitted(self, "tree_")
        X = np.asarray(X, dtype=float)
        return self.classes_[self.tree_.classify_many(X)]

    def predict_proba(self, X):
        check_is_fitted(self, "tree_")
        X = np.asarray(X, dtype=float)
        return np.array([self.tree_.distribution(x) for x in X])
