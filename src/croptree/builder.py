"""
croptree.builder
================

Greedy top-down induction of a binary decision tree followed by C4.5-style
pessimistic pruning.

Growth picks, at every node, the feature/threshold pair with the highest
information gain (lowest feature index on ties).  A node becomes a leaf when
it holds fewer than ``2 * min_instances_per_leaf`` rows, when it is pure, when
no feature can be split, or when the chosen split would leave a side with
fewer than ``min_instances_per_leaf`` rows.

Pruning walks the grown tree bottom-up.  The estimated error of a leaf with
``N`` rows and ``E`` misclassified rows is ``E + added_errors(N, E, cf)``,
the upper limit of the binomial error at confidence ``cf`` (Quinlan, C4.5,
chapter 4).  A subtree is replaced by a leaf built from its aggregate label
counts when that leaf's estimate does not exceed the summed estimate of the
subtree's leaves by more than ``PRUNING_TOLERANCE``.
"""
from __future__ import annotations

import math

import numpy as np
from loguru import logger

from .config import PRUNING_TOLERANCE, TreeConfig
from .dataset import Dataset, RowSubset
from .exceptions import InvariantViolation
from .splitting import best_split
from .tree import DecisionTree, Leaf, Node, TreeNode


# -----------------------------------------------------------------------------
# Pessimistic error estimate
# -----------------------------------------------------------------------------
def _norm_ppf(p: float) -> float:
    """Approximate inverse CDF of standard normal (Acklam's approximation)."""
    p = min(max(p, 1e-12), 1 - 1e-12)
    a = [ -3.969683028665376e+01,  2.209460984245205e+02,
          -2.759285104469687e+02,  1.383577518672690e+02,
          -3.066479806614716e+01,  2.506628277459239e+00 ]
    b = [ -5.447609879822406e+01,  1.615858368580409e+02,
          -1.556989798598866e+02,  6.680131188771972e+01,
          -1.328068155288572e+01 ]
    c = [ -7.784894002430293e-03, -3.223964580411365e-01,
          -2.400758277161838e+00, -2.549732539343734e+00,
           4.374664141464968e+00,  2.938163982698783e+00 ]
    d = [ 7.784695709041462e-03,  3.224671290700398e-01,
          2.445134137142996e+00,  3.754408661907416e+00 ]
    plow = 0.02425
    phigh = 1 - plow
    if p < plow:
        q = math.sqrt(-2*math.log(p))
        return (((((c[0]*q + c[1])*q + c[2])*q + c[3])*q + c[4])*q + c[5]) / \
               ((((d[0]*q + d[1])*q + d[2])*q + d[3])*q + 1)
    if phigh < p:
        q = math.sqrt(-2*math.log(1-p))
        return -(((((c[0]*q + c[1])*q + c[2])*q + c[3])*q + c[4])*q + c[5]) / \
                 ((((d[0]*q + d[1])*q + d[2])*q + d[3])*q + 1)
    q = p - 0.5
    r = q*q
    return (((((a[0]*r + a[1])*r + a[2])*r + a[3])*r + a[4])*r + a[5])*q / \
           (((((b[0]*r + b[1])*r + b[2])*r + b[3])*r + b[4])*r + 1)


def added_errors(n: float, e: float, cf: float) -> float:
    """
    Extra errors to add to ``e`` observed errors out of ``n`` rows.

    The sum ``e + added_errors(n, e, cf)`` is the upper limit of the
    binomial confidence interval on the error count at level ``cf``.  For
    ``e < 1`` the exact binomial limit is used (interpolated between 0 and 1
    errors); otherwise the Wilson score approximation with
    ``z = Phi^-1(1 - cf)``.

    Parameters
    ----------
    n : float
        Number of rows reaching the leaf.
    e : float
        Number of those rows not in the leaf's majority class.
    cf : float
        Confidence factor in (0, 1).

    Returns
    -------
    float
        Non-negative number of additional errors.
    """
    if n <= 0:
        return 0.0
    if e < 1:
        base = n * (1.0 - cf ** (1.0 / n))
        if e == 0:
            return base
        return base + e * (added_errors(n, 1.0, cf) - base)
    if e + 0.5 >= n:
        return max(n - e, 0.0)
    z = _norm_ppf(1.0 - cf)
    f = (e + 0.5) / n
    r = (f + z*z / (2*n) + z * math.sqrt(f/n - f*f/n + z*z / (4*n*n))) / (1 + z*z / n)
    return max(r * n - e, 0.0)


def leaf_error_estimate(counts: np.ndarray, cf: float) -> float:
    """Pessimistic error count of a leaf holding ``counts``."""
    n = float(counts.sum())
    e = n - float(counts.max())
    return e + added_errors(n, e, cf)


# -----------------------------------------------------------------------------
# Builder
# -----------------------------------------------------------------------------
class TreeBuilder:
    """Grow and prune a :class:`~croptree.tree.DecisionTree`.

    Parameters
    ----------
    confidence_factor : float, default=0.25
        Pruning confidence in (0, 1); lower values prune more.
    min_instances_per_leaf : int, default=2
        Minimum number of training rows per leaf.

    Raises
    ------
    ConfigurationError
        If either parameter is out of range.
    """

    def __init__(self, confidence_factor: float = 0.25, min_instances_per_leaf: int = 2):
        self.config = TreeConfig(confidence_factor, min_instances_per_leaf).validate()

    @classmethod
    def from_config(cls, config: TreeConfig) -> TreeBuilder:
        return cls(config.confidence_factor, config.min_instances_per_leaf)

    def build(self, rows: RowSubset) -> DecisionTree:
        """Build a pruned tree from the rows of ``rows``.

        Raises
        ------
        InvariantViolation
            If ``rows`` is empty.  Callers must never hand over an empty
            subset; no partial tree is returned.
        """
        if len(rows) == 0:
            raise InvariantViolation("TreeBuilder.build received an empty row subset")
        grown = self._grow(rows.dataset, rows.indices)
        root, est = self._prune(grown)
        tree = DecisionTree(root, rows.dataset.n_features,
                            feature_names=rows.dataset.feature_names,
                            classes=rows.dataset.classes)
        logger.debug("built tree on {} rows: {} internal nodes, {} leaves, depth {}, "
                     "estimated errors {:.2f}", len(rows), tree.n_internal, tree.n_leaves,
                     tree.depth, est)
        return tree

    def _choose_split(self, ds: Dataset, idx: np.ndarray, counts: np.ndarray):
        m = self.config.min_instances_per_leaf
        if idx.shape[0] < 2 * m or np.count_nonzero(counts) == 1:
            return None

        rows = RowSubset(ds, idx)
        best_feat, best_thr, best_gain = None, None, -np.inf
        for j in range(ds.n_features):
            split = best_split(rows, j)
            if split is not None and split.information_gain > best_gain:
                best_feat, best_thr, best_gain = j, split.threshold, split.information_gain
        if best_feat is None:
            return None

        go_left = ds.X[idx, best_feat] <= best_thr
        left, right = idx[go_left], idx[~go_left]
        if left.shape[0] < m or right.shape[0] < m:
            return None
        return best_feat, best_thr, left, right

    def _grow(self, ds: Dataset, idx: np.ndarray) -> TreeNode:
        # explicit stack: chain-shaped trees get deeper than the recursion limit
        work: list[tuple] = [("grow", idx)]
        built: list[TreeNode] = []
        while work:
            item = work.pop()
            if item[0] == "join":
                _, feat, thr, counts = item
                right = built.pop()
                left = built.pop()
                built.append(Node(feat, thr, left, right, counts))
                continue
            sub = item[1]
            counts = np.bincount(ds.y[sub], minlength=ds.n_classes)
            chosen = self._choose_split(ds, sub, counts)
            if chosen is None:
                built.append(Leaf(counts))
                continue
            feat, thr, left, right = chosen
            work.append(("join", feat, thr, counts))
            work.append(("grow", right))
            work.append(("grow", left))
        return built.pop()

    def _prune(self, node: TreeNode) -> tuple[TreeNode, float]:
        cf = self.config.confidence_factor
        work: list[tuple[bool, TreeNode]] = [(False, node)]
        done: list[tuple[TreeNode, float]] = []
        while work:
            children_done, cur = work.pop()
            if isinstance(cur, Leaf):
                done.append((cur, leaf_error_estimate(cur.counts, cf)))
                continue
            if not children_done:
                work.append((True, cur))
                work.append((False, cur.right))
                work.append((False, cur.left))
                continue
            right, err_right = done.pop()
            left, err_left = done.pop()
            err_subtree = err_left + err_right
            err_leaf = leaf_error_estimate(cur.counts, cf)
            if err_leaf <= err_subtree + PRUNING_TOLERANCE:
                done.append((Leaf(cur.counts), err_leaf))
            else:
                done.append((Node(cur.feature_index, cur.threshold, left, right, cur.counts),
                             err_subtree))
        return done.pop()


def train_final_model(dataset: Dataset, confidence_factor: float = 0.25,
                      min_instances_per_leaf: int = 2) -> DecisionTree:
    """Train the production tree on every row of ``dataset``."""
    builder = TreeBuilder(confidence_factor, min_instances_per_leaf)
    tree = builder.build(dataset.view())
    logger.info("final tree: {} leaves, {} internal nodes", tree.n_leaves, tree.n_internal)
    return tree
