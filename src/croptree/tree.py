# -*- coding: utf-8 -*-
"""
croptree.tree
=============

Immutable decision tree produced by :mod:`croptree.builder`.

A tree is made of two node kinds: :class:`Leaf`, which carries the label
counts of the training rows that reached it and the relative-frequency class
distribution derived from them, and :class:`Node`, a binary test
``x[feature_index] <= threshold`` with exactly two children.  Both are frozen
dataclasses holding read-only arrays, so a :class:`DecisionTree` can be
queried by any number of callers at once.

Besides classification the tree offers the presentation helpers used by the
command-line program: pretty printing, rule export, a flat node-list
serialization and Graphviz export.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

import numpy as np

from .exceptions import DataError


def _frozen_counts(counts) -> np.ndarray:
    a = np.array(counts, dtype=float, copy=True)
    a.flags.writeable = False
    return a


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Leaf:
    """Terminal node.

    Attributes
    ----------
    counts : ndarray of shape (n_classes,)
        Label frequencies of the training rows routed here.
    distribution : ndarray of shape (n_classes,)
        ``counts / counts.sum()``; unsmoothed, so unseen classes get 0.0.
    class_code : int
        Argmax of ``distribution``, lowest code on ties.
    """

    counts: np.ndarray
    distribution: np.ndarray = field(init=False, repr=False)
    class_code: int = field(init=False)

    def __post_init__(self):
        counts = _frozen_counts(self.counts)
        tot = counts.sum()
        if tot <= 0:
            raise ValueError("a leaf needs at least one training row")
        dist = counts / tot
        dist.flags.writeable = False
        object.__setattr__(self, "counts", counts)
        object.__setattr__(self, "distribution", dist)
        object.__setattr__(self, "class_code", int(np.argmax(dist)))

    @property
    def n_samples(self) -> int:
        return int(round(self.counts.sum()))


@dataclass(frozen=True, eq=False)
class Node:
    """Internal binary test; rows with ``x[feature_index] <= threshold`` go left."""

    feature_index: int
    threshold: float
    left: "TreeNode"
    right: "TreeNode"
    counts: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "counts", _frozen_counts(self.counts))

    @property
    def n_samples(self) -> int:
        return int(round(self.counts.sum()))


TreeNode = Union[Leaf, Node]


def _iter_nodes(node: TreeNode) -> Iterator[TreeNode]:
    stack = [node]
    while stack:
        cur = stack.pop()
        yield cur
        if isinstance(cur, Node):
            stack.append(cur.right)
            stack.append(cur.left)


# -----------------------------------------------------------------------------
# Tree
# -----------------------------------------------------------------------------
class DecisionTree:
    """A trained univariate decision tree.

    Parameters
    ----------
    root : Leaf or Node
        Root of the tree.  The tree owns it; nodes are never shared.
    n_features : int
        Length of the feature vectors the tree accepts.
    feature_names : sequence of str, optional
        Names used by the export helpers.
    classes : sequence of str, optional
        Label vocabulary used by the export helpers; position is the code.
    """

    def __init__(self, root: TreeNode, n_features: int, *, feature_names=None, classes=None):
        self._root = root
        self.n_features = int(n_features)
        self.feature_names = tuple(feature_names) if feature_names is not None else None
        self.classes = tuple(classes) if classes is not None else None

    @property
    def root(self) -> TreeNode:
        return self._root

    @property
    def n_classes(self) -> int:
        return int(self._root.counts.shape[0])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def _as_vector(self, x) -> np.ndarray:
        try:
            v = np.asarray(x, dtype=float).ravel()
        except (TypeError, ValueError) as exc:
            raise DataError(f"feature vector must be numeric: {exc}") from exc
        if v.shape[0] != self.n_features:
            raise DataError(f"expected {self.n_features} feature values, got {v.shape[0]}")
        if not np.isfinite(v).all():
            raise DataError("feature vector contains missing or non-finite values")
        return v

    def leaf_for(self, x) -> Leaf:
        """Return the leaf reached by feature vector ``x``."""
        v = self._as_vector(x)
        node = self._root
        while isinstance(node, Node):
            node = node.left if v[node.feature_index] <= node.threshold else node.right
        return node

    def classify(self, x) -> int:
        return self.leaf_for(x).class_code

    def distribution(self, x) -> np.ndarray:
        return self.leaf_for(x).distribution.copy()

    def classify_many(self, X) -> np.ndarray:
        return np.array([self.classify(x) for x in np.asarray(X, dtype=float)], dtype=np.intp)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def leaves(self) -> list[Leaf]:
        return [n for n in _iter_nodes(self._root) if isinstance(n, Leaf)]

    @property
    def n_leaves(self) -> int:
        return len(self.leaves())

    @property
    def n_internal(self) -> int:
        return sum(1 for n in _iter_nodes(self._root) if isinstance(n, Node))

    @property
    def depth(self) -> int:
        deepest = 0
        stack = [(self._root, 0)]
        while stack:
            node, d = stack.pop()
            if isinstance(node, Node):
                stack.append((node.left, d + 1))
                stack.append((node.right, d + 1))
            else:
                deepest = max(deepest, d)
        return deepest

    def __repr__(self) -> str:
        return (f"DecisionTree(n_internal={self.n_internal}, n_leaves={self.n_leaves}, "
                f"depth={self.depth})")

    # ------------------------------------------------------------------
    # Export helpers
    # ------------------------------------------------------------------
    def _fname(self, j: int, fn=None) -> str:
        fn = fn if fn is not None else self.feature_names
        return fn[j] if (fn is not None and 0 <= j < len(fn)) else f"X[{j}]"

    def _cname(self, code: int, cn=None) -> str:
        cn = cn if cn is not None else self.classes
        return str(cn[code]) if cn is not None else str(code)

    def to_node_list(self) -> list[dict]:
        """Flat, pre-order serialization of the tree.

        Each entry has ``id``, ``n_samples`` and ``counts``; internal nodes
        add ``feature_index``, ``threshold``, ``left`` and ``right`` (child
        ids), leaves add ``class_code`` and ``distribution``.
        """
        out: list[dict] = []
        # (node, parent entry, key in the parent that receives this node's id)
        stack: list[tuple] = [(self._root, None, None)]
        while stack:
            node, parent, key = stack.pop()
            nid = len(out)
            entry = {"id": nid, "n_samples": node.n_samples, "counts": node.counts.tolist()}
            out.append(entry)
            if parent is not None:
                parent[key] = nid
            if isinstance(node, Leaf):
                entry["leaf"] = True
                entry["class_code"] = node.class_code
                entry["distribution"] = node.distribution.tolist()
            else:
                entry["leaf"] = False
                entry["feature_index"] = node.feature_index
                entry["threshold"] = node.threshold
                entry["left"] = entry["right"] = None
                stack.append((node.right, entry, "right"))
                stack.append((node.left, entry, "left"))
        return out

    def export_text(self, feature_names=None, class_names=None) -> str:
        lines: list[str] = []
        # entries are either a ready line (str) or a (node, indent) pair to expand
        stack: list = [(self._root, "")]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                lines.append(item)
                continue
            node, indent = item
            if isinstance(node, Leaf):
                lines.append(f"{indent}{self._cname(node.class_code, class_names)} "
                             f"({node.n_samples}/{node.n_samples - int(round(node.counts.max()))})")
                continue
            name = self._fname(node.feature_index, feature_names)
            stack.append((node.right, indent + "|   "))
            stack.append(f"{indent}{name} > {node.threshold:.4f}")
            stack.append((node.left, indent + "|   "))
            stack.append(f"{indent}{name} <= {node.threshold:.4f}")
        return "\n".join(lines)

    def print_tree(self, feature_names=None, class_names=None) -> None:
        """Pretty-print the tree to ``stdout`` as nested threshold tests."""
        print(self.export_text(feature_names, class_names))

    def export_rules(self, *, feature_names=None, class_names=None) -> list[str]:
        """One ``<antecedent> => <class>`` string per leaf, left to right."""
        rules: list[str] = []
        stack = [(self._root, [])]
        while stack:
            node, parts = stack.pop()
            if isinstance(node, Leaf):
                body = " AND ".join(parts) if parts else "<root>"
                rules.append(f"{body} => {self._cname(node.class_code, class_names)}")
                continue
            name = self._fname(node.feature_index, feature_names)
            stack.append((node.right, parts + [f"{name} > {node.threshold:.4f}"]))
            stack.append((node.left, parts + [f"{name} <= {node.threshold:.4f}"]))
        return rules

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        class_names=None, format: str = "png") -> str:
        """
        Export the tree in Graphviz format.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file.  If None, the DOT source is returned
            and nothing is written.
        feature_names, class_names : list[str], optional
            Override the names stored on the tree.
        format : str, default="png"
            Graphviz output format.  ``'dot'`` writes the DOT source directly
            without calling the external ``dot`` binary.

        Returns
        -------
        str
            Path of the written file, or the DOT source if ``filename`` is None.
        """
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, feature_names, class_names)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except graphviz.ExecutableNotFound:
            # no dot binary installed: keep the source instead
            path = f"{filename}.dot"
            dot.save(path)
            return path

    def _add_graph_nodes(self, dot, fn, cn):
        # node names are the pre-order ids of to_node_list()
        for entry in self.to_node_list():
            name = str(entry["id"])
            if entry["leaf"]:
                dot.node(name, f"{self._cname(entry['class_code'], cn)}\nn={entry['n_samples']}",
                         shape="box", style="filled", color="lightgrey")
                continue
            dot.node(name, self._fname(entry["feature_index"], fn),
                     shape="ellipse", style="filled", color="lightblue")
            dot.edge(name, str(entry["left"]), label=f"<= {entry['threshold']:.4f}")
            dot.edge(name, str(entry["right"]), label=f"> {entry['threshold']:.4f}")
