"""Answer crop recommendation queries with one trained tree."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .exceptions import DataError
from .tree import DecisionTree


@dataclass(frozen=True)
class Prediction:
    """Recommended label, its probability and the full distribution by label."""

    label: str
    confidence: float
    distribution: dict[str, float]

    def format(self) -> str:
        lines = [f"Recommended Crop: {self.label.upper()}",
                 f"Confidence: {self.confidence * 100:.4f}%",
                 "",
                 "Confidence distribution for all crops:"]
        lines += [f"  {name}: {p * 100:.4f}%" for name, p in self.distribution.items()]
        return "\n".join(lines)


class PredictionService:
    """Pairs a :class:`DecisionTree` with the label vocabulary it was trained on.

    Feature vectors are taken as they come; range policing belongs to the
    caller (see :func:`croptree.cli.validate_feature_vector`).
    """

    def __init__(self, tree: DecisionTree, classes: Sequence[str]):
        classes = tuple(str(c) for c in classes)
        if len(classes) != tree.n_classes:
            raise DataError(f"tree predicts {tree.n_classes} classes but the vocabulary "
                            f"has {len(classes)}")
        self.tree = tree
        self.classes = classes

    def predict(self, x) -> Prediction:
        leaf = self.tree.leaf_for(x)
        dist = leaf.distribution
        return Prediction(
            label=self.classes[leaf.class_code],
            confidence=float(dist[leaf.class_code]),
            distribution={c: float(p) for c, p in zip(self.classes, dist)},
        )


def predict(tree: DecisionTree, classes: Sequence[str], x) -> Prediction:
    return PredictionService(tree, classes).predict(x)
