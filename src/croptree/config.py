"""Training parameters and constants for the crop recommendation domain."""
from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral, Real

from .exceptions import ConfigurationError

# Defaults mirror J48's "-C 0.25 -M 2"
DEFAULT_CONFIDENCE_FACTOR = 0.25
DEFAULT_MIN_INSTANCES_PER_LEAF = 2
DEFAULT_FOLDS = 5
DEFAULT_SEED = 1

# A subtree is collapsed when the leaf estimate exceeds it by at most this much
PRUNING_TOLERANCE = 0.1

CROP_FEATURES = ("N", "P", "K", "temperature", "humidity", "ph", "rainfall")

# Plausible physical ranges, inclusive on both ends
FEATURE_BOUNDS = {
    "N": (0.0, 200.0),
    "P": (0.0, 150.0),
    "K": (0.0, 100.0),
    "temperature": (0.0, 50.0),
    "humidity": (0.0, 100.0),
    "ph": (0.0, 14.0),
    "rainfall": (0.0, 500.0),
}

FEATURE_PROMPTS = {
    "N": ("Nitrogen content (N) in mg/kg", "typical range: 60-100"),
    "P": ("Phosphorus content (P) in mg/kg", "typical range: 35-60"),
    "K": ("Potassium content (K) in mg/kg", "typical range: 15-45"),
    "temperature": ("Average temperature in °C", "typical range: 15-30"),
    "humidity": ("Average humidity in %", "typical range: 50-85"),
    "ph": ("Soil pH value", "typical range: 5.0-8.0"),
    "rainfall": ("Rainfall in mm", "typical range: 60-300"),
}


@dataclass(frozen=True)
class TreeConfig:
    """Parameters controlling tree growth and pruning.

    Parameters
    ----------
    confidence_factor : float, default=0.25
        Pruning confidence in the open interval (0, 1). Lower values inflate
        the pessimistic error of small leaves more and therefore prune more.
    min_instances_per_leaf : int, default=2
        Minimum number of training rows routed to every leaf.
    """

    confidence_factor: float = DEFAULT_CONFIDENCE_FACTOR
    min_instances_per_leaf: int = DEFAULT_MIN_INSTANCES_PER_LEAF

    def validate(self) -> TreeConfig:
        cf = self.confidence_factor
        if isinstance(cf, bool) or not isinstance(cf, Real) or not math.isfinite(cf):
            raise ConfigurationError("confidence_factor", cf, "must be a finite number")
        if not 0.0 < cf < 1.0:
            raise ConfigurationError("confidence_factor", cf, "must lie in the open interval (0, 1)")
        m = self.min_instances_per_leaf
        if isinstance(m, bool) or not isinstance(m, Integral):
            raise ConfigurationError("min_instances_per_leaf", m, "must be an integer")
        if m < 1:
            raise ConfigurationError("min_instances_per_leaf", m, "must be at least 1")
        return self


def validate_folds(k, n_rows: int) -> int:
    """Check a fold count against the number of available rows."""
    if isinstance(k, bool) or not isinstance(k, Integral):
        raise ConfigurationError("k", k, "must be an integer")
    if k < 2:
        raise ConfigurationError("k", k, "at least two folds are required")
    if k > n_rows:
        raise ConfigurationError("k", k, f"exceeds the number of rows ({n_rows})")
    return int(k)
