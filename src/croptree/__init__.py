# croptree/__init__.py
"""
croptree: interpretable crop recommendation with a pruned decision tree.

Exports:
    - Dataset, load_csv
    - TreeConfig, TreeBuilder, train_final_model
    - DecisionTree
    - CrossValidator, cross_validate
    - PredictionService, predict
    - C45Classifier
"""
from loguru import logger

from .builder import TreeBuilder, train_final_model
from .config import TreeConfig
from .dataset import Dataset, RowSubset, load_csv
from .estimator import C45Classifier
from .exceptions import ConfigurationError, CropTreeError, DataError, InvariantViolation
from .logging import PACKAGE_NAME, enable_logging
from .prediction import Prediction, PredictionService, predict
from .tree import DecisionTree, Leaf, Node
from .validation import CrossValidationReport, CrossValidator, FoldMetrics, cross_validate

logger.disable(PACKAGE_NAME)

__all__ = [
    "C45Classifier",
    "ConfigurationError",
    "CropTreeError",
    "CrossValidationReport",
    "CrossValidator",
    "DataError",
    "Dataset",
    "DecisionTree",
    "FoldMetrics",
    "InvariantViolation",
    "Leaf",
    "Node",
    "Prediction",
    "PredictionService",
    "RowSubset",
    "TreeBuilder",
    "TreeConfig",
    "cross_validate",
    "enable_logging",
    "load_csv",
    "predict",
    "train_final_model",
]
__version__ = "0.1.0"
