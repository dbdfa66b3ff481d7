"""Exceptions raised by croptree.

- ConfigurationError: bad training or cross-validation parameters.
- DataError: the data handed to the engine cannot be used.
- InvariantViolation: an internal precondition was broken (a bug in the caller).

ConfigurationError and DataError subclass ValueError so that scikit-learn style
callers that catch ValueError keep working.
"""
from __future__ import annotations


class CropTreeError(Exception):
    """Base class for every error raised by croptree."""


class ConfigurationError(CropTreeError, ValueError):
    """Raised when a parameter is outside its valid range.

    Attributes
    ----------
    parameter : str
        Name of the offending parameter.
    value : object
        The rejected value.
    """

    def __init__(self, parameter: str, value, reason: str):
        super().__init__(f"invalid {parameter}={value!r}: {reason}")
        self.parameter = parameter
        self.value = value


class DataError(CropTreeError, ValueError):
    """Raised for empty datasets, ragged rows, non-numeric values or bad inputs."""


class InvariantViolation(CropTreeError, RuntimeError):
    """Raised when the tree builder receives a subset it must never see."""
