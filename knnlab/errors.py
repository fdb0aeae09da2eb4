# knnlab/errors.py
"""Exceptions raised by the nearest-neighbour estimator.

Every precondition failure derives from ``NearestNeighborError``, which is a
``ValueError`` so existing ``except ValueError`` handlers keep working.
"""
from sklearn import exceptions


class NearestNeighborError(ValueError):
    """Base class for invalid estimator input."""


class SchemaMismatchError(NearestNeighborError):
    """Query and reference features disagree in column count, names or order."""


class LabelCountMismatchError(NearestNeighborError):
    """Number of reference labels differs from the number of reference rows."""


class MissingValueError(NearestNeighborError):
    """NA/NaN (or an infinite feature value) found in reference features, reference labels or query features."""


class InvalidKError(NearestNeighborError):
    """k is not an integer in [1, N]."""


class NotFittedError(exceptions.NotFittedError):
    """predict() called on a wrapper before fit()."""
