# knnlab/knn.py
"""Brute-force k-nearest-neighbours regression and classification.

The "model" is the reference data itself: every call scans all reference rows
under Euclidean distance, keeps the k closest (stable on ties, so the earlier
reference row wins), and aggregates their labels with the mean (regression)
or a majority vote (classification).
"""
import logging
import numbers
from enum import Enum

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .errors import (
    InvalidKError,
    LabelCountMismatchError,
    MissingValueError,
    NearestNeighborError,
    NotFittedError,
    SchemaMismatchError,
)

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    REGRESSION = "regression"
    CLASSIFICATION = "classification"


def _as_mode(mode):
    try:
        return Mode(mode)
    except ValueError:
        choices = ", ".join(m.value for m in Mode)
        raise ValueError(f"mode must be one of {{{choices}}}, got {mode!r}") from None


def _column_names(X):
    return list(X.columns) if isinstance(X, pd.DataFrame) else None


def _as_feature_array(X, name):
    try:
        if isinstance(X, pd.DataFrame):
            return X.to_numpy(dtype=float, na_value=np.nan)
        return np.asarray(X, dtype=float)
    except (TypeError, ValueError) as exc:
        raise SchemaMismatchError(
            f"{name} must be numeric (encode categorical columns first): {exc}"
        ) from exc


def _as_label_array(y):
    if isinstance(y, (pd.Series, pd.Index)):
        return y.to_numpy()
    labels = np.asarray(y)
    if isinstance(y, np.ndarray) or labels.ndim != 1 or labels.dtype.kind not in "US":
        return labels
    # numpy coerces mixed labels such as [1, "a"] to strings; keep the originals
    values = list(y)
    native = str if labels.dtype.kind == "U" else bytes
    if all(isinstance(v, native) for v in values):
        return labels
    mixed = np.empty(len(values), dtype=object)
    mixed[:] = values
    return mixed


def _validate(reference_features, reference_labels, query_features, k, mode):
    """Check every precondition up front; returns (reference, labels, query)."""
    # 1. schema
    reference = _as_feature_array(reference_features, "reference_features")
    query = _as_feature_array(query_features, "query_features")
    if reference.ndim != 2:
        raise SchemaMismatchError(
            f"reference_features must be 2-D, got {reference.ndim}-D"
        )
    if reference.shape[1] == 0:
        raise SchemaMismatchError("reference_features has no columns")
    if query.ndim == 1 and query.size == 0:
        query = query.reshape(0, reference.shape[1])
    if query.ndim != 2:
        raise SchemaMismatchError(f"query_features must be 2-D, got {query.ndim}-D")
    if query.shape[1] != reference.shape[1]:
        raise SchemaMismatchError(
            f"query_features has {query.shape[1]} columns, "
            f"reference_features has {reference.shape[1]}"
        )
    ref_cols = _column_names(reference_features)
    query_cols = _column_names(query_features)
    if ref_cols is not None and query_cols is not None and ref_cols != query_cols:
        raise SchemaMismatchError(
            f"query_features columns {query_cols} do not match "
            f"reference_features columns {ref_cols}"
        )

    # 2. label count
    labels = _as_label_array(reference_labels)
    n_reference = reference.shape[0]
    if labels.ndim != 1:
        raise LabelCountMismatchError(
            f"reference_labels must be 1-D, got shape {labels.shape}"
        )
    if labels.shape[0] != n_reference:
        raise LabelCountMismatchError(
            f"got {labels.shape[0]} reference_labels for {n_reference} reference rows"
        )

    # 3. missing values
    for name, values in (("reference_features", reference),
                         ("reference_labels", labels),
                         ("query_features", query)):
        missing = pd.isna(values)
        if missing.any():
            first = tuple(int(i) for i in np.argwhere(missing)[0])
            raise MissingValueError(
                f"{name} has {int(missing.sum())} missing value(s), first at index {first}"
            )
    for name, values in (("reference_features", reference), ("query_features", query)):
        infinite = ~np.isfinite(values)
        if infinite.any():
            first = tuple(int(i) for i in np.argwhere(infinite)[0])
            raise MissingValueError(
                f"{name} has {int(infinite.sum())} infinite value(s), first at index {first}"
            )

    # 4. k
    if isinstance(k, (bool, np.bool_)) or not isinstance(k, (int, np.integer)):
        raise InvalidKError(f"k must be an integer, got {k!r}")
    if not 1 <= k <= n_reference:
        raise InvalidKError(f"k must be in [1, {n_reference}], got {k}")

    if mode is Mode.REGRESSION:
        if labels.dtype.kind in "USO" and not all(isinstance(v, numbers.Real) for v in labels):
            raise NearestNeighborError(
                f"regression labels must be numeric, got dtype {labels.dtype}"
            )
        labels = labels.astype(float)
        if not np.isfinite(labels).all():
            raise MissingValueError("reference_labels has infinite value(s)")
    return reference, labels, query


def euclidean_distances(query, reference):
    """Distances between every query row and every reference row, [n_query, n_reference].

    Accumulates squared differences column by column, so a given (query, reference)
    pair always yields the same float no matter how the query batch is chunked.
    """
    D2 = np.zeros((query.shape[0], reference.shape[0]))
    for j in range(reference.shape[1]):
        diff = query[:, j, np.newaxis] - reference[np.newaxis, :, j]
        D2 += diff * diff
    return np.sqrt(D2)


def nearest_indices(query, reference, k):
    """Indices of the k nearest reference rows per query row, nearest first."""
    D = euclidean_distances(query, reference)
    # stable sort keeps the original reference order among equal distances
    return np.argsort(D, axis=1, kind="stable")[:, :k]


def _mean_chunk(query, reference, labels, k):
    nn_idx = nearest_indices(query, reference, k)
    # sum in reference order so identical neighbour sets give identical means
    return np.mean(labels[np.sort(nn_idx, axis=1)], axis=1)


def _vote_chunk(query, reference, codes, k):
    """Returns, per query row, the reference index whose label wins the vote."""
    nn_idx = nearest_indices(query, reference, k)
    n_categories = int(codes.max()) + 1
    winners = np.empty(nn_idx.shape[0], dtype=np.intp)
    for i, row in enumerate(nn_idx):
        row_codes = codes[row]
        counts = np.bincount(row_codes, minlength=n_categories)
        # first neighbour (by distance) whose category has the top count
        first = np.argmax(counts[row_codes] == counts.max())
        winners[i] = row[first]
    return winners


class NearestNeighborEstimator:
    """Exact k-NN predictions for a batch of query rows.

    The estimator holds no data between calls; ``n_jobs`` and ``chunk_size``
    only control how query rows are scheduled and never change the output.
    """

    def __init__(self, n_jobs=None, chunk_size=256):
        if int(chunk_size) < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.n_jobs = n_jobs
        self.chunk_size = int(chunk_size)

    def predict(self, reference_features, reference_labels, query_features, k, mode):
        """Predict one value per query row, in query order.

        Raises SchemaMismatchError, LabelCountMismatchError, MissingValueError or
        InvalidKError (checked in that order) before any distance is computed.
        """
        mode = _as_mode(mode)
        reference, labels, query = _validate(
            reference_features, reference_labels, query_features, k, mode
        )
        n_query = query.shape[0]
        logger.debug(
            f"k-NN {mode.value}: {n_query} query rows vs "
            f"{reference.shape[0]} reference rows, {reference.shape[1]} features, k={k}"
        )

        if mode is Mode.REGRESSION:
            task, target = _mean_chunk, labels
        else:
            codes, _ = pd.factorize(labels)
            task, target = _vote_chunk, codes

        starts = range(0, n_query, self.chunk_size)
        chunks = Parallel(n_jobs=self.n_jobs, prefer="threads")(
            delayed(task)(query[s:s + self.chunk_size], reference, target, k)
            for s in starts
        )

        if mode is Mode.REGRESSION:
            return np.concatenate(chunks) if chunks else np.empty(0)
        winners = np.concatenate(chunks) if chunks else np.empty(0, dtype=np.intp)
        return labels[winners]


def predict(reference_features, reference_labels, query_features, k, mode="regression",
            n_jobs=None):
    return NearestNeighborEstimator(n_jobs=n_jobs).predict(
        reference_features, reference_labels, query_features, k, mode
    )


class _KNNBase:
    mode = None

    def __init__(self, k=5, distance="euclidean", n_jobs=None):
        if distance != "euclidean":
            raise ValueError("Only euclidean distance implemented in this simple version.")
        self.k = k
        self.distance = distance
        self.n_jobs = n_jobs
        self.X = None
        self.y = None

    def fit(self, X, y):
        self.X = X
        self.y = y
        return self

    def predict(self, X):
        if self.X is None:
            raise NotFittedError(f"{type(self).__name__} must be fitted before predict()")
        return NearestNeighborEstimator(n_jobs=self.n_jobs).predict(
            self.X, self.y, X, self.k, self.mode
        )


class KNNRegressor(_KNNBase):
    mode = Mode.REGRESSION


class KNNClassifier(_KNNBase):
    mode = Mode.CLASSIFICATION
