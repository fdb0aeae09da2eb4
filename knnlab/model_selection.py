# knnlab/model_selection.py
import logging

import numpy as np

from .errors import InvalidKError
from .knn import Mode, NearestNeighborEstimator, _as_mode
from .metrics import accuracy, mae, mse

logger = logging.getLogger(__name__)


def _loss(mode, y, yhat):
    # MSE for regression, error rate for classification
    if mode is Mode.REGRESSION:
        return mse(y, yhat)
    return 1.0 - accuracy(y, yhat)


def kfold_indices(n, k=5, seed=42):
    if not 2 <= k <= n:
        raise ValueError(f"need 2 <= folds <= n, got folds={k}, n={n}")
    rng = np.random.default_rng(seed)
    idx = np.arange(n)
    rng.shuffle(idx)
    folds = np.array_split(idx, k)
    return folds


def cross_val_loss(X, y, k, mode="regression", cv=5, seed=42, n_jobs=None):
    """Mean/std of train and validation loss over ``cv`` folds for one k."""
    mode = _as_mode(mode)
    X = np.asarray(X, dtype=float)
    y = np.asarray(y)
    estimator = NearestNeighborEstimator(n_jobs=n_jobs)
    folds = kfold_indices(len(X), k=cv, seed=seed)
    loss_tr, loss_va = [], []
    for i in range(cv):
        val_idx = folds[i]
        train_idx = np.concatenate([folds[j] for j in range(cv) if j != i])
        Xtr, ytr = X[train_idx], y[train_idx]
        Xva, yva = X[val_idx], y[val_idx]
        yhat_tr = estimator.predict(Xtr, ytr, Xtr, k, mode)
        yhat_va = estimator.predict(Xtr, ytr, Xva, k, mode)
        loss_tr.append(_loss(mode, ytr, yhat_tr))
        loss_va.append(_loss(mode, yva, yhat_va))
    return np.mean(loss_tr), np.std(loss_tr), np.mean(loss_va), np.std(loss_va)


def grid_search_k(X_train, y_train, X_val, y_val, k_grid, mode="regression", n_jobs=None):
    """
    Pick k on a holdout set.

    Regression keeps the k with the lowest validation MAE, classification the
    highest validation accuracy; the earliest k in ``k_grid`` wins ties.

    Returns:
        dict with ``k`` (best), ``score`` (its validation score) and ``scores``
        (k -> validation score, in grid order)
    """
    mode = _as_mode(mode)
    if not k_grid:
        raise InvalidKError("k_grid is empty")
    estimator = NearestNeighborEstimator(n_jobs=n_jobs)
    better = (lambda a, b: a < b) if mode is Mode.REGRESSION else (lambda a, b: a > b)
    best = {"k": None, "score": None}
    scores = {}
    for k in k_grid:
        val_pred = estimator.predict(X_train, y_train, X_val, k, mode)
        score = mae(y_val, val_pred) if mode is Mode.REGRESSION else accuracy(y_val, val_pred)
        scores[k] = score
        logger.debug(f"k={k} validation score={score}")
        if best["k"] is None or better(score, best["score"]):
            best = {"k": k, "score": score}
    best["scores"] = scores
    return best
