import numpy as np
import pytest

from knnlab.errors import InvalidKError
from knnlab.model_selection import cross_val_loss, grid_search_k, kfold_indices


def test_kfold_indices_partition_rows():
    folds = kfold_indices(23, k=5, seed=1)
    assert len(folds) == 5
    assert sorted(np.concatenate(folds).tolist()) == list(range(23))


def test_kfold_indices_bad_fold_count():
    with pytest.raises(ValueError, match="folds"):
        kfold_indices(3, k=5)


def test_cross_val_loss_separable_classes():
    X = np.concatenate([np.arange(10), np.arange(100, 110)]).reshape(-1, 1).astype(float)
    y = np.array(["a"] * 10 + ["b"] * 10)
    tr_mean, tr_std, va_mean, va_std = cross_val_loss(X, y, 1, mode="classification", cv=5)
    assert tr_mean == 0.0
    assert va_mean == 0.0


def test_cross_val_loss_regression_k1_fits_training_exactly():
    rng = np.random.default_rng(4)
    X = rng.normal(size=(30, 2))
    y = rng.normal(size=30)
    tr_mean, tr_std, va_mean, va_std = cross_val_loss(X, y, 1, cv=3)
    assert tr_mean == 0.0
    assert va_mean > 0.0


def test_grid_search_regression_prefers_lowest_mae():
    X_train = [[0], [1], [2], [3]]
    y_train = [0.0, 0.0, 10.0, 10.0]
    best = grid_search_k(X_train, y_train, [[0.4]], [0.0], [4, 1, 2])
    assert best["scores"] == {4: 5.0, 1: 0.0, 2: 0.0}
    assert best["k"] == 1
    assert best["score"] == 0.0


def test_grid_search_classification_prefers_highest_accuracy():
    X_train = [[0], [1], [2], [10]]
    y_train = ["A", "A", "B", "B"]
    # for 1.8, k=1 and k=4 both end up on "B"; k=3 votes B, A, A
    best = grid_search_k(X_train, y_train, [[1.8]], ["A"], [1, 3, 4],
                         mode="classification")
    assert best["scores"] == {1: 0.0, 3: 1.0, 4: 0.0}
    assert best["k"] == 3
    assert best["score"] == 1.0


def test_grid_search_rejects_bad_grids():
    with pytest.raises(InvalidKError, match="empty"):
        grid_search_k([[0]], [1.0], [[0]], [1.0], [])
    with pytest.raises(InvalidKError):
        grid_search_k([[0], [1]], [1.0, 2.0], [[0]], [1.0], [1, 3])
