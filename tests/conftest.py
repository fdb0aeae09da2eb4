import logging

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def splits_npz(tmp_path):
    """Write a small standardized-splits artifact the way run.py does."""
    def _write(task="regression"):
        rng = np.random.default_rng(0)
        X = rng.normal(size=(60, 2))
        if task == "regression":
            y = 3.0 * X[:, 0] - X[:, 1]
        else:
            y = np.where(X[:, 0] > 0, "pos", "neg")
        path = tmp_path / f"splits_{task}.npz"
        np.savez(
            path,
            X_train=X[:40], y_train=y[:40],
            X_val=X[40:50], y_val=y[40:50],
            X_test=X[50:],  y_test=y[50:],
            center=np.zeros(2), scale=np.ones(2),
            columns=np.array(["a", "b"]),
            dummy_columns=np.array([], dtype=str),
            task=np.array(task), scaling=np.array("zscore"),
        )
        return path
    return _write


@pytest.fixture
def feature_csv(tmp_path):
    path = tmp_path / "new.csv"
    pd.DataFrame({"a": [0.0, 1.5, -2.0], "b": [0.0, 0.5, 1.0]}).to_csv(path, index=False)
    return path


@pytest.fixture(autouse=True)
def reset_knnlab_logger():
    yield
    logger = logging.getLogger("knnlab")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
