# knnlab/metrics.py
import numpy as np


def mae(y, yhat): return float(np.mean(np.abs(np.asarray(y) - np.asarray(yhat))))
def mse(y, yhat): return float(np.mean((np.asarray(y) - np.asarray(yhat))**2))
def rmse(y, yhat): return float(np.sqrt(mse(y, yhat)))


def r2(y, yhat):
    y = np.asarray(y, dtype=float)
    ss_res = np.sum((y - np.asarray(yhat, dtype=float))**2)
    ss_tot = np.sum((y - y.mean())**2)
    return float(1.0 - ss_res / ss_tot)


def accuracy(y, yhat):
    """Share of predictions equal to the true label."""
    y = np.asarray(y)
    yhat = np.asarray(yhat)
    if y.shape != yhat.shape:
        raise ValueError(f"shape mismatch: y {y.shape} vs yhat {yhat.shape}")
    if y.size == 0:
        return 0.0
    return float(np.mean(y == yhat))
