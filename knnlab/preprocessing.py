# knnlab/preprocessing.py
"""Data preparation ahead of the estimator: cleaning, encoding, splitting, scaling.

Both scalers return a ``(center, scale)`` pair applied as ``(X - center) / scale``,
so the pair can be stored once and reused for any later batch.
"""
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def load_table(path, target_col):
    df = pd.read_csv(path)
    n_raw = len(df)
    df = df.dropna()
    if n_raw != len(df):
        logger.info(f"Dropped {n_raw - len(df)} of {n_raw} rows with missing values")
    if target_col not in df.columns:
        raise KeyError(f"target column {target_col!r} not found in {path}")
    return df


def encode_features(df, one_hot=True):
    """
    Turn a feature frame into float columns.

    Numeric columns pass through; with ``one_hot`` every other column is expanded
    with ``pd.get_dummies``, otherwise non-numeric columns are dropped.

    Returns:
        (encoded DataFrame, list of dummy column names)
    """
    numeric = df.select_dtypes(include="number")
    categorical = [c for c in df.columns if c not in numeric.columns]
    if not one_hot or not categorical:
        if categorical:
            logger.info(f"Ignoring non-numeric columns: {categorical}")
        return numeric.astype(float), []
    encoded = pd.get_dummies(df, columns=categorical, dtype=float)
    dummy_columns = [c for c in encoded.columns if c not in numeric.columns]
    return encoded.astype(float), dummy_columns


def align_to_schema(df, columns, dummy_columns):
    """
    Encode new data and line its columns up with the training-time schema.

    Dummy columns missing from ``df`` (categories absent in this batch) are added
    as 0 and dummy columns never seen in training are dropped. A missing numeric
    column is left missing, so the estimator rejects the batch.
    """
    encoded, new_dummies = encode_features(df, one_hot=True)
    for col in dummy_columns:
        if col not in encoded.columns:
            encoded[col] = 0.0
    unseen = [c for c in new_dummies if c not in columns]
    if unseen:
        logger.warning(f"Dropping categories unseen at training time: {unseen}")
        encoded = encoded.drop(columns=unseen)
    known = [c for c in columns if c in encoded.columns]
    others = [c for c in encoded.columns if c not in columns]
    return encoded[known + others]


def trim_outliers(df, columns, factor=1.5):
    """Keep rows inside [Q1 - factor*IQR, Q3 + factor*IQR] for every column given."""
    keep = pd.Series(True, index=df.index)
    for col in columns:
        q1, q3 = df[col].quantile([0.25, 0.75])
        iqr = q3 - q1
        keep &= df[col].between(q1 - factor * iqr, q3 + factor * iqr)
    logger.info(f"Outlier trimming kept {int(keep.sum())} of {len(df)} rows")
    return df[keep]


def train_val_test_split(X, y, val_size=0.15, test_size=0.15, random_state=42):
    rng = np.random.default_rng(random_state)
    n = len(X)
    idx = np.arange(n)
    rng.shuffle(idx)
    X, y = X[idx], y[idx]

    n_test = int(test_size * n)
    n_val  = int(val_size * n)
    n_train = n - n_val - n_test
    if n_train < 1:
        raise ValueError(f"val_size + test_size leave no training rows (n={n})")

    X_train, y_train = X[:n_train], y[:n_train]
    X_val,   y_val   = X[n_train:n_train+n_val], y[n_train:n_train+n_val]
    X_test,  y_test  = X[n_train+n_val:], y[n_train+n_val:]
    return X_train, X_val, X_test, y_train, y_val, y_test


def fit_standardizer(X_train):
    mu = X_train.mean(axis=0)
    sigma = X_train.std(axis=0, ddof=0)
    sigma[sigma == 0.0] = 1.0
    return mu, sigma


def apply_standardizer(X, mu, sigma):
    return (X - mu) / sigma


def fit_minmax(X_train):
    lo = X_train.min(axis=0)
    span = X_train.max(axis=0) - lo
    span[span == 0.0] = 1.0
    return lo, span


def apply_minmax(X, lo, span):
    return (X - lo) / span


# name -> (fit, apply)
SCALERS = {
    "zscore": (fit_standardizer, apply_standardizer),
    "minmax": (fit_minmax, apply_minmax),
}
