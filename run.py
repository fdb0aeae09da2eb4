# run.py
import argparse
import logging
import subprocess
import sys
from pathlib import Path

import numpy as np

from knnlab.preprocessing import (
    SCALERS,
    encode_features,
    load_table,
    train_val_test_split,
    trim_outliers,
)
from knnlab.utils import LOG_LEVELS, setup_logging

logger = logging.getLogger("knnlab.run")


def prepare_splits(args):
    """Load, encode, split and scale the CSV; returns the path of the saved .npz."""
    df = load_table(args.csv, args.target)
    if args.trim_outliers:
        cols = list(df.select_dtypes(include="number").columns)
        if args.task == "classification" and args.target in cols:
            cols.remove(args.target)
        df = trim_outliers(df, cols)

    if args.task == "regression":
        y = df[args.target].to_numpy(dtype=float)
    else:
        y = df[args.target].astype(str).to_numpy()
    X_df, dummy_columns = encode_features(df.drop(columns=[args.target]), one_hot=not args.no_one_hot)
    columns = list(X_df.columns)
    X = X_df.to_numpy(dtype=float)
    logger.info(f"{len(X)} rows, {len(columns)} features ({len(dummy_columns)} one-hot)")

    # ---- One reproducible split
    X_train, X_val, X_test, y_train, y_val, y_test = train_val_test_split(
        X, y, val_size=args.val_size, test_size=args.test_size, random_state=args.seed
    )

    # ---- Scale with train stats only
    fit_scaler, apply_scaler = SCALERS[args.scaling]
    center, scale = fit_scaler(X_train)
    X_train = apply_scaler(X_train, center, scale)
    X_val   = apply_scaler(X_val,   center, scale)
    X_test  = apply_scaler(X_test,  center, scale)

    # ---- Persist scaled splits for all runners (scratch & sklearn)
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    splits_path = outdir / "splits_standardized.npz"
    np.savez(
        splits_path,
        X_train=X_train, y_train=y_train,
        X_val=X_val,     y_val=y_val,
        X_test=X_test,   y_test=y_test,
        center=center, scale=scale,
        columns=np.array(columns, dtype=str),
        dummy_columns=np.array(dummy_columns, dtype=str),
        task=np.array(args.task), scaling=np.array(args.scaling),
    )
    logger.info(f"Saved splits → {splits_path}")
    return splits_path


def runner_cmd(module, splits_path, args):
    cmd = [
        sys.executable, "-m", module,
        "--splits", str(splits_path),
        "--mode", args.mode,
        "--seed", str(args.seed),
        "--log-level", args.log_level,
    ]
    if args.mode == "fixed":
        cmd += ["--k", str(args.k)]
    else:
        cmd += ["--k-grid", args.k_grid]
    return cmd


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--csv", required=True, help="Path to the input CSV (e.g. housing.csv)")
    ap.add_argument("--mode", required=True, choices=["fixed", "grid"])
    ap.add_argument("--k", type=int, help="k for mode=fixed")
    ap.add_argument("--k-grid", type=str, help="comma-separated ks for mode=grid (e.g., 1,3,5,7)")
    ap.add_argument("--task", choices=["regression", "classification"], default="regression")
    ap.add_argument("--target", type=str, default="median_house_value")
    ap.add_argument("--scaling", choices=sorted(SCALERS), default="zscore")
    ap.add_argument("--trim-outliers", action="store_true", help="Drop rows outside 1.5*IQR on numeric columns")
    ap.add_argument("--no-one-hot", action="store_true", help="Drop non-numeric features instead of one-hot encoding")
    ap.add_argument("--val-size", type=float, default=0.15)
    ap.add_argument("--test-size", type=float, default=0.15)
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--outdir", type=str, default="data/processed")
    ap.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="INFO")
    args = ap.parse_args()
    setup_logging(args.log_level)

    # Basic arg checks
    if args.mode == "fixed" and args.k is None:
        ap.error("--k is required when --mode fixed")
    if args.mode == "grid" and not args.k_grid:
        ap.error("--k-grid is required when --mode grid (e.g., 1,3,5,7,9)")

    splits_path = prepare_splits(args)

    print("\n[run.py] Running my KNN model...")
    ret = subprocess.call(runner_cmd("knnlab.run_knn", splits_path, args))
    if ret != 0:
        sys.exit(ret)

    # ---- Call sklearn baseline with the SAME splits/args
    print("\n[run.py] Running sklearn KNN baseline...")
    ret2 = subprocess.call(runner_cmd("knnlab.framework_knn", splits_path, args))
    if ret2 != 0:
        sys.exit(ret2)


if __name__ == "__main__":
    main()
