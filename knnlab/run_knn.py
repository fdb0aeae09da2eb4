# knnlab/run_knn.py
import argparse
import logging
import sys

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .errors import NearestNeighborError
from .knn import KNNClassifier, KNNRegressor, Mode
from .metrics import accuracy, mae, r2, rmse
from .model_selection import cross_val_loss, grid_search_k
from .preprocessing import align_to_schema
from .utils import LOG_LEVELS, load_splits, parse_grid, results_dir, setup_logging

logger = logging.getLogger("knnlab.run_knn")

MODELS = {Mode.REGRESSION: KNNRegressor, Mode.CLASSIFICATION: KNNClassifier}


def val_score(mode, y_val, val_pred):
    return mae(y_val, val_pred) if mode is Mode.REGRESSION else accuracy(y_val, val_pred)


def val_line(mode, k, score):
    if mode is Mode.REGRESSION:
        return f"k={k:>2} | val MAE={score:,.2f}"
    return f"k={k:>2} | val accuracy={score:.4f}"


def print_test_report(mode, y_test, test_pred):
    if mode is Mode.REGRESSION:
        print(f"Test RMSE: {rmse(y_test, test_pred):,.2f}")
        print(f"Test MAE : {mae(y_test, test_pred):,.2f}")
        print(f"Test R^2 : {r2(y_test, test_pred):,.4f}")
    else:
        print(f"Test accuracy: {accuracy(y_test, test_pred):.4f}")


def build_parser():
    ap = argparse.ArgumentParser(description="From-scratch k-NN on standardized splits")
    ap.add_argument("--splits", required=True, help="Path to standardized splits .npz from run.py")
    ap.add_argument("--mode", required=True, choices=["fixed", "grid", "predict"])
    ap.add_argument("--k", type=int, help="k for mode=fixed/predict")
    ap.add_argument("--k-grid", type=str, help="comma-separated ks for mode=grid (e.g., 1,3,5,7)")
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--cv", type=int, default=5)
    ap.add_argument("--predict-csv", type=str, help="Feature-only CSV for predictions (predict mode)")
    ap.add_argument("--results-dir", type=str, help="Where plots/predictions go (default: <project>/results)")
    ap.add_argument("--n-jobs", type=int, default=None, help="Parallel workers for the neighbour search")
    ap.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="INFO")
    return ap


def run_predict(args, splits, mode):
    columns = splits["columns"]
    reference = pd.DataFrame(splits["X_train"], columns=columns)
    df_pred = pd.read_csv(args.predict_csv)
    X_new = align_to_schema(df_pred, columns, splits["dummy_columns"])
    # on a column mismatch the unscaled frame reaches predict(), which rejects it
    if list(X_new.columns) == columns:
        X_new = (X_new - splits["center"]) / splits["scale"]

    model = MODELS[mode](k=args.k, n_jobs=args.n_jobs).fit(reference, splits["y_train"])
    y_hat = model.predict(X_new)

    out = results_dir(args.results_dir) / "predictions_myKNN.csv"
    pd.DataFrame({"prediction": y_hat}).to_csv(out, index=False)
    print(f"[My Model] Saved predictions → {out}")
    return out


def run_fixed(args, splits, mode):
    k = args.k
    model = MODELS[mode](k=k, n_jobs=args.n_jobs).fit(splits["X_train"], splits["y_train"])
    val_pred  = model.predict(splits["X_val"])
    test_pred = model.predict(splits["X_test"])

    print(val_line(mode, k, val_score(mode, splits["y_val"], val_pred)))
    print("\n[My Model] Fixed-k results")
    print_test_report(mode, splits["y_test"], test_pred)


def run_grid(args, splits, mode):
    X_train, y_train = splits["X_train"], splits["y_train"]
    X_val,   y_val   = splits["X_val"],   splits["y_val"]
    k_grid = parse_grid(args.k_grid)

    best = grid_search_k(X_train, y_train, X_val, y_val, k_grid, mode=mode, n_jobs=args.n_jobs)
    for k, score in best["scores"].items():
        print(val_line(mode, k, score))

    final = MODELS[mode](k=best["k"], n_jobs=args.n_jobs).fit(X_train, y_train)
    test_pred = final.predict(splits["X_test"])
    print(f"\nBest k: {best['k']}")
    print("[My Model] Grid-search results (best-k on test)")
    print_test_report(mode, splits["y_test"], test_pred)

    # ---- Validation curve on train+val ----
    X_tv = np.vstack([X_train, X_val])
    y_tv = np.concatenate([y_train, y_val])
    tr_mean, tr_std, va_mean, va_std = [], [], [], []
    for k in k_grid:
        m_tr, s_tr, m_va, s_va = cross_val_loss(X_tv, y_tv, k, mode=mode, cv=args.cv,
                                                seed=args.seed, n_jobs=args.n_jobs)
        tr_mean.append(m_tr); tr_std.append(s_tr)
        va_mean.append(m_va); va_std.append(s_va)
    tr_mean, tr_std = np.array(tr_mean), np.array(tr_std)
    va_mean, va_std = np.array(va_mean), np.array(va_std)

    ylabel = "MSE" if mode is Mode.REGRESSION else "Tasa de error"
    plt.figure()
    plt.plot(k_grid, tr_mean, label="Entrenamiento (MyKNN)")
    plt.fill_between(k_grid, tr_mean-tr_std, tr_mean+tr_std, alpha=0.2)
    plt.plot(k_grid, va_mean, label="Validación (MyKNN)")
    plt.fill_between(k_grid, va_mean-va_std, va_mean+va_std, alpha=0.2)
    plt.xlabel("Número de vecinos (k)")
    plt.ylabel(ylabel)
    plt.title(f"Curva de validación - MyKNN ({mode.value})")
    plt.grid(True, alpha=0.3)
    plt.legend()
    out_path = results_dir(args.results_dir) / "validationCurve_myKNN_grid.png"
    plt.tight_layout(); plt.savefig(out_path, dpi=150); plt.close()
    print(f"[My Model] Saved validation curve → {out_path}")
    return best


def main(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)
    setup_logging(args.log_level)

    if args.mode in ("fixed", "predict") and args.k is None:
        ap.error(f"--k is required for --mode {args.mode}")
    if args.mode == "grid" and not args.k_grid:
        ap.error("--k-grid is required when --mode grid")
    if args.mode == "predict" and not args.predict_csv:
        ap.error("--predict-csv is required for --mode predict")

    splits = load_splits(args.splits)
    mode = Mode(splits["task"])
    logger.info(f"Loaded splits from {args.splits} (task={mode.value}, "
                f"{len(splits['X_train'])} train rows, {len(splits['columns'])} features)")

    try:
        if args.mode == "predict":
            run_predict(args, splits, mode)
        elif args.mode == "fixed":
            run_fixed(args, splits, mode)
        else:
            run_grid(args, splits, mode)
    except NearestNeighborError as exc:
        logger.error(f"[My Model] {type(exc).__name__}: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
