# knnlab/framework_knn.py
import argparse
import logging
import sys

import numpy as np
import matplotlib.pyplot as plt

from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor
from sklearn.model_selection import learning_curve, validation_curve, KFold, StratifiedKFold
from sklearn.dummy import DummyClassifier, DummyRegressor

from .knn import Mode
from .metrics import accuracy, mae, mse, r2, rmse
from .utils import LOG_LEVELS, load_splits, parse_grid, results_dir, setup_logging

logger = logging.getLogger("knnlab.framework_knn")

# scoring name, how to turn a sklearn score into a loss, y-axis label
SCORING = {
    Mode.REGRESSION: ("neg_mean_squared_error", lambda s: -s, "MSE"),
    Mode.CLASSIFICATION: ("accuracy", lambda s: 1.0 - s, "Tasa de error"),
}


def make_model(mode, k=5):
    if mode is Mode.REGRESSION:
        return KNeighborsRegressor(n_neighbors=k)
    return KNeighborsClassifier(n_neighbors=k)


def make_cv(mode, n_splits, seed):
    # stratification not applicable in regression
    if mode is Mode.REGRESSION:
        return KFold(n_splits=n_splits, shuffle=True, random_state=seed)
    return StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=seed)


def val_score(mode, y, yhat):
    return mae(y, yhat) if mode is Mode.REGRESSION else accuracy(y, yhat)


def print_test_report(mode, y_test, test_pred):
    if mode is Mode.REGRESSION:
        print(f"Test RMSE: {rmse(y_test, test_pred):,.2f}")
        print(f"Test MAE : {mae(y_test, test_pred):,.2f}")
        print(f"Test R^2 : {r2(y_test, test_pred):,.4f}")
    else:
        print(f"Test accuracy: {accuracy(y_test, test_pred):.4f}")


def baseline_losses(mode, X, y, cv, seed):
    """CV loss of the two dummy strategies, keyed by legend label."""
    if mode is Mode.REGRESSION:
        dummies = {"Dummy (mean)": DummyRegressor(strategy="mean"),
                   "Dummy (median)": DummyRegressor(strategy="median")}
    else:
        dummies = {"Dummy (most frequent)": DummyClassifier(strategy="most_frequent"),
                   "Dummy (uniform)": DummyClassifier(strategy="uniform", random_state=seed)}
    out = {}
    for label, dummy in dummies.items():
        scores = []
        for tr_idx, te_idx in cv.split(X, y):
            dummy.fit(X[tr_idx], y[tr_idx])
            yhat = dummy.predict(X[te_idx])
            if mode is Mode.REGRESSION:
                scores.append(mse(y[te_idx], yhat))
            else:
                scores.append(1.0 - accuracy(y[te_idx], yhat))
        out[label] = float(np.mean(scores))
    return out


def main(argv=None):
    ap = argparse.ArgumentParser(description="scikit-learn k-NN baseline on standardized splits")
    ap.add_argument("--splits", required=True, help="Path to standardized splits .npz from run.py")
    ap.add_argument("--mode", required=True, choices=["fixed", "grid"])
    ap.add_argument("--k", type=int, help="k for mode=fixed")
    ap.add_argument("--k-grid", type=str, help="comma-separated ks for mode=grid (e.g., 1,3,5,7)")
    ap.add_argument("--seed", type=int, default=42)
    ap.add_argument("--cv", type=int, default=5, help="CV folds for curves (default: 5)")
    ap.add_argument("--results-dir", type=str, help="Where plots go (default: <project>/results)")
    ap.add_argument("--n-jobs", type=int, default=-1)
    ap.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default="INFO")
    args = ap.parse_args(argv)
    setup_logging(args.log_level)

    if args.mode == "fixed" and args.k is None:
        ap.error("--k is required when --mode fixed")
    if args.mode == "grid" and not args.k_grid:
        ap.error("--k-grid is required when --mode grid")

    splits = load_splits(args.splits)
    mode = Mode(splits["task"])
    X_train = splits["X_train"]; y_train = splits["y_train"]
    X_val   = splits["X_val"];   y_val   = splits["y_val"]
    X_test  = splits["X_test"];  y_test  = splits["y_test"]
    scoring, to_loss, ylabel = SCORING[mode]
    logger.info(f"[Sklearn] task={mode.value}, {len(X_train)} train rows")

    ks = [args.k] if args.mode == "fixed" else parse_grid(args.k_grid)
    bad = [k for k in ks if not 1 <= k <= len(X_train)]
    if not ks or bad:
        logger.error(f"[Sklearn] InvalidKError: k must be in [1, {len(X_train)}], got {bad or ks}")
        sys.exit(1)

    # We'll use train+val for any CV-based curves; keep test untouched for final report
    X_tv = np.vstack([X_train, X_val])
    y_tv = np.concatenate([y_train, y_val])
    cv = make_cv(mode, args.cv, args.seed)

    if args.mode == "fixed":
        k = int(args.k)
        model = make_model(mode, k).fit(X_train, y_train)
        val_pred  = model.predict(X_val)
        test_pred = model.predict(X_test)

        print(f"k={k:>2} | val score={val_score(mode, y_val, val_pred):,.4f}")
        print("\n[Sklearn] Fixed-k results")
        print_test_report(mode, y_test, test_pred)

        # ---- Learning curve (bias/variance view) on train+val only ----
        sizes_abs, tr_scores, va_scores = learning_curve(
            estimator=make_model(mode, k),
            X=X_tv, y=y_tv,
            train_sizes=np.linspace(0.1, 1.0, 10),
            cv=cv,
            scoring=scoring,
            n_jobs=args.n_jobs,
            shuffle=True,
            random_state=args.seed
        )
        train_loss = to_loss(tr_scores)
        val_loss = to_loss(va_scores)
        train_mean, train_std = train_loss.mean(axis=1), train_loss.std(axis=1)
        val_mean,   val_std   = val_loss.mean(axis=1),   val_loss.std(axis=1)

        plt.figure()
        plt.plot(sizes_abs, train_mean, label="Entrenamiento (KNN)")
        plt.fill_between(sizes_abs, train_mean-train_std, train_mean+train_std, alpha=0.2)
        plt.plot(sizes_abs, val_mean, label="Validación (KNN)")
        plt.fill_between(sizes_abs, val_mean-val_std, val_mean+val_std, alpha=0.2)
        for label, loss in baseline_losses(mode, X_tv, y_tv, cv, args.seed).items():
            plt.axhline(y=loss, linestyle="--", label=label)

        plt.xlabel("Tamaño del conjunto de entrenamiento (observaciones)")
        plt.ylabel(ylabel)
        plt.title(f"Curva de aprendizaje - KNN (k={k})")
        plt.grid(True, alpha=0.3)
        plt.legend()
        plt.tight_layout()

        out_path = results_dir(args.results_dir) / "learningCurve_withFramework_fixedk.png"
        plt.savefig(out_path, dpi=150)
        plt.close()
        print(f"[Sklearn] Saved learning curve → {out_path}")

    else:  # mode == "grid"
        k_grid = parse_grid(args.k_grid)

        best = {"k": None, "score": None}
        for k in k_grid:
            model = make_model(mode, k).fit(X_train, y_train)
            score = val_score(mode, y_val, model.predict(X_val))
            print(f"k={k:>2} | val score={score:,.4f}")
            if best["k"] is None:
                improved = True
            elif mode is Mode.REGRESSION:
                improved = score < best["score"]
            else:
                improved = score > best["score"]
            if improved:
                best = {"k": k, "score": score}

        final = make_model(mode, best["k"]).fit(X_train, y_train)
        test_pred = final.predict(X_test)
        print(f"\nBest k: {best['k']}")
        print("[Sklearn] Grid-search results (best-k on test)")
        print_test_report(mode, y_test, test_pred)

        # ---- Validation curve (loss vs k) using CV on train+val ----
        param_range = np.array(k_grid, dtype=int)
        tr_scores, va_scores = validation_curve(
            estimator=make_model(mode),
            X=X_tv, y=y_tv,
            param_name="n_neighbors",
            param_range=param_range,
            cv=cv,
            scoring=scoring,
            n_jobs=args.n_jobs
        )
        train_loss = to_loss(tr_scores)
        val_loss = to_loss(va_scores)
        train_mean, train_std = train_loss.mean(axis=1), train_loss.std(axis=1)
        val_mean,   val_std   = val_loss.mean(axis=1),   val_loss.std(axis=1)

        plt.figure()
        plt.plot(param_range, train_mean, label="Entrenamiento")
        plt.fill_between(param_range, train_mean-train_std, train_mean+train_std, alpha=0.2)
        plt.plot(param_range, val_mean, label="Validación")
        plt.fill_between(param_range, val_mean-val_std, val_mean+val_std, alpha=0.2)

        plt.xlabel("Número de vecinos (k)")
        plt.ylabel(ylabel)
        plt.title(f"Curva de validación - KNN ({ylabel} vs k)")
        plt.grid(True, alpha=0.3)
        plt.legend()
        plt.tight_layout()

        out_path = results_dir(args.results_dir) / "validationCurve_withFramework_gridk.png"
        plt.savefig(out_path, dpi=150)
        plt.close()
        print(f"[Sklearn] Saved validation curve → {out_path}")


if __name__ == "__main__":
    main()
