# knnlab/utils.py
import logging
from pathlib import Path

import numpy as np

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(log_level="INFO"):
    """
    Configure the ``knnlab`` logger with a single console handler.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper())
    logger = logging.getLogger("knnlab")
    logger.setLevel(level)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    # Avoid duplicate handlers when a runner is invoked twice in one process
    if not logger.handlers:
        logger.addHandler(handler)
    else:
        for existing in logger.handlers:
            existing.setLevel(level)

    return logger


def parse_grid(grid_str):
    return [int(x) for x in grid_str.split(",") if x.strip()]


def project_root():
    # knnlab/ -> project root
    return Path(__file__).resolve().parents[1]


def results_dir(path=None):
    d = Path(path) if path else project_root() / "results"
    d.mkdir(parents=True, exist_ok=True)
    return d


def load_splits(path):
    """Read the standardized-splits ``.npz`` written by ``run.py``."""
    with np.load(path, allow_pickle=False) as data:
        splits = {key: data[key] for key in data.files}
    n_features = splits["X_train"].shape[1]
    splits["task"] = str(splits["task"]) if "task" in splits else "regression"
    splits["scaling"] = str(splits["scaling"]) if "scaling" in splits else "zscore"
    if "columns" in splits:
        splits["columns"] = [str(c) for c in splits["columns"]]
    else:
        splits["columns"] = [f"x{i}" for i in range(n_features)]
    splits["dummy_columns"] = [str(c) for c in splits.get("dummy_columns", [])]
    # older artifacts carried the z-score parameters as mu/sigma
    if "center" not in splits and "mu" in splits:
        splits["center"], splits["scale"] = splits["mu"], splits["sigma"]
    return splits
