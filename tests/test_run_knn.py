import pandas as pd
import pytest

from knnlab import framework_knn, run_knn
from knnlab.utils import load_splits, parse_grid


def test_parse_grid():
    assert parse_grid("1, 3,5,") == [1, 3, 5]


def test_load_splits_reads_state(splits_npz):
    splits = load_splits(splits_npz("classification"))
    assert splits["task"] == "classification"
    assert splits["columns"] == ["a", "b"]
    assert splits["dummy_columns"] == []
    assert splits["X_train"].shape == (40, 2)


def test_fixed_regression_report(splits_npz, tmp_path, capsys):
    run_knn.main(["--splits", str(splits_npz()), "--mode", "fixed", "--k", "3",
                  "--results-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "k= 3 | val MAE=" in out
    assert "Test RMSE" in out
    assert "Test R^2" in out


def test_grid_classification_saves_curve(splits_npz, tmp_path, capsys):
    run_knn.main(["--splits", str(splits_npz("classification")), "--mode", "grid",
                  "--k-grid", "1,3,5", "--cv", "3", "--results-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "Best k:" in out
    assert "Test accuracy" in out
    assert (tmp_path / "validationCurve_myKNN_grid.png").exists()


def test_predict_writes_csv(splits_npz, feature_csv, tmp_path):
    run_knn.main(["--splits", str(splits_npz()), "--mode", "predict", "--k", "1",
                  "--predict-csv", str(feature_csv), "--results-dir", str(tmp_path)])
    preds = pd.read_csv(tmp_path / "predictions_myKNN.csv")
    assert list(preds.columns) == ["prediction"]
    assert len(preds) == 3


def test_predict_rejects_mismatched_columns(splits_npz, tmp_path):
    bad = tmp_path / "bad.csv"
    pd.DataFrame({"a": [0.0], "c": [1.0]}).to_csv(bad, index=False)
    with pytest.raises(SystemExit) as exc:
        run_knn.main(["--splits", str(splits_npz()), "--mode", "predict", "--k", "1",
                      "--predict-csv", str(bad), "--results-dir", str(tmp_path)])
    assert exc.value.code == 1
    assert not (tmp_path / "predictions_myKNN.csv").exists()


def test_k_out_of_range_exits(splits_npz, tmp_path):
    with pytest.raises(SystemExit) as exc:
        run_knn.main(["--splits", str(splits_npz()), "--mode", "fixed", "--k", "500",
                      "--results-dir", str(tmp_path)])
    assert exc.value.code == 1


def test_missing_k_is_a_usage_error(splits_npz):
    with pytest.raises(SystemExit) as exc:
        run_knn.main(["--splits", str(splits_npz()), "--mode", "fixed"])
    assert exc.value.code == 2


def test_framework_grid_regression(splits_npz, tmp_path, capsys):
    framework_knn.main(["--splits", str(splits_npz()), "--mode", "grid", "--k-grid", "1,3",
                        "--cv", "3", "--n-jobs", "1", "--results-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "[Sklearn] Grid-search results" in out
    assert (tmp_path / "validationCurve_withFramework_gridk.png").exists()


def test_framework_fixed_classification(splits_npz, tmp_path, capsys):
    framework_knn.main(["--splits", str(splits_npz("classification")), "--mode", "fixed",
                        "--k", "1", "--cv", "3", "--n-jobs", "1", "--results-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "Test accuracy" in out
    assert (tmp_path / "learningCurve_withFramework_fixedk.png").exists()


def test_framework_k_out_of_range_exits(splits_npz, tmp_path):
    with pytest.raises(SystemExit) as exc:
        framework_knn.main(["--splits", str(splits_npz()), "--mode", "fixed", "--k", "500",
                            "--n-jobs", "1", "--results-dir", str(tmp_path)])
    assert exc.value.code == 1
    assert not (tmp_path / "learningCurve_withFramework_fixedk.png").exists()


def test_framework_grid_rejects_k_zero(splits_npz, tmp_path):
    with pytest.raises(SystemExit) as exc:
        framework_knn.main(["--splits", str(splits_npz()), "--mode", "grid", "--k-grid", "0,3",
                            "--n-jobs", "1", "--results-dir", str(tmp_path)])
    assert exc.value.code == 1


@pytest.mark.parametrize("runner", [run_knn, framework_knn])
def test_unknown_log_level_is_a_usage_error(runner, splits_npz):
    with pytest.raises(SystemExit) as exc:
        runner.main(["--splits", str(splits_npz()), "--mode", "fixed", "--k", "1",
                     "--log-level", "bogus"])
    assert exc.value.code == 2


def test_log_level_is_case_insensitive(splits_npz, tmp_path, capsys):
    run_knn.main(["--splits", str(splits_npz()), "--mode", "fixed", "--k", "3",
                  "--log-level", "debug", "--results-dir", str(tmp_path)])
    assert "k= 3 | val MAE=" in capsys.readouterr().out
