import numpy as np
import pandas as pd
import pytest
from croptree import DataError, Dataset, PredictionService, TreeBuilder
from croptree.cli import main, prompt_value, run_interactive, validate_feature_vector
from croptree.config import CROP_FEATURES


def _write_crop_csv(path, n=30):
    rng = np.random.default_rng(5)
    rows = []
    for crop, rain in (("rice", (200, 250)), ("maize", (60, 100))):
        for _ in range(n):
            rows.append({
                "N": rng.uniform(60, 90), "P": rng.uniform(35, 60), "K": rng.uniform(15, 45),
                "temperature": rng.uniform(18, 28), "humidity": rng.uniform(60, 85),
                "ph": rng.uniform(5.5, 7.5), "rainfall": rng.uniform(*rain), "label": crop,
            })
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


def _scripted(answers):
    it = iter(answers)
    return lambda prompt: next(it)


def test_validate_feature_vector():
    v = validate_feature_vector([90, 42, 43, 20.8, 82.0, 6.5, 202.9])
    assert v.shape == (7,)
    with pytest.raises(DataError, match="ph"):
        validate_feature_vector([90, 42, 43, 20.8, 82.0, 15.0, 202.9])
    with pytest.raises(DataError):
        validate_feature_vector([90, 42])
    # unknown features are not range checked
    assert validate_feature_vector([-5.0], ["f0"]).tolist() == [-5.0]


def test_prompt_value_reprompts_until_valid():
    messages = []
    value = prompt_value("N", _scripted(["abc", "300", "75"]), messages.append)
    assert value == 75.0
    assert messages[0] == "Invalid input. Please enter a numeric value."
    assert "outside the valid range" in messages[1]


def test_run_interactive_single_prediction():
    ds = Dataset([[10.0] + [1.0] * 6, [20.0] + [1.0] * 6, [150.0] + [1.0] * 6,
                  [160.0] + [1.0] * 6], ["jute", "jute", "rice", "rice"])
    service = PredictionService(TreeBuilder(0.25, 1).build(ds.view()), ds.classes)
    messages = []
    answers = ["155", "40", "40", "25", "80", "6.5", "200", "n"]
    made = run_interactive(service, CROP_FEATURES, _scripted(answers), messages.append)
    assert made == 1
    assert any("Recommended Crop: RICE" in m for m in messages)
    assert messages[-1] == "Thank you for using the Crop Recommendation System!"


def test_run_interactive_stops_on_eof():
    ds = Dataset([[1.0] * 7, [2.0] * 7], ["rice", "rice"])
    service = PredictionService(TreeBuilder().build(ds.view()), ds.classes)

    def _eof(prompt):
        raise EOFError

    assert run_interactive(service, CROP_FEATURES, _eof, lambda m: None) == 0


def test_main_end_to_end(tmp_path, capsys):
    path = _write_crop_csv(tmp_path / "crops.csv")
    assert main([str(path), "--folds", "5", "--seed", "1"]) == 0
    out = capsys.readouterr().out
    assert "Dataset loaded successfully from:" in out
    assert "Number of instances: 60" in out
    assert "Number of attributes: 8" in out
    assert "Classes: rice, maize" in out
    assert "Avg\t" in out
    assert "rainfall <=" in out


def test_main_reports_errors(tmp_path):
    assert main([str(tmp_path / "missing.csv")]) == 1
    path = _write_crop_csv(tmp_path / "crops.csv", n=2)
    assert main([str(path), "--folds", "10"]) == 1
    assert main([str(path), "--confidence-factor", "2"]) == 1


def test_main_reports_unparseable_csv(tmp_path):
    path = tmp_path / "ragged.csv"
    path.write_text("N,P,label\n1,2,rice\n3,4,5,maize\n")
    assert main([str(path)]) == 1
