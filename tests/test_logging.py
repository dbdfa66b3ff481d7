import numpy as np
from croptree import Dataset, enable_logging, train_final_model


def test_enable_logging_routes_records():
    ds = Dataset(np.array([[1.0], [2.0], [8.0], [9.0]]), ["a", "a", "b", "b"])
    messages = []
    with enable_logging("DEBUG", sink=messages.append):
        train_final_model(ds, 0.25, 1)
    assert any("final tree" in m for m in messages)
    assert any("built tree on 4 rows" in m for m in messages)


def test_logging_silent_after_disable():
    ds = Dataset(np.array([[1.0], [2.0]]), ["a", "b"])
    messages = []
    handle = enable_logging("INFO", sink=messages.append)
    handle.disable()
    train_final_model(ds, 0.25, 1)
    assert messages == []
