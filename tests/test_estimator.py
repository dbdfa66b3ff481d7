import numpy as np
import pytest
from sklearn.base import clone
from sklearn.model_selection import cross_val_score
from croptree import C45Classifier


def _two_clusters(n=20):
    X = np.array([[i, 0.5 * i] for i in range(n)] + [[100 + i, 3.0] for i in range(n)], dtype=float)
    y = np.array(["maize"] * n + ["rice"] * n)
    return X, y


def test_fit_predict():
    X, y = _two_clusters()
    clf = C45Classifier().fit(X, y)
    assert clf.classes_.tolist() == ["maize", "rice"]
    assert clf.n_features_in_ == 2
    assert (clf.predict(X) == y).all()
    assert clf.score(X, y) == 1.0


def test_predict_proba_sums_to_one():
    X, y = _two_clusters()
    proba = C45Classifier(confidence_factor=0.1).fit(X, y).predict_proba(X)
    assert proba.shape == (len(X), 2)
    assert np.allclose(proba.sum(axis=1), 1.0)


def test_integer_labels_keep_their_values():
    X = np.array([[1.0], [2.0], [8.0], [9.0]])
    y = np.array([7, 7, 3, 3])
    clf = C45Classifier(min_instances_per_leaf=1).fit(X, y)
    assert clf.predict([[1.5], [8.5]]).tolist() == [7, 3]


def test_not_fitted_raises():
    with pytest.raises(ValueError):
        C45Classifier().predict([[1.0, 2.0]])


def test_sklearn_compatibility():
    X, y = _two_clusters()
    clf = clone(C45Classifier(confidence_factor=0.1, min_instances_per_leaf=3))
    assert clf.get_params() == {"confidence_factor": 0.1, "min_instances_per_leaf": 3}
    scores = cross_val_score(clf, X, y, cv=4)
    assert np.allclose(scores, 1.0)
