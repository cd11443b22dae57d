import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.svm import LinearSVC

from mpul.adapters import SklearnSoftClassifier, SklearnTrainer
from mpul.classifier import PositiveUnlabelled


@pytest.fixture
def data():
    rng = np.random.default_rng(1)
    parts = []
    for label, centre in ((1, (4.0, 0.0)), (2, (-4.0, 0.0)), (-1, (0.0, 4.0))):
        xy = rng.normal(size=(40, 2)) * 0.5 + centre
        parts.append(pd.DataFrame({"u": xy[:, 0], "v": xy[:, 1], "y": label}))
    return pd.concat(parts, ignore_index=True)


def test_positive_column_is_index_one(data):
    binary = data.assign(y=np.where(data["y"] == 1, 1, -1))
    clf = SklearnTrainer(LogisticRegression())(binary, "y")

    proba = clf.predict_proba(np.array([4.0, 0.0]))
    assert proba.shape == (2,)
    assert proba[1] > 0.9


def test_positive_label_sorted_first(data):
    """classes_ is [0, 1] but the positive label is 0"""
    binary = data.assign(y=np.where(data["y"] == 1, 0, 1))
    clf = SklearnTrainer(GaussianNB(), pos=0)(binary, "y")

    assert clf.predict_proba(pd.Series({"u": 4.0, "v": 0.0}))[1] > 0.9
    assert clf.predict_proba(pd.Series({"u": -4.0, "v": 0.0}))[1] < 0.1


def test_batch_probabilities(data):
    binary = data.assign(y=np.where(data["y"] == 2, 1, -1))
    clf = SklearnTrainer(LogisticRegression())(binary, "y")

    many = clf.predict_proba_many(data[["u", "v"]])
    assert many.shape == (len(data), 2)
    np.testing.assert_allclose(many.sum(axis=1), 1.0)


def test_estimator_without_probabilities():
    with pytest.raises(TypeError):
        SklearnTrainer(LinearSVC())


def test_wrong_positive_label(data):
    binary = data.assign(y=np.where(data["y"] == 1, 1, -1))
    model = LogisticRegression().fit(binary[["u", "v"]], binary["y"])

    with pytest.raises(ValueError):
        SklearnSoftClassifier(model, ["u", "v"], pos=2)


def test_ensemble_with_sklearn_trainer(data):
    model = PositiveUnlabelled.fit(data, "y", SklearnTrainer(LogisticRegression()), n_jobs=2)

    assert model.predict(pd.Series({"u": 4.0, "v": 0.0})) == 1
    assert model.predict(pd.Series({"u": -4.0, "v": 0.0})) == 2
    assert model.predict(pd.Series({"u": 0.0, "v": 4.0})) == -1
