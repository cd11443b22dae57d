"""
scikit-learn adapters.

Any scikit-learn estimator exposing ``predict_proba`` can train the binary
sub-problems of :class:`mpul.classifier.PositiveUnlabelled`. The adapter
re-orders the estimator's probability columns so that index 1 always refers
to the positive label, whatever order ``classes_`` has.
"""

from __future__ import annotations

import logging
from typing import List, Union

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, clone

logger = logging.getLogger(__name__)


class SklearnSoftClassifier:
    """
    Fitted scikit-learn estimator seen as a binary soft classifier.

    Parameters
    ----------
    estimator:
        Fitted estimator with ``predict_proba`` and ``classes_``.
    features:
        Feature column names, in training order.
    pos:
        Label of the positive class in ``estimator.classes_``.
    """

    def __init__(self, estimator: BaseEstimator, features: List[str], pos: int = 1) -> None:
        if not hasattr(estimator, "predict_proba"):
            raise TypeError(f"{type(estimator).__name__} does not implement predict_proba.")
        classes = list(getattr(estimator, "classes_", []))
        if len(classes) != 2 or pos not in classes:
            raise ValueError(f"Expected a binary estimator with classes containing {pos}, got {classes}.")

        self.estimator = estimator
        self.features = list(features)
        self.pos = pos
        # Column order giving [p(neg), p(pos)]
        self._order = [1 - classes.index(pos), classes.index(pos)]

    def _frame(self, x: Union[pd.Series, pd.DataFrame, np.ndarray]) -> pd.DataFrame:
        if isinstance(x, pd.Series):
            return x[self.features].to_frame().T.astype(np.float64)
        if isinstance(x, pd.DataFrame):
            return x[self.features]
        X = np.asarray(x, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        return pd.DataFrame(X, columns=self.features)

    def predict_proba(self, x: Union[pd.Series, np.ndarray]) -> np.ndarray:
        """Return ``[p(neg), p(pos)]`` for a single sample."""
        proba = self.estimator.predict_proba(self._frame(x))
        return np.asarray(proba, dtype=np.float64)[0, self._order]

    def predict_proba_many(self, X: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """Return probabilities of shape (N, 2) for a batch of samples."""
        proba = self.estimator.predict_proba(self._frame(X))
        return np.asarray(proba, dtype=np.float64)[:, self._order]


class SklearnTrainer:
    """
    Callable trainer ``trainer(frame, response) -> SklearnSoftClassifier``.

    The template estimator is cloned for every sub-problem, so one trainer
    can be shared by concurrent fits.

    Parameters
    ----------
    estimator:
        Unfitted scikit-learn classifier with ``predict_proba``.
    pos:
        Response value of the positive class.
    """

    def __init__(self, estimator: BaseEstimator, *, pos: int = 1) -> None:
        if not hasattr(estimator, "predict_proba"):
            raise TypeError(f"{type(estimator).__name__} does not implement predict_proba.")
        self.estimator = estimator
        self.pos = pos

    def __call__(self, data: pd.DataFrame, response: str) -> SklearnSoftClassifier:
        if response not in data.columns:
            raise KeyError(f"Response column '{response}' not found.")

        features = [c for c in data.columns if c != response]
        model = clone(self.estimator)
        logger.debug("Fitting %s on %d samples", type(model).__name__, len(data))
        model.fit(data[features], data[response].to_numpy())
        return SklearnSoftClassifier(model, features, pos=self.pos)
