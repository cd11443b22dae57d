"""
Positive-Unlabelled ensemble classifier.

Reduces multi-class positive-unlabelled (PU) learning to K binary problems,
one per positive class: the samples of that class are positives and every
other sample (examples of the other positive classes and unlabelled points)
is a negative. Each binary model must return a class-conditional probability
rather than a bare label, since discrete labels alone leave ambiguities when
several classes fire for the same sample.

---------------------------------------------------------------------
Decision rule
---------------------------------------------------------------------
Given the K positive-class probabilities p_1..p_K of a sample x:

    y(x) = argmax_i p_i    if max_i p_i > 0.5
         = unlabelled      otherwise

The comparison is strict, so among equal maxima the lowest class code wins.
The 0.5 gate applies to each class on its own; it is not a relative
(softmax-like) comparison.

---------------------------------------------------------------------
Fitting
---------------------------------------------------------------------
The K sub-problems are independent and may be trained concurrently. Fitting
is atomic: if any trainer call fails, no ensemble is returned.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np
import pandas as pd

from mpul.errors import SubClassifierTrainingError
from mpul.labels import LabelCodec
from mpul.synthesize import synthesize

logger = logging.getLogger(__name__)

# =============================================================================
# Types
# =============================================================================

# A sample is passed to sub-classifiers as-is: a pandas row or a feature vector.
Sample = Union[pd.Series, np.ndarray, Sequence[float]]

# Per-class acceptance gate. Hard-coded policy.
ACCEPT_THRESHOLD = 0.5


@runtime_checkable
class SoftClassifier(Protocol):
    """
    A fitted binary classifier producing class-conditional probabilities.

    ``predict_proba(x)`` returns a 2-vector summing to 1 where index 1 is the
    probability that ``x`` belongs to the positive class.
    """

    def predict_proba(self, x: Sample) -> np.ndarray:
        ...


# Trains a soft classifier on a binary-labelled frame given its response column.
Trainer = Callable[[pd.DataFrame, str], SoftClassifier]


# =============================================================================
# Public API
# =============================================================================

class PositiveUnlabelled:
    """
    One-vs-rest ensemble of binary soft classifiers for multi-class PU data.

    Parameters
    ----------
    classifiers:
        Binary soft classifier of each positive class; ``classifiers[i]``
        scores the class of code ``i + 1``.
    codec:
        Label codec mapping dense codes back to raw labels. If None, raw
        labels are the codes themselves (``0`` unlabelled, ``1..K``).

    Notes
    -----
    Instances are immutable once constructed and hold no per-call state, so a
    single ensemble can serve predictions from several threads.
    """

    __slots__ = ("_classifiers", "_codec")

    def __init__(
        self,
        classifiers: Sequence[SoftClassifier],
        codec: Optional[LabelCodec] = None,
    ) -> None:
        classifiers = tuple(classifiers)
        if not classifiers:
            raise ValueError("At least one binary classifier is required.")
        if codec is None:
            codec = LabelCodec.identity(len(classifiers))
        if codec.k != len(classifiers):
            raise ValueError(
                f"Codec has {codec.k} positive classes but {len(classifiers)} classifiers were given."
            )

        object.__setattr__(self, "_classifiers", classifiers)
        object.__setattr__(self, "_codec", codec)

    def __setattr__(self, name, value):
        raise AttributeError("PositiveUnlabelled is immutable.")

    def __reduce__(self):
        return (PositiveUnlabelled, (self._classifiers, self._codec))

    # ------------------------------------------------------------------

    @classmethod
    def fit(
        cls,
        data: pd.DataFrame,
        response: str,
        trainer: Trainer,
        *,
        unlabelled: int = -1,
        pos: int = 1,
        neg: int = -1,
        n_jobs: Optional[int] = 1,
    ) -> "PositiveUnlabelled":
        """
        Fit one binary model per positive class.

        Parameters
        ----------
        data:
            Explanatory variables and the response column.
        response:
            Name of the response column. Its values are raw integer labels,
            ``unlabelled`` marking unlabelled rows.
        trainer:
            Callable ``trainer(frame, response)`` returning a
            :class:`SoftClassifier` fitted on a binary-labelled frame.
        unlabelled:
            Raw label of unlabelled rows.
        pos, neg:
            Labels used for the positive class and for the rest in each
            binary sub-problem.
        n_jobs:
            Number of sub-problems trained concurrently. ``1`` trains them
            sequentially in the calling thread; ``None`` lets the thread pool
            pick its default worker count.

        Returns
        -------
        PositiveUnlabelled
            The fitted ensemble.

        Raises
        ------
        InvalidTrainingSetError
            If there is no unlabelled row.
        DegenerateProblemError
            If there is no positive class.
        SubClassifierTrainingError
            If any trainer call fails. The original error is chained.
        """
        if response not in data.columns:
            raise KeyError(f"Response column '{response}' not found.")
        if n_jobs is not None and n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1 or None, got {n_jobs}.")

        codec = LabelCodec.fit(data[response].to_numpy(), unlabelled=unlabelled)
        k = codec.k
        logger.info(
            "Fitting %d binary classifiers on %d samples (positive labels: %s)",
            k, len(data), codec.values[1:].tolist(),
        )

        def train(class_index: int) -> SoftClassifier:
            binary = synthesize(data, response, codec, class_index, pos=pos, neg=neg)
            logger.debug("Training classifier for label %d", codec.decode(class_index))
            return trainer(binary, response)

        if n_jobs == 1 or k == 1:
            classifiers = cls._fit_sequential(train, codec)
        else:
            classifiers = cls._fit_concurrent(train, codec, n_jobs)

        return cls(classifiers, codec)

    @staticmethod
    def _fit_sequential(
        train: Callable[[int], SoftClassifier],
        codec: LabelCodec,
    ) -> List[SoftClassifier]:
        classifiers = []
        for class_index in range(1, codec.k + 1):
            try:
                classifiers.append(train(class_index))
            except Exception as exc:
                label = codec.decode(class_index)
                logger.error("Training failed for label %d: %s", label, exc)
                raise SubClassifierTrainingError(class_index, label, str(exc)) from exc
        return classifiers

    @staticmethod
    def _fit_concurrent(
        train: Callable[[int], SoftClassifier],
        codec: LabelCodec,
        n_jobs: Optional[int],
    ) -> List[SoftClassifier]:
        with ThreadPoolExecutor(max_workers=n_jobs, thread_name_prefix="mpul-fit") as pool:
            futures = {pool.submit(train, i): i for i in range(1, codec.k + 1)}
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            if pending and any(f.exception() is not None for f in done):
                # Drop queued sub-problems, let running ones finish
                for f in pending:
                    f.cancel()
                wait(pending)

        failed = {
            futures[f]: f.exception()
            for f in futures
            if not f.cancelled() and f.exception() is not None
        }
        if failed:
            class_index = min(failed)
            exc = failed[class_index]
            label = codec.decode(class_index)
            logger.error("Training failed for label %d: %s", label, exc)
            raise SubClassifierTrainingError(class_index, label, str(exc)) from exc

        ordered = sorted(futures, key=futures.get)
        return [f.result() for f in ordered]

    # ------------------------------------------------------------------

    @property
    def k(self) -> int:
        """Number of positive classes."""
        return self._codec.k

    @property
    def codec(self) -> LabelCodec:
        return self._codec

    @property
    def classifiers(self) -> Tuple[SoftClassifier, ...]:
        return self._classifiers

    def labels(self) -> np.ndarray:
        """The K + 1 raw class labels, in ascending order."""
        return self._codec.labels

    # ------------------------------------------------------------------

    def _positive_proba(self, i: int, x: Sample) -> float:
        proba = np.asarray(self._classifiers[i].predict_proba(x), dtype=np.float64).ravel()
        if proba.shape != (2,):
            raise ValueError(
                f"Classifier {i} returned probabilities of shape {proba.shape}, expected (2,)."
            )
        return float(proba[1])

    def _decide(self, x: Sample, confidence: Optional[np.ndarray]) -> int:
        best_code = 0
        best_prob = 0.0
        for i in range(self.k):
            p = self._positive_proba(i, x)
            if confidence is not None:
                confidence[i] = p
            if p > best_prob and p > ACCEPT_THRESHOLD:
                best_code = i + 1
                best_prob = p
        return self._codec.decode(best_code)

    def predict(self, x: Sample) -> int:
        """
        Predict the raw label of a sample.

        Returns the label of the most confident positive class whose
        probability exceeds 0.5, or the unlabelled label if there is none.
        """
        return self._decide(x, None)

    def predict_with_confidence(self, x: Sample) -> Tuple[int, np.ndarray]:
        """
        Predict the raw label of a sample together with its K positive-class
        probabilities (``confidence[i]`` belongs to the class of code ``i + 1``).
        """
        confidence = np.zeros(self.k, dtype=np.float64)
        label = self._decide(x, confidence)
        return label, confidence

    # ------------------------------------------------------------------

    @staticmethod
    def _rows(data: pd.DataFrame, response: Optional[str]):
        if response is not None and response in data.columns:
            data = data.drop(columns=[response])
        return (row for _, row in data.iterrows())

    def predict_frame(self, data: pd.DataFrame, response: Optional[str] = None) -> np.ndarray:
        """
        Predict the raw label of every row of ``data``.

        If ``response`` names a column of ``data`` it is dropped before the
        rows are handed to the sub-classifiers.
        """
        return np.array([self.predict(row) for row in self._rows(data, response)], dtype=np.int64)

    def predict_proba_frame(self, data: pd.DataFrame, response: Optional[str] = None) -> np.ndarray:
        """Positive-class probabilities of every row, shape ``(len(data), K)``."""
        out = np.zeros((len(data), self.k), dtype=np.float64)
        for j, row in enumerate(self._rows(data, response)):
            _, out[j] = self.predict_with_confidence(row)
        return out

    def __repr__(self) -> str:
        return f"PositiveUnlabelled(k={self.k}, labels={self.labels().tolist()})"
