"""
labels
==============

Dense re-encoding of raw PU class labels.

Raw labels are arbitrary integers. One designated value marks unlabelled
rows; every other distinct value is a positive class. The codec maps them to
contiguous codes:

    code 0      -> unlabelled / negative
    codes 1..K  -> positive classes, in ascending raw-value order

The mapping is held in two parallel arrays (code -> raw, and the sorted raw
values with their codes) so that lookups are array-indexed or binary
searched.
"""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np

from mpul.errors import DegenerateProblemError, InvalidTrainingSetError


ArrayLike = Union[np.ndarray, Iterable[int]]


class LabelCodec:
    """
    Immutable bijection between raw labels and dense codes ``0..K``.

    Parameters
    ----------
    values:
        Raw labels in code order; ``values[0]`` is the unlabelled value.
        Must be distinct integers.

    Attributes
    ----------
    k:
        Number of positive classes.
    unlabelled:
        Raw value of code 0.
    """

    __slots__ = ("_values", "_sorted", "_sorted_codes")

    def __init__(self, values: ArrayLike) -> None:
        values = np.asarray(list(values) if not isinstance(values, np.ndarray) else values)
        if values.ndim != 1 or values.size == 0:
            raise ValueError("values must be a non-empty 1D sequence of labels.")
        if not np.issubdtype(values.dtype, np.integer):
            raise ValueError(f"labels must be integers, got dtype {values.dtype}.")

        order = np.argsort(values, kind="stable")
        sorted_values = values[order]
        if np.any(sorted_values[1:] == sorted_values[:-1]):
            raise ValueError("labels must be distinct.")

        values = values.astype(np.int64)
        values.setflags(write=False)
        sorted_values = sorted_values.astype(np.int64)
        sorted_values.setflags(write=False)
        order.setflags(write=False)

        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_sorted", sorted_values)
        object.__setattr__(self, "_sorted_codes", order)

    def __setattr__(self, name, value):
        raise AttributeError("LabelCodec is immutable.")

    def __reduce__(self):
        return (LabelCodec, (np.array(self._values),))

    # ------------------------------------------------------------------

    @classmethod
    def fit(cls, raw_labels: ArrayLike, unlabelled: int = -1) -> "LabelCodec":
        """
        Build a codec from a column of raw labels.

        Parameters
        ----------
        raw_labels:
            Response column of the training set.
        unlabelled:
            Raw value marking unlabelled rows.

        Raises
        ------
        InvalidTrainingSetError
            If labels are not integers or no row carries ``unlabelled``.
        DegenerateProblemError
            If ``unlabelled`` is the only distinct value (K = 0).
        """
        y = np.asarray(raw_labels)
        if y.size and not np.issubdtype(y.dtype, np.integer):
            raise InvalidTrainingSetError(
                f"The response variable must hold integer labels, got dtype {y.dtype}."
            )

        distinct = np.unique(y)
        if not np.any(distinct == unlabelled):
            raise InvalidTrainingSetError("There is no unlabelled data in the training set.")

        positives = distinct[distinct != unlabelled]
        if positives.size == 0:
            raise DegenerateProblemError("Only 0 positive classes in the training set.")

        return cls(np.concatenate(([unlabelled], positives)).astype(np.int64))

    @classmethod
    def identity(cls, k: int) -> "LabelCodec":
        """Codec whose raw labels equal the codes ``0..k``."""
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}.")
        return cls(np.arange(k + 1, dtype=np.int64))

    # ------------------------------------------------------------------

    @property
    def k(self) -> int:
        return int(self._values.size - 1)

    @property
    def unlabelled(self) -> int:
        return int(self._values[0])

    @property
    def values(self) -> np.ndarray:
        """Raw labels in code order (read-only)."""
        return self._values

    @property
    def labels(self) -> np.ndarray:
        """Raw labels in ascending order (read-only)."""
        return self._sorted

    def encode(self, raw: int) -> int:
        """Return the dense code of a raw label."""
        i = int(np.searchsorted(self._sorted, raw))
        if i >= self._sorted.size or self._sorted[i] != raw:
            raise ValueError(f"Unknown label: {raw}")
        return int(self._sorted_codes[i])

    def encode_many(self, raw_labels: ArrayLike) -> np.ndarray:
        """Vectorised :meth:`encode` over an array of raw labels."""
        y = np.asarray(raw_labels)
        idx = np.searchsorted(self._sorted, y)
        idx = np.clip(idx, 0, self._sorted.size - 1)
        unknown = self._sorted[idx] != y
        if np.any(unknown):
            raise ValueError(f"Unknown labels: {np.unique(y[unknown]).tolist()}")
        return self._sorted_codes[idx]

    def decode(self, code: int) -> int:
        """Return the raw label of a dense code."""
        if not 0 <= code <= self.k:
            raise ValueError(f"Invalid code {code}, expected 0..{self.k}.")
        return int(self._values[code])

    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return int(self._values.size)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LabelCodec):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __hash__(self) -> int:
        return hash(self._values.tobytes())

    def __repr__(self) -> str:
        return f"LabelCodec(unlabelled={self.unlabelled}, positives={self._values[1:].tolist()})"
