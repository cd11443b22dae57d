"""
Binary sub-problem synthesis.

For a positive class ``i`` the multi-class PU training set is relabelled
one-vs-rest: rows of class ``i`` become ``pos``, every other row (other
positive classes and unlabelled rows alike) becomes ``neg``. No row is
dropped and feature columns are left untouched.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from mpul.labels import LabelCodec


def binary_response(codes: np.ndarray, class_index: int, pos: int = 1, neg: int = -1) -> np.ndarray:
    """
    Binary response for one positive class.

    Parameters
    ----------
    codes:
        Dense label codes (0..K) of every row.
    class_index:
        Target positive class code in ``1..K``.
    pos, neg:
        Label values expected by the downstream trainer.

    Returns
    -------
    np.ndarray
        Integer array, ``pos`` where ``codes == class_index`` else ``neg``.
    """
    codes = np.asarray(codes)
    return np.where(codes == class_index, pos, neg).astype(np.int64)


def synthesize(
    data: pd.DataFrame,
    response: str,
    codec: LabelCodec,
    class_index: int,
    pos: int = 1,
    neg: int = -1,
) -> pd.DataFrame:
    """
    Build the binary training set of positive class ``class_index``.

    The returned frame is a copy of ``data`` whose ``response`` column is
    replaced by the binary labels; ``data`` itself is not modified.

    Raises
    ------
    KeyError
        If ``response`` is not a column of ``data``.
    ValueError
        If ``class_index`` is outside ``1..K`` or ``pos == neg``.
    """
    if response not in data.columns:
        raise KeyError(f"Response column '{response}' not found.")
    if not 1 <= class_index <= codec.k:
        raise ValueError(f"class_index must be in 1..{codec.k}, got {class_index}.")
    if pos == neg:
        raise ValueError("pos and neg labels must differ.")

    codes = codec.encode_many(data[response].to_numpy())
    return data.assign(**{response: binary_response(codes, class_index, pos, neg)})
