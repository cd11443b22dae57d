import numpy as np
import pytest

from mpul.errors import DegenerateProblemError, InvalidTrainingSetError
from mpul.labels import LabelCodec


def test_fit_assigns_zero_to_unlabelled():
    """Unlabelled value gets code 0, positives follow in ascending order"""
    codec = LabelCodec.fit([3, -1, 7, 3, -1, 5], unlabelled=-1)

    assert codec.k == 3
    assert codec.encode(-1) == 0
    assert [codec.encode(v) for v in (3, 5, 7)] == [1, 2, 3]
    assert codec.values.tolist() == [-1, 3, 5, 7]


def test_decode_inverts_encode():
    raw = [10, 0, 4, 4, 10, 0, 2]
    codec = LabelCodec.fit(raw, unlabelled=10)

    assert codec.encode(10) == 0
    for v in set(raw):
        assert codec.decode(codec.encode(v)) == v


def test_labels_sorted_even_if_unlabelled_is_largest():
    codec = LabelCodec.fit(np.array([9, 1, 2, 9]), unlabelled=9)

    assert codec.labels.tolist() == [1, 2, 9]
    assert codec.values.tolist() == [9, 1, 2]
    assert codec.unlabelled == 9


def test_fit_is_reproducible():
    raw = np.array([2, -1, 1, 2, 1, -1])
    assert LabelCodec.fit(raw) == LabelCodec.fit(raw[::-1])


def test_missing_unlabelled_raises():
    with pytest.raises(InvalidTrainingSetError):
        LabelCodec.fit([1, 2, 2, 1], unlabelled=-1)


def test_empty_labels_raise():
    with pytest.raises(InvalidTrainingSetError):
        LabelCodec.fit(np.array([], dtype=np.int64))


def test_float_labels_raise():
    with pytest.raises(InvalidTrainingSetError):
        LabelCodec.fit(np.array([-1.0, 1.0, 2.0]))


def test_only_unlabelled_is_degenerate():
    with pytest.raises(DegenerateProblemError):
        LabelCodec.fit([-1, -1, -1])


def test_single_positive_class_is_allowed():
    codec = LabelCodec.fit([-1, 4, 4, -1])
    assert codec.k == 1
    assert codec.decode(1) == 4


def test_unknown_values():
    codec = LabelCodec.fit([-1, 1, 2])

    with pytest.raises(ValueError):
        codec.encode(3)
    with pytest.raises(ValueError):
        codec.decode(3)
    with pytest.raises(ValueError):
        codec.decode(-1)
    with pytest.raises(ValueError):
        codec.encode_many([1, 5])


def test_encode_many_matches_encode():
    raw = np.array([-1, 1, 1, 2, 2, -1])
    codec = LabelCodec.fit(raw)

    assert codec.encode_many(raw).tolist() == [0, 1, 1, 2, 2, 0]


def test_identity_codec():
    codec = LabelCodec.identity(3)

    assert codec.k == 3
    assert codec.values.tolist() == [0, 1, 2, 3]
    with pytest.raises(ValueError):
        LabelCodec.identity(0)


def test_codec_is_immutable():
    codec = LabelCodec.fit([-1, 1, 2])

    with pytest.raises(AttributeError):
        codec.k = 5
    with pytest.raises(ValueError):
        codec.values[0] = 3


def test_constructor_rejects_duplicates():
    with pytest.raises(ValueError):
        LabelCodec([-1, 1, 1])
