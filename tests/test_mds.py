import numpy as np
import pytest

from mpul.mds import MDS, IsotonicMDS, SammonMapping, isomds, mds, sammon


def distances(X):
    return np.sqrt(((X[:, None, :] - X[None, :, :]) ** 2).sum(axis=-1))


@pytest.fixture
def planar():
    rng = np.random.default_rng(0)
    X = rng.normal(size=(12, 2)) * 3.0
    return X, distances(X)


@pytest.fixture
def spatial():
    rng = np.random.default_rng(1)
    X = rng.normal(size=(15, 3)) * np.array([4.0, 2.0, 1.0])
    return X, distances(X)


def test_classical_recovers_planar_distances(planar):
    _, D = planar
    result = mds(D, 2)

    assert isinstance(result, MDS)
    assert result.coordinates.shape == (12, 2)
    np.testing.assert_allclose(distances(result.coordinates), D, atol=1e-8)
    assert result.proportion.sum() == pytest.approx(1.0)
    assert result.scores[0] >= result.scores[1] > 0


def test_additive_constant_makes_dissimilarities_euclidean():
    """Triangle inequality violated: only the shifted matrix embeds exactly"""
    D = np.array([
        [0.0, 1.0, 5.0, 2.0],
        [1.0, 0.0, 1.0, 2.0],
        [5.0, 1.0, 0.0, 2.0],
        [2.0, 2.0, 2.0, 0.0],
    ])
    off = ~np.eye(4, dtype=bool)
    plain = mds(D, 3)
    shifted = mds(D, 3, positive=True)

    assert not np.allclose(distances(plain.coordinates), D, atol=1e-3)

    shift = (distances(shifted.coordinates) - D)[off]
    assert shift[0] > 0
    np.testing.assert_allclose(shift, shift[0], atol=1e-6)


def test_isomds_on_euclidean_distances(planar):
    _, D = planar
    result = isomds(D, 2)

    assert isinstance(result, IsotonicMDS)
    assert result.coordinates.shape == (12, 2)
    assert result.stress < 1e-2


def test_sammon_on_euclidean_distances(planar):
    _, D = planar
    result = sammon(D, 2)

    assert isinstance(result, SammonMapping)
    assert result.stress < 1e-8


def test_sammon_improves_on_start(spatial):
    _, D = spatial
    start = sammon(D, 2, max_iter=1)
    final = sammon(D, 2, max_iter=200)

    assert final.coordinates.shape == (15, 2)
    assert final.stress <= start.stress
    assert final.stress < 0.1


@pytest.mark.parametrize("factory", [mds, isomds, sammon])
def test_invalid_proximity(factory, planar):
    _, D = planar

    with pytest.raises(ValueError):
        factory(D[:, :5], 2)
    with pytest.raises(ValueError):
        factory(D + np.triu(np.ones_like(D), k=1), 2)
    with pytest.raises(ValueError):
        factory(D - 10.0 * (1 - np.eye(12)), 2)
    with pytest.raises(ValueError):
        factory(D + np.eye(12), 2)
    with pytest.raises(ValueError):
        factory(D, 0)
    with pytest.raises(ValueError):
        factory(D, 12)


def test_invalid_solver_parameters(planar):
    _, D = planar

    with pytest.raises(ValueError):
        isomds(D, 2, tol=0.0)
    with pytest.raises(ValueError):
        isomds(D, 2, max_iter=0)
    with pytest.raises(ValueError):
        sammon(D, 2, lambda_=0.0)
    with pytest.raises(ValueError):
        sammon(D, 2, step_tol=-1.0)


def test_sammon_rejects_coincident_points():
    D = np.array([
        [0.0, 0.0, 1.0],
        [0.0, 0.0, 1.0],
        [1.0, 1.0, 0.0],
    ])
    with pytest.raises(ValueError):
        sammon(D, 1)


def test_isomds_lowers_stress_of_monotone_transform(planar):
    """Squared distances keep the rank order, so SMACOF improves on the classical start"""
    _, D = planar
    start = isomds(D ** 2, 2, max_iter=1)
    final = isomds(D ** 2, 2, max_iter=300)

    assert final.coordinates.shape == (12, 2)
    assert final.stress <= start.stress
