"""
Multidimensional scaling (MDS).

Thin factories over three MDS solvers working on a proximity matrix of
pairwise dissimilarities:

- :func:`mds`     classical scaling (principal coordinates analysis),
- :func:`isomds`  Kruskal's non-metric MDS (scikit-learn SMACOF),
- :func:`sammon`  Sammon's mapping.

Every factory validates the proximity matrix (square, symmetric,
non-negative, zero diagonal) and the target dimension ``1 <= k < n`` before
handing over to the solver. The non-metric and Sammon solvers start from the
classical solution, so all three are deterministic.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from sklearn.manifold import smacof

logger = logging.getLogger(__name__)

_TINY = 1e-12


# =============================================================================
# Results
# =============================================================================

class MDS(NamedTuple):
    """
    Classical MDS result.

    Attributes
    ----------
    coordinates:
        Projected points, shape (n, k).
    scores:
        The k largest eigenvalues of the doubly-centred matrix.
    proportion:
        Share of the positive eigenvalue mass carried by each component.
    """
    coordinates: np.ndarray
    scores: np.ndarray
    proportion: np.ndarray


class IsotonicMDS(NamedTuple):
    """Non-metric MDS result: coordinates (n, k) and Kruskal stress-1."""
    coordinates: np.ndarray
    stress: float


class SammonMapping(NamedTuple):
    """Sammon's mapping result: coordinates (n, k) and Sammon stress."""
    coordinates: np.ndarray
    stress: float


# =============================================================================
# Helper functions
# =============================================================================

def _check_proximity(proximity, k: int) -> np.ndarray:
    D = np.asarray(proximity, dtype=np.float64)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ValueError(f"proximity must be a square matrix, got shape {D.shape}.")
    n = D.shape[0]
    if not 1 <= k < n:
        raise ValueError(f"k must be in 1..{n - 1}, got {k}.")
    if not np.all(np.isfinite(D)):
        raise ValueError("proximity must be finite.")
    if np.any(D < 0):
        raise ValueError("proximity must be non-negative.")
    if np.any(np.diag(D) != 0):
        raise ValueError("proximity must have a zero diagonal.")
    if not np.allclose(D, D.T):
        raise ValueError("proximity must be symmetric.")
    return D


def _double_centre(A: np.ndarray) -> np.ndarray:
    """J A J with J = I - 11ᵀ/n."""
    return A - A.mean(axis=0, keepdims=True) - A.mean(axis=1, keepdims=True) + A.mean()


def _additive_constant(D: np.ndarray) -> float:
    """
    Cailliez's constant c making ``D + c`` (off-diagonal) Euclidean.

    c is the largest real eigenvalue of the 2n x 2n block matrix
    [[0, 2 B(D²)], [-I, -4 B(D)]] with B(X) = -J X J / 2.
    """
    n = D.shape[0]
    Z = np.zeros((2 * n, 2 * n))
    Z[:n, n:] = -_double_centre(D ** 2)
    Z[n:, :n] = -np.eye(n)
    Z[n:, n:] = _double_centre(2.0 * D)
    return float(np.max(np.linalg.eigvals(Z).real))


def _classical(D: np.ndarray, k: int) -> MDS:
    B = -0.5 * _double_centre(D ** 2)
    eigenvalues, eigenvectors = np.linalg.eigh(B)
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]

    scores = eigenvalues[:k]
    if np.any(scores <= 0):
        logger.warning("Only %d of the %d leading eigenvalues are positive.", int(np.sum(scores > 0)), k)

    coordinates = eigenvectors[:, :k] * np.sqrt(np.clip(scores, 0.0, None))
    positive_mass = eigenvalues[eigenvalues > 0].sum()
    proportion = np.clip(scores, 0.0, None) / positive_mass if positive_mass > 0 else np.zeros(k)
    return MDS(coordinates=coordinates, scores=scores, proportion=proportion)


def _distances(X: np.ndarray) -> np.ndarray:
    diff = X[:, None, :] - X[None, :, :]
    return np.sqrt(np.sum(diff ** 2, axis=-1))


def _sammon_stress(D: np.ndarray, d: np.ndarray, scale: float) -> float:
    iu = np.triu_indices_from(D, k=1)
    return float(np.sum((D[iu] - d[iu]) ** 2 / D[iu]) / scale)


# =============================================================================
# Public API
# =============================================================================

def mds(proximity, k: int, positive: bool = False) -> MDS:
    """
    Classical multidimensional scaling, also known as principal coordinates
    analysis.

    Finds points in k dimensions whose Euclidean distances approximate the
    dissimilarities. With Euclidean input distances this equals PCA.

    Parameters
    ----------
    proximity:
        Non-negative symmetric dissimilarity matrix with zero diagonal. For
        pairwise distances, pass the plain (not squared) distances.
    k:
        Dimension of the projection.
    positive:
        If True, add the smallest constant to all off-diagonal
        dissimilarities that makes the doubly-centred matrix positive
        semi-definite (useful for interval-scale dissimilarities).
    """
    D = _check_proximity(proximity, k)
    if positive:
        c = _additive_constant(D)
        logger.debug("Additive constant: %.6g", c)
        D = D + c * (1.0 - np.eye(D.shape[0]))
    return _classical(D, k)


def isomds(proximity, k: int, tol: float = 1e-4, max_iter: int = 200) -> IsotonicMDS:
    """
    Kruskal's non-metric MDS.

    Only the rank order of the dissimilarities is used: the configuration is
    fitted to their best monotone transformation (isotonic regression).
    Solved by scikit-learn's SMACOF, started from the classical solution.

    Parameters
    ----------
    proximity:
        Non-negative symmetric dissimilarity matrix with zero diagonal.
    k:
        Dimension of the projection.
    tol:
        Stop when the stress improves by less than ``tol``.
    max_iter:
        Maximum number of iterations.
    """
    D = _check_proximity(proximity, k)
    if tol <= 0:
        raise ValueError("tol must be > 0.")
    if max_iter <= 0:
        raise ValueError("max_iter must be > 0.")

    init = _classical(D, k).coordinates
    X, stress, n_iter = smacof(
        D,
        metric=False,
        n_components=k,
        init=init,
        n_init=1,
        max_iter=max_iter,
        eps=tol,
        normalized_stress=True,
        return_n_iter=True,
    )

    logger.debug("isomds stopped after %d iterations, stress %.6g", n_iter, stress)
    return IsotonicMDS(coordinates=X, stress=float(stress))


def sammon(
    proximity,
    k: int,
    lambda_: float = 0.2,
    tol: float = 1e-4,
    step_tol: float = 1e-3,
    max_iter: int = 100,
) -> SammonMapping:
    """
    Sammon's mapping.

    Metric least-squares scaling that weights each pair by the inverse of
    its dissimilarity, so small distances are preserved first. Solved by
    diagonal Newton steps from the classical solution.

    Parameters
    ----------
    proximity:
        Symmetric dissimilarity matrix, zero diagonal, positive elsewhere.
    k:
        Dimension of the projection.
    lambda_:
        Initial step size; halved whenever a step does not decrease stress.
    tol:
        Stop when the relative stress improvement drops below ``tol``.
    step_tol:
        Stop when the step size drops below ``step_tol``.
    max_iter:
        Maximum number of iterations.
    """
    D = _check_proximity(proximity, k)
    for name, value in (("lambda_", lambda_), ("tol", tol), ("step_tol", step_tol), ("max_iter", max_iter)):
        if value <= 0:
            raise ValueError(f"{name} must be > 0.")
    n = D.shape[0]
    off = ~np.eye(n, dtype=bool)
    if np.any(D[off] <= 0):
        raise ValueError("Sammon's mapping requires positive off-diagonal dissimilarities.")

    scale = float(D[np.triu_indices(n, k=1)].sum())
    Dm = np.where(off, D, 1.0)

    Y = _classical(D, k).coordinates
    stress = _sammon_stress(D, _distances(Y), scale)

    for it in range(max_iter):
        d = np.maximum(np.where(off, _distances(Y), 1.0), _TINY)
        delta = Dm - d
        q = np.where(off, delta / (Dm * d), 0.0)
        w = np.where(off, (1.0 + delta / d) / (Dm * d ** 2), 0.0)

        grad = -2.0 / scale * (q.sum(axis=1, keepdims=True) * Y - q @ Y)
        hess = -2.0 / scale * (
            q.sum(axis=1, keepdims=True)
            - (Y ** 2 * w.sum(axis=1, keepdims=True) - 2.0 * Y * (w @ Y) + w @ (Y ** 2))
        )
        step = grad / np.maximum(np.abs(hess), _TINY)

        while lambda_ >= step_tol:
            candidate = Y - lambda_ * step
            new_stress = _sammon_stress(D, _distances(candidate), scale)
            if new_stress < stress:
                break
            lambda_ /= 2.0
        if lambda_ < step_tol:
            break

        improvement = (stress - new_stress) / max(stress, _TINY)
        Y, stress = candidate, new_stress
        if improvement < tol:
            break

    logger.debug("sammon stopped after %d iterations, stress %.6g", it + 1, stress)
    return SammonMapping(coordinates=Y, stress=stress)
