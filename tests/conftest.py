"""
Shared fixtures: random mixtures of every covariance type and reference
densities computed with ``scipy.stats.multivariate_normal``.
"""

import numpy as np
import pytest
from scipy import stats

from gmpdf import CovarianceType, GaussianMixture


ALL_TYPES = list(CovarianceType)


def random_spd(rng: np.random.Generator, d: int) -> np.ndarray:
    """Well-conditioned random covariance with eigenvalues of order one."""
    A = rng.normal(size=(d, d))
    return A @ A.T / d + 0.5 * np.eye(d)


def random_mixture(cov_type, n_components: int = 3, dim: int = 4, seed: int = 0) -> GaussianMixture:
    """Moderate-scale mixture whose linear densities do not underflow."""
    rng = np.random.default_rng(seed)
    M, D = n_components, dim
    cov_type = CovarianceType(cov_type)
    covariance = {
        CovarianceType.FULL: lambda: np.array([random_spd(rng, D) for _ in range(M)]),
        CovarianceType.SHARED_FULL: lambda: random_spd(rng, D),
        CovarianceType.DIAGONAL: lambda: rng.uniform(0.5, 2.0, size=(M, D)),
        CovarianceType.SHARED_DIAGONAL: lambda: rng.uniform(0.5, 2.0, size=D),
        CovarianceType.ISOTROPIC: lambda: rng.uniform(0.5, 2.0, size=M),
        CovarianceType.SHARED_ISOTROPIC: lambda: rng.uniform(0.5, 2.0),
    }[cov_type]()
    weights = rng.uniform(0.2, 1.0, size=M)
    return GaussianMixture(
        centroids=rng.normal(scale=1.5, size=(M, D)),
        covariance=covariance,
        weights=weights / weights.sum(),
        covariance_type=cov_type,
    )


def full_covariances(gm: GaussianMixture) -> np.ndarray:
    """Expand any covariance encoding to an (M, D, D) stack."""
    M, D = gm.n_components, gm.dim
    S = gm.covariance
    eye = np.broadcast_to(np.eye(D), (M, D, D))
    return {
        CovarianceType.FULL: lambda: S,
        CovarianceType.SHARED_FULL: lambda: np.broadcast_to(S, (M, D, D)),
        CovarianceType.DIAGONAL: lambda: np.array([np.diag(s) for s in S]),
        CovarianceType.SHARED_DIAGONAL: lambda: np.broadcast_to(np.diag(S), (M, D, D)),
        CovarianceType.ISOTROPIC: lambda: S[:, None, None] * eye,
        CovarianceType.SHARED_ISOTROPIC: lambda: S * eye,
    }[gm.covariance_type]()


def reference_component_logpdf(X: np.ndarray, gm: GaussianMixture) -> np.ndarray:
    """log p(x|m) from scipy, shape (N, M)."""
    covs = full_covariances(gm)
    return np.column_stack([
        stats.multivariate_normal(gm.centroids[m], covs[m]).logpdf(X)
        for m in range(gm.n_components)
    ])


@pytest.fixture(params=ALL_TYPES, ids=lambda t: t.name)
def cov_type(request):
    return request.param


@pytest.fixture
def mixture(cov_type):
    return random_mixture(cov_type)


@pytest.fixture
def points():
    return np.random.default_rng(42).normal(scale=1.5, size=(10, 4))


@pytest.fixture
def make_mixture():
    """Factory fixture: ``make_mixture(cov_type, n_components, dim, seed)``."""
    return random_mixture


@pytest.fixture
def reference_logpdf():
    """Factory fixture: ``reference_logpdf(X, gm)`` -> log p(x|m) from scipy."""
    return reference_component_logpdf
