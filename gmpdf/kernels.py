"""
Per-component Gaussian log-kernels for the six covariance encodings.

For query points :math:`x_n` and components :math:`m` the *adjusted
log-kernel* is

.. math::
    a_{nm} = -\\frac{1}{2}(x_n - c_m)^T \\Sigma_m^{-1} (x_n - c_m)
             - \\frac{1}{2}\\log|\\Sigma_m|

i.e. :math:`\\log p(x_n|m)` without the :math:`-\\frac{D}{2}\\log 2\\pi`
constant. Each covariance type contributes a *factorize* step, run once per
mixture, and an *apply* step, run once per batch of query points:

- ``FULL`` / ``SHARED_FULL``: spectral whitening
  :math:`W = U(2\\Lambda)^{-1/2}`, exponent :math:`-\\|(x - c)W\\|^2`;
  the shared matrix is decomposed once and applied to points and centroids.
- ``DIAGONAL`` / ``SHARED_DIAGONAL``: :math:`-\\sum_j (x_j - c_j)^2 / 2\\sigma_j^2`;
  the shared case rescales points and centroids by :math:`1/\\sqrt{2\\sigma^2}`.
- ``ISOTROPIC`` / ``SHARED_ISOTROPIC``: :math:`-\\|x - c\\|^2 / 2\\sigma^2`.
"""

from typing import Any, Callable, Dict, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.spatial.distance import cdist

from gmpdf.covariance import CovarianceType
from gmpdf.exceptions import ShapeMismatchError
from gmpdf.params import GaussianMixture
from gmpdf.utils import positive_log, spectral_whitening


def check_query(X: ArrayLike, dim: int) -> NDArray:
    """
    Coerce query points to a float ``(N, dim)`` array.

    A 1-D array is treated as a single point.

    Raises
    ------
    ShapeMismatchError
        If the points are not ``dim``-dimensional.
    """
    X = np.atleast_2d(np.asarray(X, dtype=float))
    if X.ndim != 2 or X.shape[1] != dim:
        raise ShapeMismatchError(
            f"Expected query points of shape (N, {dim}), got {X.shape}"
        )
    return X


# ============================================================
# Full covariance
# ============================================================

def _factorize_full(gm: GaussianMixture) -> Tuple[Any, NDArray]:
    W = np.empty_like(gm.covariance)
    log_norm = np.empty(gm.n_components)
    for m in range(gm.n_components):
        W[m], log_norm[m] = spectral_whitening(gm.covariance[m])
    return W, log_norm


def _apply_full(X: NDArray, C: NDArray, W: NDArray) -> NDArray:
    argexp = np.empty((X.shape[0], C.shape[0]))
    for m in range(C.shape[0]):
        z = (X - C[m]) @ W[m]
        argexp[:, m] = -np.sum(z ** 2, axis=1)
    return argexp


def _factorize_shared_full(gm: GaussianMixture) -> Tuple[Any, NDArray]:
    W, log_norm = spectral_whitening(gm.covariance)
    return (W, gm.centroids @ W), np.full(gm.n_components, log_norm)


def _apply_shared_full(X: NDArray, C: NDArray, state) -> NDArray:
    W, CW = state
    return -cdist(X @ W, CW, 'sqeuclidean')


# ============================================================
# Diagonal covariance
# ============================================================

def _factorize_diagonal(gm: GaussianMixture) -> Tuple[Any, NDArray]:
    log_S = positive_log(gm.covariance)
    return 0.5 / gm.covariance, -0.5 * np.sum(log_S, axis=1)


def _apply_diagonal(X: NDArray, C: NDArray, inv_2S: NDArray) -> NDArray:
    argexp = np.empty((X.shape[0], C.shape[0]))
    for m in range(C.shape[0]):
        argexp[:, m] = -np.sum((X - C[m]) ** 2 * inv_2S[m], axis=1)
    return argexp


def _factorize_shared_diagonal(gm: GaussianMixture) -> Tuple[Any, NDArray]:
    log_S = positive_log(gm.covariance)
    scale = np.sqrt(2.0 * gm.covariance)
    log_norm = np.full(gm.n_components, -0.5 * np.sum(log_S))
    return (scale, gm.centroids / scale), log_norm


def _apply_shared_diagonal(X: NDArray, C: NDArray, state) -> NDArray:
    scale, C_scaled = state
    return -cdist(X / scale, C_scaled, 'sqeuclidean')


# ============================================================
# Isotropic covariance
# ============================================================

def _factorize_isotropic(gm: GaussianMixture) -> Tuple[Any, NDArray]:
    log_s = positive_log(gm.covariance)
    log_norm = -0.5 * gm.dim * log_s
    if gm.covariance_type.shared:
        log_norm = np.full(gm.n_components, log_norm)
    return 0.5 / gm.covariance, log_norm


def _apply_isotropic(X: NDArray, C: NDArray, inv_2s) -> NDArray:
    # inv_2s is a scalar (shared) or broadcasts over the component axis
    return -cdist(X, C, 'sqeuclidean') * inv_2s


_DISPATCH: Dict[CovarianceType, Tuple[Callable, Callable]] = {
    CovarianceType.FULL: (_factorize_full, _apply_full),
    CovarianceType.SHARED_FULL: (_factorize_shared_full, _apply_shared_full),
    CovarianceType.DIAGONAL: (_factorize_diagonal, _apply_diagonal),
    CovarianceType.SHARED_DIAGONAL: (_factorize_shared_diagonal, _apply_shared_diagonal),
    CovarianceType.ISOTROPIC: (_factorize_isotropic, _apply_isotropic),
    CovarianceType.SHARED_ISOTROPIC: (_factorize_isotropic, _apply_isotropic),
}


class MixtureKernel:
    """
    Adjusted log-kernel of a Gaussian mixture.

    The covariance is factorized once on construction; calling the kernel on
    any number of query batches reuses the factorization.

    Parameters
    ----------
    mixture : GaussianMixture
        Mixture to evaluate.

    Attributes
    ----------
    mixture : GaussianMixture
    log_norm : ndarray, shape (M,)
        :math:`-\\frac{1}{2}\\log|\\Sigma_m|` per component.

    Raises
    ------
    DegenerateCovarianceError
        If a covariance is not positive definite or has non-finite entries.

    Examples
    --------
    >>> gm = GaussianMixture(np.zeros((3, 2)), 1.0, np.full(3, 1 / 3))
    >>> MixtureKernel(gm)(np.zeros((5, 2))).shape
    (5, 3)
    """

    def __init__(self, mixture: GaussianMixture):
        self.mixture = mixture
        factorize, self._apply = _DISPATCH[mixture.covariance_type]
        self._state, self.log_norm = factorize(mixture)

    @property
    def dim(self) -> int:
        """Dimension D of the mixture."""
        return self.mixture.dim

    def __call__(self, X: ArrayLike) -> NDArray:
        """
        Adjusted log-kernel matrix.

        Parameters
        ----------
        X : array_like, shape (N, D)
            Query points.

        Returns
        -------
        log_kernel : ndarray, shape (N, M)
        """
        X = check_query(X, self.dim)
        return self._apply(X, self.mixture.centroids, self._state) + self.log_norm

    def __repr__(self) -> str:
        gm = self.mixture
        return (f"{self.__class__.__name__}(type={gm.covariance_type.name}, "
                f"M={gm.n_components}, D={gm.dim})")


__all__ = [
    "MixtureKernel",
    "check_query",
]
