"""Linear algebra utilities for gmpdf.

Provides checked wrappers around the decompositions used by density
evaluation and conditioning. None of them regularize: a covariance that is
not positive definite raises :class:`~gmpdf.exceptions.DegenerateCovarianceError`.
"""

from typing import Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import cho_factor, cho_solve, LinAlgError

from gmpdf.exceptions import DegenerateCovarianceError


def positive_log(values: NDArray, what: str = "variance") -> NDArray:
    """
    Elementwise log of values that must be finite and strictly positive.

    Parameters
    ----------
    values : ndarray
        Variances or eigenvalues.
    what : str, optional
        Name used in the error message.

    Returns
    -------
    log_values : ndarray

    Raises
    ------
    DegenerateCovarianceError
        If any value is non-finite or non-positive.
    """
    values = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(values)) or np.any(values <= 0):
        raise DegenerateCovarianceError(
            f"every {what} must be finite and positive, got {values}"
        )
    return np.log(values)


def spectral_whitening(S: NDArray) -> Tuple[NDArray, float]:
    r"""
    Whitening transform and log-normalization of a covariance matrix.

    With the spectral decomposition :math:`\Sigma = U \Lambda U^T`, returns
    :math:`W = U (2\Lambda)^{-1/2}` so that

    .. math::
        \frac{1}{2}(x-c)^T \Sigma^{-1} (x-c) = \|(x-c) W\|^2

    together with :math:`-\frac{1}{2}\log|\Sigma| = -\frac{1}{2}\sum_i \log\lambda_i`.
    Neither :math:`\Sigma^{-1}` nor the determinant is formed explicitly.

    Parameters
    ----------
    S : ndarray, shape (d, d)
        Symmetric positive definite covariance.

    Returns
    -------
    W : ndarray, shape (d, d)
        Whitening transform, applied on the right of row vectors.
    log_norm : float
        :math:`-\frac{1}{2}\log|\Sigma|`.

    Raises
    ------
    DegenerateCovarianceError
        If ``S`` has non-finite entries, is not symmetric, or has a
        non-positive eigenvalue.

    Examples
    --------
    >>> import numpy as np
    >>> from gmpdf.utils import spectral_whitening
    >>> W, log_norm = spectral_whitening(np.diag([2.0, 0.5]))
    >>> np.allclose(W @ W.T, np.linalg.inv(2 * np.diag([2.0, 0.5])))
    True
    """
    S = np.asarray(S, dtype=float)
    if not np.all(np.isfinite(S)):
        raise DegenerateCovarianceError("covariance matrix has non-finite entries")
    if not np.allclose(S, S.T):
        raise DegenerateCovarianceError("covariance matrix must be symmetric")
    try:
        lam, U = np.linalg.eigh(S)
    except LinAlgError as e:
        raise DegenerateCovarianceError(f"eigen-decomposition failed: {e}") from e
    log_lam = positive_log(lam, "covariance eigenvalue")
    W = U * (2.0 * lam) ** -0.5
    return W, -0.5 * float(np.sum(log_lam))


def schur_complement(S: NDArray, present: NDArray, missing: NDArray) -> Tuple[NDArray, NDArray]:
    r"""
    Regression gain and conditional covariance of a partitioned Gaussian.

    For :math:`\Sigma` partitioned into present (P) and missing (M) blocks:

    .. math::
        K = \Sigma_{MP}\Sigma_{PP}^{-1}, \qquad
        \Sigma_{M|P} = \Sigma_{MM} - K \Sigma_{PM}

    Parameters
    ----------
    S : ndarray, shape (d, d)
        Full covariance.
    present, missing : ndarray of int
        Disjoint index sets.

    Returns
    -------
    K : ndarray, shape (len(missing), len(present))
    S_cond : ndarray, shape (len(missing), len(missing))

    Raises
    ------
    DegenerateCovarianceError
        If :math:`\Sigma_{PP}` is not positive definite.
    """
    S_MM = S[np.ix_(missing, missing)]
    if len(present) == 0:
        return np.zeros((len(missing), 0)), S_MM
    S_PP = S[np.ix_(present, present)]
    S_PM = S[np.ix_(present, missing)]
    try:
        factor = cho_factor(S_PP, lower=True)
    except ValueError as e:  # LinAlgError, or non-finite entries
        raise DegenerateCovarianceError(
            f"covariance of the present variables is not positive definite: {e}"
        ) from e
    K = cho_solve(factor, S_PM).T
    S_cond = S_MM - K @ S_PM
    # Keep the result exactly symmetric for the eigen-decomposition downstream
    return K, 0.5 * (S_cond + S_cond.T)
