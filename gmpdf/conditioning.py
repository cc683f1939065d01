"""
Conditioning and marginalization of Gaussian mixtures.

With variables split into present :math:`P` (observed at :math:`x_P`),
missing :math:`M` (to evaluate) and the rest (integrated out), the
distribution of the missing variables is again a Gaussian mixture

.. math::
    p(x_M | x_P) = \\sum_m p(m | x_P)\\, \\mathcal{N}(x_M | c_{m,M|P}, \\Sigma_{m,M|P})

with

.. math::
    c_{m,M|P} = c_{m,M} + \\Sigma_{m,MP}\\Sigma_{m,PP}^{-1}(x_P - c_{m,P}), \\qquad
    \\Sigma_{m,M|P} = \\Sigma_{m,MM} - \\Sigma_{m,MP}\\Sigma_{m,PP}^{-1}\\Sigma_{m,PM}

and :math:`p(m|x_P)` the posterior of the mixture marginalized to :math:`P`.
Marginalizing is slicing; diagonal and isotropic covariances have no
cross terms, so conditioning only changes their weights.

:func:`evaluate` is the public entry point: it reduces the mixture and
evaluates it at the missing columns of the query points.
"""

from typing import Callable, Mapping, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from gmpdf.covariance import CovarianceType
from gmpdf.density import MixtureDensity, Output, evaluate_density
from gmpdf.kernels import check_query
from gmpdf.params import ConditioningLike, ConditioningSpec, GaussianMixture
from gmpdf.utils import schur_complement

Reducer = Callable[[GaussianMixture, NDArray, NDArray, NDArray], GaussianMixture]


def condition_mixture(
    mixture: GaussianMixture,
    present: ArrayLike,
    present_values: ArrayLike,
    missing: ArrayLike,
) -> GaussianMixture:
    """
    Mixture over the missing variables given the present ones.

    Parameters
    ----------
    mixture : GaussianMixture
        Mixture over D variables.
    present : array_like of int
        0-based indices of the observed variables (may be empty).
    present_values : array_like
        Observed values, same length as ``present``.
    missing : array_like of int
        0-based indices of the variables to keep, in output order.

    Returns
    -------
    reduced : GaussianMixture
        Mixture over ``len(missing)`` variables with the same covariance type.

    Raises
    ------
    InvalidConditioningSpecError
        If the index sets are malformed.
    DegenerateCovarianceError
        If the covariance of the present variables is not positive definite.
    """
    present, values, missing = ConditioningSpec(
        present=present, present_values=present_values, missing=missing,
    ).resolve(mixture.dim)

    C, S = mixture.centroids, mixture.covariance
    cov_type = mixture.covariance_type

    if len(present) == 0:
        weights = mixture.weights
    else:
        marginal = condition_mixture(mixture, [], [], present)
        weights = MixtureDensity(values[np.newaxis, :], marginal, log=True).posterior[0]

    if cov_type == CovarianceType.FULL:
        centroids = np.empty((mixture.n_components, len(missing)))
        covariance = np.empty((mixture.n_components, len(missing), len(missing)))
        for m in range(mixture.n_components):
            K, covariance[m] = schur_complement(S[m], present, missing)
            centroids[m] = C[m, missing] + K @ (values - C[m, present])
    elif cov_type == CovarianceType.SHARED_FULL:
        K, covariance = schur_complement(S, present, missing)
        centroids = C[:, missing] + (values - C[:, present]) @ K.T
    elif cov_type == CovarianceType.DIAGONAL:
        centroids, covariance = C[:, missing], S[:, missing]
    elif cov_type == CovarianceType.SHARED_DIAGONAL:
        centroids, covariance = C[:, missing], S[missing]
    else:
        centroids, covariance = C[:, missing], S

    return GaussianMixture(centroids, covariance, weights, cov_type)


def _as_spec(conditioning: ConditioningLike) -> Optional[ConditioningSpec]:
    if conditioning is None or isinstance(conditioning, ConditioningSpec):
        return conditioning
    if isinstance(conditioning, Mapping):
        return ConditioningSpec(**conditioning)
    raise TypeError(
        f"conditioning must be a ConditioningSpec, a mapping or None, "
        f"got {type(conditioning).__name__}"
    )


def evaluate(
    X: ArrayLike,
    mixture: GaussianMixture,
    log: bool = False,
    conditioning: ConditioningLike = None,
    outputs: Union[Output, int] = Output.JOINT,
    reducer: Reducer = condition_mixture,
    batch_size: Optional[int] = None,
    warn_underflow: bool = True,
) -> Tuple[NDArray, ...]:
    """
    Gaussian mixture density, likelihoods, posteriors and joint at X.

    Parameters
    ----------
    X : array_like, shape (N, D)
        Query points. X must have D columns even if ``conditioning`` selects
        fewer variables; only the missing columns are read.
    mixture : GaussianMixture
        Mixture over D variables.
    log : bool, optional
        Return :math:`\\log p(x)`, :math:`\\log p(x|m)`, :math:`\\log p(x,m)`
        instead of the linear values. Use it when the densities are very
        small (e.g. in high dimension), where linear values underflow to 0.
        Default is False.
    conditioning : ConditioningSpec or mapping, optional
        Variables to condition on (``present``, ``present_values``) and to
        evaluate (``missing``). None or an empty spec evaluates the full
        mixture.
    outputs : Output or int, optional
        Number of outputs, in the order density, likelihood, posterior,
        joint. Unrequested outputs are not computed. Default is all four.
    reducer : callable, optional
        ``reducer(mixture, present, present_values, missing)`` returning the
        reduced mixture. Default is :func:`condition_mixture`.
    batch_size : int, optional
        Evaluate at most this many points at a time.
    warn_underflow : bool, optional
        Warn when a linear density underflows to 0. Default is True.

    Returns
    -------
    results : tuple of ndarray
        The first ``outputs`` of ``(p (N,), px_m (N, M), pm_x (N, M),
        pxm (N, M))``.

    Examples
    --------
    >>> gm = GaussianMixture(np.zeros((2, 3)), np.ones(2), [0.5, 0.5])
    >>> X = np.zeros((4, 3))
    >>> p, px_m = evaluate(X, gm, outputs=Output.LIKELIHOOD)
    >>> # p(x1 | x0 = 0.5, x2 = -1.0)
    >>> spec = ConditioningSpec(present=[0, 2], present_values=[0.5, -1.0], missing=[1])
    >>> (p,) = evaluate(X, gm, conditioning=spec, outputs=Output.DENSITY)
    """
    spec = _as_spec(conditioning)
    if spec is None or spec.is_empty:
        return evaluate_density(X, mixture, log, outputs, batch_size, warn_underflow)

    X = check_query(X, mixture.dim)
    present, values, missing = spec.resolve(mixture.dim)
    reduced = reducer(mixture, present, values, missing)
    return evaluate_density(X[:, missing], reduced, log, outputs, batch_size, warn_underflow)


def pdf(
    X: ArrayLike,
    mixture: GaussianMixture,
    conditioning: ConditioningLike = None,
    **kwargs,
) -> NDArray:
    """Mixture density :math:`p(x)`, shape (N,). See :func:`evaluate`."""
    return evaluate(X, mixture, False, conditioning, Output.DENSITY, **kwargs)[0]


def logpdf(
    X: ArrayLike,
    mixture: GaussianMixture,
    conditioning: ConditioningLike = None,
    **kwargs,
) -> NDArray:
    """Log mixture density :math:`\\log p(x)`, shape (N,). See :func:`evaluate`."""
    return evaluate(X, mixture, True, conditioning, Output.DENSITY, **kwargs)[0]


__all__ = [
    "condition_mixture",
    "evaluate",
    "pdf",
    "logpdf",
]
