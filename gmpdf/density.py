"""
Numerically stable Gaussian mixture density evaluation.

Given the adjusted log-kernel :math:`a_{nm}` (see :mod:`gmpdf.kernels`) and
mixing proportions :math:`\\pi_m`, computes at each query point

- :math:`p(x)   = \\sum_m \\pi_m p(x|m)` (density),
- :math:`p(x|m) = (2\\pi)^{-D/2} e^{a_{nm}}` (likelihood),
- :math:`p(m|x) = \\pi_m p(x|m) / p(x)` (posterior),
- :math:`p(x,m) = \\pi_m p(x|m)` (joint).

Precision
---------
- :math:`p(m|x)` is always accurate: numerator and denominator are divided
  by the largest :math:`\\pi_m e^{a_{nm}}` before exponentiating, so it is
  meaningful even when every :math:`p(x|m)` underflows.
- With ``log=True`` the log of :math:`p(x)`, :math:`p(x|m)` and
  :math:`p(x,m)` is returned and is always accurate
  (:math:`\\log p(x)` uses log-sum-exp).
- With ``log=False``, if :math:`p(x|m)` underflows for every :math:`m` then
  :math:`p(x)`, :math:`p(x|m)` and :math:`p(x,m)` are all zero for that
  point; an :class:`~gmpdf.exceptions.UnderflowWarning` is issued.
- If :math:`\\pi_m e^{a_{nm}}` is exactly zero in every precision (e.g. all
  weights zero) the posterior row is ``NaN`` and :math:`\\log p(x) = -\\infty`.
"""

import warnings
from enum import IntEnum
from functools import cached_property
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from gmpdf.exceptions import UnderflowWarning
from gmpdf.kernels import MixtureKernel, check_query
from gmpdf.params import GaussianMixture


class Output(IntEnum):
    """
    Outputs of a mixture evaluation, in dependency order.

    Requesting ``k`` returns the first ``k`` outputs:
    ``(density, likelihood, posterior, joint)[:k]``.
    """

    DENSITY = 1
    LIKELIHOOD = 2
    POSTERIOR = 3
    JOINT = 4


_OUTPUT_NAMES = ('density', 'likelihood', 'posterior', 'joint')


class MixtureDensity:
    """
    Lazily evaluated densities of a Gaussian mixture at a set of points.

    Every quantity is a ``functools.cached_property``: it is computed on
    first access, together with the intermediates it depends on, and reused
    afterwards. Reading only ``density`` never computes the posterior or the
    joint.

    Parameters
    ----------
    X : array_like, shape (N, D)
        Query points.
    mixture : GaussianMixture
        Mixture to evaluate.
    log : bool, optional
        If True, ``density``, ``likelihood`` and ``joint`` hold log values.
        ``posterior`` is a probability in either case. Default is False.
    kernel : MixtureKernel, optional
        Pre-factorized kernel of ``mixture``, e.g. shared across batches.
    warn_underflow : bool, optional
        Issue an :class:`UnderflowWarning` when a linear density underflows
        to zero. Default is True.

    Raises
    ------
    ShapeMismatchError
        If ``X`` does not have D columns.

    Examples
    --------
    >>> gm = GaussianMixture(np.array([[0.0], [3.0]]), 1.0, [0.5, 0.5])
    >>> ev = MixtureDensity(np.array([[1.5]]), gm)
    >>> ev.posterior
    array([[0.5, 0.5]])
    """

    def __init__(
        self,
        X: ArrayLike,
        mixture: GaussianMixture,
        log: bool = False,
        kernel: Optional[MixtureKernel] = None,
        warn_underflow: bool = True,
    ):
        self.X = check_query(X, mixture.dim)
        self.mixture = mixture
        self.log = bool(log)
        self.warn_underflow = warn_underflow
        if kernel is not None:
            if kernel.mixture is not mixture:
                raise ValueError("kernel was built for a different mixture")
            self.kernel = kernel

    # ============================================================
    # Shared intermediates
    # ============================================================

    @cached_property
    def kernel(self) -> MixtureKernel:
        """Factorized covariance of the mixture."""
        return MixtureKernel(self.mixture)

    @cached_property
    def log_kernel(self) -> NDArray:
        """Adjusted log-kernel, shape (N, M)."""
        return self.kernel(self.X)

    @cached_property
    def _log_const(self) -> float:
        return -0.5 * self.mixture.dim * np.log(2 * np.pi)

    @cached_property
    def _log_weights(self) -> NDArray:
        with np.errstate(divide='ignore'):
            return np.log(self.mixture.weights)

    @cached_property
    def _log_weighted_kernel(self) -> NDArray:
        return self.log_kernel + self._log_weights

    @cached_property
    def _row_max(self) -> NDArray:
        return np.max(self._log_weighted_kernel, axis=1, keepdims=True)

    @cached_property
    def _shift(self) -> NDArray:
        # Rows that are -inf everywhere are left unshifted
        return np.where(np.isfinite(self._row_max), self._row_max, 0.0)

    @cached_property
    def _shifted(self) -> NDArray:
        # exp(log pi_m + a_nm - max_m), the largest entry of each row is 1
        return np.exp(self._log_weighted_kernel - self._shift)

    # ============================================================
    # Outputs
    # ============================================================

    @cached_property
    def density(self) -> NDArray:
        """:math:`p(x)` (or its log), shape (N,)."""
        if self.log:
            with np.errstate(divide='ignore'):
                return self._log_const + self._shift[:, 0] + np.log(np.sum(self._shifted, axis=1))

        p = self.likelihood @ self.mixture.weights
        if self.warn_underflow:
            underflow = (p == 0) & np.isfinite(self._row_max[:, 0])
            if np.any(underflow):
                warnings.warn(
                    f"p(x) underflowed to 0 at {int(np.sum(underflow))} of "
                    f"{len(p)} points; use log=True for exact values",
                    UnderflowWarning,
                    stacklevel=2,
                )
        return p

    @cached_property
    def likelihood(self) -> NDArray:
        """:math:`p(x|m)` (or its log), shape (N, M)."""
        if self.log:
            return self._log_const + self.log_kernel
        return (2 * np.pi) ** (-0.5 * self.mixture.dim) * np.exp(self.log_kernel)

    @cached_property
    def posterior(self) -> NDArray:
        """:math:`p(m|x)`, shape (N, M). Rows sum to one, or are NaN if undefined."""
        with np.errstate(invalid='ignore'):
            return self._shifted / np.sum(self._shifted, axis=1, keepdims=True)

    @cached_property
    def joint(self) -> NDArray:
        """:math:`p(x,m)` (or its log), shape (N, M)."""
        if self.log:
            return self.likelihood + self._log_weights
        return self.likelihood * self.mixture.weights

    def results(self, outputs: Union[Output, int] = Output.JOINT) -> Tuple[NDArray, ...]:
        """
        Requested prefix of ``(density, likelihood, posterior, joint)``.

        Parameters
        ----------
        outputs : Output or int, optional
            Number of outputs. Default is all four.

        Returns
        -------
        results : tuple of ndarray
        """
        outputs = Output(outputs)
        return tuple(getattr(self, name) for name in _OUTPUT_NAMES[:outputs])

    def __repr__(self) -> str:
        computed = [name for name in _OUTPUT_NAMES if name in self.__dict__]
        return (f"{self.__class__.__name__}(N={self.X.shape[0]}, "
                f"M={self.mixture.n_components}, log={self.log}, "
                f"computed={computed})")


def evaluate_density(
    X: ArrayLike,
    mixture: GaussianMixture,
    log: bool = False,
    outputs: Union[Output, int] = Output.JOINT,
    batch_size: Optional[int] = None,
    warn_underflow: bool = True,
) -> Tuple[NDArray, ...]:
    """
    Evaluate a mixture at query points without conditioning.

    Parameters
    ----------
    X : array_like, shape (N, D)
        Query points.
    mixture : GaussianMixture
        Mixture to evaluate.
    log : bool, optional
        Return log values of density, likelihood and joint. Default is False.
    outputs : Output or int, optional
        Number of outputs to compute, in the order density, likelihood,
        posterior, joint. Default is all four.
    batch_size : int, optional
        Evaluate at most this many points at a time to bound the memory of
        the (N, M) intermediates. Results do not depend on it.
    warn_underflow : bool, optional
        Warn when a linear density underflows. Default is True.

    Returns
    -------
    results : tuple of ndarray
        The first ``outputs`` of ``(density (N,), likelihood (N, M),
        posterior (N, M), joint (N, M))``.
    """
    outputs = Output(outputs)
    if batch_size is not None and batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    X = check_query(X, mixture.dim)
    n = X.shape[0]

    if batch_size is None or n <= batch_size:
        return MixtureDensity(X, mixture, log, warn_underflow=warn_underflow).results(outputs)

    kernel = MixtureKernel(mixture)
    batches = [
        MixtureDensity(
            X[start:start + batch_size], mixture, log,
            kernel=kernel, warn_underflow=warn_underflow,
        ).results(outputs)
        for start in range(0, n, batch_size)
    ]
    return tuple(np.concatenate(parts, axis=0) for parts in zip(*batches))


__all__ = [
    "Output",
    "MixtureDensity",
    "evaluate_density",
]
