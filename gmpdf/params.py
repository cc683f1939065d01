"""
Frozen dataclass containers for mixtures and conditioning specifications.

Both containers are immutable inputs to a single evaluation call. Array
fields are coerced to float ``numpy`` arrays and validated on construction.

Examples
--------
>>> import numpy as np
>>> from gmpdf.params import GaussianMixture
>>> gm = GaussianMixture(
...     centroids=np.zeros((2, 3)), covariance=np.ones(2), weights=[0.5, 0.5],
... )
>>> gm.covariance_type
<CovarianceType.ISOTROPIC: 'isotropic'>
>>> gm['weights']
array([0.5, 0.5])

Notes
-----
The ``frozen=True`` flag prevents attribute reassignment, but numpy arrays
are internally mutable (``gm.centroids[0] = 999`` still works at the Python
level). Callers should not modify the arrays in-place.
"""

import operator
from dataclasses import dataclass, fields
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from gmpdf.covariance import CovarianceType, check_covariance, classify_covariance
from gmpdf.exceptions import InvalidConditioningSpecError, ShapeMismatchError


class _ParamsBase:
    """Mixin providing dict-style access on frozen dataclass params.

    Allows both ``params.weights`` and ``params['weights']`` access styles,
    plus ``items()``, ``keys()``, ``values()`` for iteration.
    """

    __slots__ = ()

    def __getitem__(self, key: str):
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key)

    def __contains__(self, key: str) -> bool:
        return hasattr(self, key)

    def keys(self):
        """Yield field names."""
        return (f.name for f in fields(self))

    def values(self):
        """Yield field values."""
        return (getattr(self, f.name) for f in fields(self))

    def items(self):
        """Yield ``(name, value)`` pairs."""
        return ((f.name, getattr(self, f.name)) for f in fields(self))


# ============================================================================
# Gaussian mixture
# ============================================================================

@dataclass(frozen=True, slots=True)
class GaussianMixture(_ParamsBase):
    """
    Parameters of a Gaussian mixture with :math:`M` components in :math:`D` dims.

    .. math::
        p(x) = \\sum_{m=1}^M \\pi_m \\mathcal{N}(x | c_m, \\Sigma_m)

    Attributes
    ----------
    centroids : np.ndarray
        Component means, shape ``(M, D)``. Sets the master values of M and D.
    covariance : np.ndarray
        Covariances in the encoding given by ``covariance_type``
        (see :mod:`gmpdf.covariance`).
    weights : np.ndarray
        Mixing proportions, shape ``(M,)``. Expected to be non-negative and
        to sum to one; this is not checked.
    covariance_type : CovarianceType
        Encoding of ``covariance``. Inferred from its shape with
        :func:`~gmpdf.covariance.classify_covariance` when omitted.

    Raises
    ------
    ShapeMismatchError
        If ``centroids`` is not 2-D, ``weights`` does not have length M, or
        ``covariance`` does not match ``covariance_type``.
    """
    centroids: np.ndarray
    covariance: np.ndarray
    weights: np.ndarray
    covariance_type: Optional[CovarianceType] = None

    def __post_init__(self):
        centroids = np.asarray(self.centroids, dtype=float)
        covariance = np.asarray(self.covariance, dtype=float)
        weights = np.asarray(self.weights, dtype=float)

        if centroids.ndim != 2 or 0 in centroids.shape:
            raise ShapeMismatchError(
                f"centroids must have shape (M, D) with M, D >= 1, got {centroids.shape}"
            )
        M, D = centroids.shape
        if weights.shape != (M,):
            raise ShapeMismatchError(
                f"weights must have shape ({M},), got {weights.shape}"
            )

        if self.covariance_type is None:
            cov_type = classify_covariance(covariance, M, D)
        else:
            cov_type = CovarianceType(self.covariance_type)
            check_covariance(cov_type, covariance, M, D)

        object.__setattr__(self, 'centroids', centroids)
        object.__setattr__(self, 'covariance', covariance)
        object.__setattr__(self, 'weights', weights)
        object.__setattr__(self, 'covariance_type', cov_type)

    @property
    def n_components(self) -> int:
        """Number of components M."""
        return self.centroids.shape[0]

    @property
    def dim(self) -> int:
        """Dimension D."""
        return self.centroids.shape[1]


# ============================================================================
# Conditioning specification
# ============================================================================

def _as_indices(indices, name: str) -> Tuple[int, ...]:
    try:
        return tuple(operator.index(i) for i in np.ravel(indices))
    except TypeError:
        raise InvalidConditioningSpecError(
            f"{name} indices must be integers, got {indices!r}"
        )


@dataclass(frozen=True, slots=True)
class ConditioningSpec(_ParamsBase):
    """
    Which variables to condition on and which to evaluate.

    Variables are addressed by 0-based column index. Any index listed in
    neither ``present`` nor ``missing`` is marginalized out.

    Attributes
    ----------
    present : tuple of int
        Variables that are observed (conditioned on).
    present_values : np.ndarray
        Observed values, one per entry of ``present``.
    missing : tuple of int or None
        Variables to evaluate, in the column order of the reduced problem.
        ``None`` means every variable not in ``present``.

    Examples
    --------
    >>> # p(x2 | x1 = -1.2, x3 = 2.3) in a 4-dimensional mixture
    >>> spec = ConditioningSpec(present=[1, 3], present_values=[-1.2, 2.3], missing=[2])
    >>> # p(x0, x3)
    >>> spec = ConditioningSpec(missing=[0, 3])
    """
    present: Tuple[int, ...] = ()
    present_values: np.ndarray = ()
    missing: Optional[Tuple[int, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, 'present', _as_indices(self.present, 'present'))
        object.__setattr__(
            self, 'present_values',
            np.atleast_1d(np.asarray(self.present_values, dtype=float)).ravel(),
        )
        if self.missing is not None:
            object.__setattr__(self, 'missing', _as_indices(self.missing, 'missing'))

    @property
    def is_empty(self) -> bool:
        """True when the spec neither conditions nor marginalizes anything."""
        return not self.present and self.missing is None

    def resolve(self, dim: int) -> Tuple[NDArray, NDArray, NDArray]:
        """
        Validate against a mixture dimension and return index arrays.

        Parameters
        ----------
        dim : int
            Dimension D of the mixture.

        Returns
        -------
        present : ndarray of int
        present_values : ndarray of float
        missing : ndarray of int

        Raises
        ------
        InvalidConditioningSpecError
            If an index is outside ``0..dim-1``, an index is repeated, the
            two sets overlap, ``missing`` is empty, or ``present_values``
            does not match ``present`` in length or holds non-finite values.
        """
        present = self.present
        if self.missing is None:
            missing = tuple(j for j in range(dim) if j not in present)
        else:
            missing = self.missing

        for name, idx in (('present', present), ('missing', missing)):
            bad = [j for j in idx if not 0 <= j < dim]
            if bad:
                raise InvalidConditioningSpecError(
                    f"{name} indices {bad} outside 0..{dim - 1}"
                )
            if len(set(idx)) != len(idx):
                raise InvalidConditioningSpecError(
                    f"{name} indices contain duplicates: {list(idx)}"
                )

        overlap = sorted(set(present) & set(missing))
        if overlap:
            raise InvalidConditioningSpecError(
                f"indices {overlap} are both present and missing"
            )
        if not missing:
            raise InvalidConditioningSpecError("no missing variables to evaluate")
        if len(self.present_values) != len(present):
            raise InvalidConditioningSpecError(
                f"got {len(self.present_values)} present values for "
                f"{len(present)} present indices"
            )
        if not np.all(np.isfinite(self.present_values)):
            raise InvalidConditioningSpecError("present values must be finite")

        return (
            np.asarray(present, dtype=np.intp),
            self.present_values,
            np.asarray(missing, dtype=np.intp),
        )


ConditioningLike = Union[ConditioningSpec, dict, None]


__all__ = [
    "GaussianMixture",
    "ConditioningSpec",
    "ConditioningLike",
]
