"""
Covariance type tags for Gaussian mixtures.

A mixture of :math:`M` components in :math:`D` dimensions stores its
covariance in one of six encodings:

=====================  ====  ==============  ==================================
Type                   Code  Shape           Meaning
=====================  ====  ==============  ==================================
``FULL``               F     ``(M, D, D)``   one full matrix per component
``SHARED_FULL``        f     ``(D, D)``      one full matrix for all components
``DIAGONAL``           D     ``(M, D)``      one variance vector per component
``SHARED_DIAGONAL``    d     ``(D,)``        one variance vector for all
``ISOTROPIC``          I     ``(M,)``        one variance per component
``SHARED_ISOTROPIC``   i     ``()``          one variance for all components
=====================  ====  ==============  ==================================

The one-letter codes are accepted wherever a type tag is expected.
"""

from enum import Enum
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from gmpdf.exceptions import ShapeMismatchError


class CovarianceType(str, Enum):
    """Structural encoding of a mixture covariance."""

    FULL = "full"
    SHARED_FULL = "shared_full"
    DIAGONAL = "diagonal"
    SHARED_DIAGONAL = "shared_diagonal"
    ISOTROPIC = "isotropic"
    SHARED_ISOTROPIC = "shared_isotropic"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return _CODES.get(value)
        return None

    @property
    def code(self) -> str:
        """One-letter code (upper case: per-component, lower case: shared)."""
        return _CODE_OF[self]

    @property
    def shared(self) -> bool:
        """Whether a single covariance is shared by all components."""
        return self.code.islower()


_CODES = {
    "F": CovarianceType.FULL,
    "f": CovarianceType.SHARED_FULL,
    "D": CovarianceType.DIAGONAL,
    "d": CovarianceType.SHARED_DIAGONAL,
    "I": CovarianceType.ISOTROPIC,
    "i": CovarianceType.SHARED_ISOTROPIC,
}
_CODE_OF = {v: k for k, v in _CODES.items()}

# Order in which classify_covariance resolves ambiguous shapes
_CLASSIFY_ORDER = tuple(_CODES.values())


def expected_shape(cov_type: CovarianceType, n_components: int, dim: int) -> Tuple[int, ...]:
    """
    Canonical array shape for a covariance of the given type.

    Parameters
    ----------
    cov_type : CovarianceType or str
        Covariance type tag or one-letter code.
    n_components : int
        Number of mixture components :math:`M`.
    dim : int
        Dimension :math:`D`.

    Returns
    -------
    shape : tuple of int
    """
    M, D = n_components, dim
    return {
        CovarianceType.FULL: (M, D, D),
        CovarianceType.SHARED_FULL: (D, D),
        CovarianceType.DIAGONAL: (M, D),
        CovarianceType.SHARED_DIAGONAL: (D,),
        CovarianceType.ISOTROPIC: (M,),
        CovarianceType.SHARED_ISOTROPIC: (),
    }[CovarianceType(cov_type)]


def classify_covariance(covariance: NDArray, n_components: int, dim: int) -> CovarianceType:
    """
    Infer the covariance type from the array shape.

    Shapes are ambiguous when ``n_components == dim`` (e.g. ``(D, D)`` could
    be a shared full matrix or per-component diagonals) or when
    ``n_components == 1``. In that case the first match in the order
    F, f, D, d, I, i is returned; pass an explicit type tag to override.

    Parameters
    ----------
    covariance : array_like
        Covariance array.
    n_components : int
        Number of mixture components.
    dim : int
        Dimension of the mixture.

    Returns
    -------
    cov_type : CovarianceType

    Raises
    ------
    ShapeMismatchError
        If the shape matches none of the six encodings.
    """
    shape = np.shape(covariance)
    for cov_type in _CLASSIFY_ORDER:
        if shape == expected_shape(cov_type, n_components, dim):
            return cov_type
    raise ShapeMismatchError(
        f"covariance shape {shape} matches no covariance type for "
        f"{n_components} components in {dim} dimensions"
    )


def check_covariance(cov_type: CovarianceType, covariance: NDArray,
                     n_components: int, dim: int) -> None:
    """Raise :class:`ShapeMismatchError` if ``covariance`` does not fit ``cov_type``."""
    expected = expected_shape(cov_type, n_components, dim)
    if np.shape(covariance) != expected:
        raise ShapeMismatchError(
            f"{CovarianceType(cov_type).name} covariance must have shape "
            f"{expected}, got {np.shape(covariance)}"
        )


__all__ = [
    "CovarianceType",
    "expected_shape",
    "classify_covariance",
    "check_covariance",
]
