"""
Exceptions and warnings raised by gmpdf.

All errors are properties of the input and are raised synchronously at the
point of detection. No partial results are returned.
"""

import numpy as np


class ShapeMismatchError(ValueError):
    """Array shapes disagree with the declared covariance type or dimension."""


class DegenerateCovarianceError(np.linalg.LinAlgError):
    """
    A covariance is not usable for density evaluation.

    Raised for non-finite entries, non-positive eigenvalues of a full
    covariance, or non-positive variances of a diagonal/isotropic one.
    Derives from :class:`numpy.linalg.LinAlgError` (itself a ``ValueError``).
    """


class InvalidConditioningSpecError(ValueError):
    """Present/missing index sets are malformed for the mixture dimension."""


class UnderflowWarning(RuntimeWarning):
    """
    Linear-scale densities underflowed to exactly zero.

    Every component likelihood of at least one query point is below the
    smallest representable double. Pass ``log=True`` to get exact values.
    """


__all__ = [
    "ShapeMismatchError",
    "DegenerateCovarianceError",
    "InvalidConditioningSpecError",
    "UnderflowWarning",
]
