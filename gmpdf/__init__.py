"""
gmpdf: numerically stable Gaussian mixture densities.

Evaluates a Gaussian mixture :math:`p(x) = \\sum_m p(m) p(x|m)` at a set of
points, returning :math:`p(x)`, :math:`p(x|m)`, :math:`p(m|x)` and
:math:`p(x,m)` in linear or log scale, optionally after conditioning on some
variables and marginalizing out others.

Key features:
- Six covariance encodings: full, diagonal or isotropic, each shared or
  per-component
- Posteriors that stay exact when every component likelihood underflows
- Lazy evaluation: only the requested outputs are computed
- Conditioning / marginalization through a pluggable reducer
- Frozen dataclass parameter containers (gmpdf.params)
"""

from gmpdf.covariance import CovarianceType, classify_covariance
from gmpdf.exceptions import (
    ShapeMismatchError,
    DegenerateCovarianceError,
    InvalidConditioningSpecError,
    UnderflowWarning,
)
from gmpdf.params import GaussianMixture, ConditioningSpec
from gmpdf.kernels import MixtureKernel
from gmpdf.density import Output, MixtureDensity, evaluate_density
from gmpdf.conditioning import condition_mixture, evaluate, pdf, logpdf

__all__ = [
    # Data model
    "CovarianceType",
    "classify_covariance",
    "GaussianMixture",
    "ConditioningSpec",
    # Evaluation
    "Output",
    "MixtureKernel",
    "MixtureDensity",
    "evaluate_density",
    "condition_mixture",
    "evaluate",
    "pdf",
    "logpdf",
    # Errors
    "ShapeMismatchError",
    "DegenerateCovarianceError",
    "InvalidConditioningSpecError",
    "UnderflowWarning",
]
