"""Utility functions for gmpdf package."""

from .linalg import positive_log, spectral_whitening, schur_complement

__all__ = [
    'positive_log', 'spectral_whitening', 'schur_complement',
]
