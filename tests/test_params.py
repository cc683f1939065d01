"""
Tests for frozen dataclass parameter containers.

Tests that each parameter dataclass:
- Can be constructed with valid values
- Is frozen (raises FrozenInstanceError on attribute assignment)
- Supports dict-style access
- Validates shapes / index sets
"""

import dataclasses
import pytest
import numpy as np

from gmpdf import (
    CovarianceType,
    ConditioningSpec,
    GaussianMixture,
    InvalidConditioningSpecError,
    ShapeMismatchError,
)


# ============================================================================
# GaussianMixture
# ============================================================================

class TestGaussianMixture:
    @pytest.fixture
    def gm(self):
        return GaussianMixture(
            centroids=[[0.0, 1.0], [2.0, 3.0]],
            covariance=[[1.0, 2.0], [0.5, 0.5]],
            weights=[0.25, 0.75],
            covariance_type='D',
        )

    def test_construction(self, gm):
        assert gm.n_components == 2
        assert gm.dim == 2
        assert gm.covariance_type is CovarianceType.DIAGONAL
        assert gm.centroids.dtype == float
        assert isinstance(gm.weights, np.ndarray)

    def test_frozen(self, gm):
        with pytest.raises(dataclasses.FrozenInstanceError):
            gm.weights = np.array([0.5, 0.5])

    def test_slots(self, gm):
        assert not hasattr(gm, "__dict__")

    def test_dict_access(self, gm):
        np.testing.assert_array_equal(gm['weights'], [0.25, 0.75])
        assert list(gm.keys()) == ['centroids', 'covariance', 'weights', 'covariance_type']
        assert 'centroids' in gm
        with pytest.raises(KeyError):
            gm['sigma']

    def test_type_inferred_from_shape(self):
        gm = GaussianMixture(np.zeros((3, 2)), np.ones((3, 2, 2)), np.full(3, 1 / 3))
        assert gm.covariance_type is CovarianceType.FULL
        gm = GaussianMixture(np.zeros((3, 2)), 2.0, np.full(3, 1 / 3))
        assert gm.covariance_type is CovarianceType.SHARED_ISOTROPIC

    def test_explicit_type_resolves_ambiguity(self):
        # (2, 2) with M == D is either shared full or per-component diagonal
        cov = np.array([[1.0, 0.0], [0.0, 1.0]])
        gm = GaussianMixture(np.zeros((2, 2)), cov, [0.5, 0.5], 'shared_full')
        assert gm.covariance_type is CovarianceType.SHARED_FULL
        gm = GaussianMixture(np.ones((2, 2)), np.ones((2, 2)), [0.5, 0.5], 'D')
        assert gm.covariance_type is CovarianceType.DIAGONAL

    def test_covariance_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError, match="FULL"):
            GaussianMixture(np.zeros((3, 2)), np.ones((2, 2)), np.full(3, 1 / 3), 'F')

    def test_unclassifiable_covariance(self):
        with pytest.raises(ShapeMismatchError):
            GaussianMixture(np.zeros((3, 2)), np.ones((4, 5)), np.full(3, 1 / 3))

    def test_weights_length_mismatch(self):
        with pytest.raises(ShapeMismatchError, match="weights"):
            GaussianMixture(np.zeros((3, 2)), 1.0, [0.5, 0.5])

    @pytest.mark.parametrize("centroids", [np.zeros(3), np.zeros((0, 2)), np.zeros((2, 0))])
    def test_bad_centroids(self, centroids):
        with pytest.raises(ShapeMismatchError, match="centroids"):
            GaussianMixture(centroids, 1.0, [1.0])

    def test_unknown_type_tag(self):
        with pytest.raises(ValueError):
            GaussianMixture(np.zeros((1, 2)), 1.0, [1.0], 'spherical')

    def test_weights_not_renormalized(self):
        gm = GaussianMixture(np.zeros((2, 1)), 1.0, [0.2, 0.2])
        np.testing.assert_array_equal(gm.weights, [0.2, 0.2])


# ============================================================================
# ConditioningSpec
# ============================================================================

class TestConditioningSpec:
    def test_defaults_are_empty(self):
        spec = ConditioningSpec()
        assert spec.is_empty
        present, values, missing = spec.resolve(3)
        assert present.size == 0
        assert values.size == 0
        np.testing.assert_array_equal(missing, [0, 1, 2])

    def test_missing_defaults_to_complement(self):
        spec = ConditioningSpec(present=[1], present_values=[0.5])
        assert not spec.is_empty
        _, values, missing = spec.resolve(4)
        np.testing.assert_array_equal(missing, [0, 2, 3])
        np.testing.assert_array_equal(values, [0.5])

    def test_missing_order_is_kept(self):
        _, _, missing = ConditioningSpec(missing=[3, 0]).resolve(4)
        np.testing.assert_array_equal(missing, [3, 0])

    def test_frozen(self):
        spec = ConditioningSpec(missing=[0])
        with pytest.raises(dataclasses.FrozenInstanceError):
            spec.missing = (1,)

    def test_indices_coerced_to_tuples(self):
        spec = ConditioningSpec(present=np.array([2, 0]), present_values=[1.0, 2.0], missing=range(1, 2))
        assert spec.present == (2, 0)
        assert spec.missing == (1,)

    @pytest.mark.parametrize("kwargs, match", [
        (dict(present=[0], present_values=[1.0], missing=[0, 1]), "both present and missing"),
        (dict(missing=[3]), "outside"),
        (dict(missing=[-1]), "outside"),
        (dict(missing=[0, 0]), "duplicates"),
        (dict(present=[0, 1, 2], present_values=[1.0, 2.0, 3.0]), "no missing"),
        (dict(present=[0], present_values=[1.0, 2.0]), "present values"),
        (dict(present=[0], present_values=[np.nan]), "finite"),
    ])
    def test_invalid(self, kwargs, match):
        with pytest.raises(InvalidConditioningSpecError, match=match):
            ConditioningSpec(**kwargs).resolve(3)

    def test_non_integer_indices(self):
        with pytest.raises(InvalidConditioningSpecError, match="integers"):
            ConditioningSpec(missing=[0.5])
