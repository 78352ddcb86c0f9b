# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import pytest
from scipy.sparse import csr_matrix
from scipy.spatial.distance import braycurtis, canberra, cityblock, euclidean, minkowski

from hubminer.exceptions import ConfigurationError
from hubminer.metrics import _base as metrics_base
from hubminer.metrics import (VALID_METRICS, CombinedMetric, CosineMetric, EuclideanMetric,
                              GeneralizedHistogramKernel, ManhattanMetric, MinkowskiMetric,
                              TanimotoMetric, get_metric)
from hubminer.utils.check import MAX_DISTANCE

rng = np.random.RandomState(123)
A = rng.rand(5)
B = rng.rand(5)


@pytest.mark.parametrize("metric", sorted(VALID_METRICS))
def test_symmetric_and_zero_self_distance(metric):
    metric = get_metric(metric)
    np.testing.assert_almost_equal(metric.dist(A, A), 0.)
    np.testing.assert_almost_equal(metric.dist(A, B), metric.dist(B, A))
    assert metric.dist(A, B) >= 0


@pytest.mark.parametrize("metric, reference", [
    (EuclideanMetric(), euclidean),
    (ManhattanMetric(), cityblock),
    (MinkowskiMetric(p=3), lambda a, b: minkowski(a, b, p=3)),
    (get_metric("canberra"), canberra),
    (get_metric("braycurtis"), braycurtis),
])
def test_against_scipy(metric, reference):
    np.testing.assert_almost_equal(metric.dist(A, B), reference(A, B))


@pytest.mark.parametrize("metric", sorted(VALID_METRICS))
def test_none_operands(metric):
    metric = get_metric(metric)
    assert metric.dist(None, A) == MAX_DISTANCE
    assert metric.dist(A, None) == MAX_DISTANCE
    assert metric.dist(None, None) == 0.


def test_length_mismatch():
    with pytest.raises(ConfigurationError, match="mismatch"):
        EuclideanMetric().dist([1., 2.], [1., 2., 3.])


def test_unknown_metric():
    with pytest.raises(ConfigurationError):
        get_metric("hamming-ish")
    with pytest.raises(ConfigurationError):
        get_metric(None)
    with pytest.raises(ConfigurationError):
        get_metric(object())


def test_non_finite_components_are_skipped():
    a = np.array([0., np.nan, 3.])
    b = np.array([4., 1., MAX_DISTANCE])
    np.testing.assert_almost_equal(EuclideanMetric().dist(a, b), 4.)


def test_sparse_vectors():
    metric = EuclideanMetric()
    a = {0: 3., 5: 4.}
    b = {0: 3.}
    np.testing.assert_almost_equal(metric.dist(a, b), 4.)
    np.testing.assert_almost_equal(metric.dist(csr_matrix([[0., 1., 0.]]), {1: 1.}), 0.)


def test_dist_many_matches_dist():
    metric = CosineMetric()
    M = rng.rand(4, 5)
    expected = [metric.dist(A, row) for row in M]
    np.testing.assert_array_almost_equal(metric.dist_many(A, M), expected)
    np.testing.assert_array_almost_equal(metric.dist_many(A, csr_matrix(M)), expected)


def test_cosine_zero_vectors():
    metric = CosineMetric()
    zero = np.zeros(3)
    assert metric.dist(zero, zero) == 0.
    assert metric.dist(zero, [1., 0., 0.]) == 1.
    np.testing.assert_almost_equal(metric.dist([1., 0., 0.], [-1., 0., 0.]), 1.)


def test_tanimoto():
    metric = TanimotoMetric()
    np.testing.assert_almost_equal(metric.dist([1., 1., 0.], [1., 0., 1.]), 2 / 3)
    assert metric.dist(np.zeros(3), np.zeros(3)) == 0.


def test_ghk_kernel():
    kernel = GeneralizedHistogramKernel()
    assert kernel.dot([1., 2., np.nan], [2., 1., 5.]) == 2.
    assert kernel.dot({0: 1., 3: 2.}, {3: 5., 4: 1.}) == 2.
    with pytest.raises(ConfigurationError):
        kernel.dot(None, [1.])
    # Induced distance: sqrt(K(a, a) + K(b, b) - 2 K(a, b))
    np.testing.assert_almost_equal(kernel.dist([1., 2.], [2., 1.]), np.sqrt(3. + 3. - 4.))


def test_ghk_invalid_exponents():
    with pytest.raises(ConfigurationError):
        GeneralizedHistogramKernel(alpha=0)


@pytest.mark.parametrize("mixer, expected", [
    ("sum", 7.),
    ("average", 3.5),
    ("max", 4.),
    ("min", 3.),
    ("product", 12.),
    ("euclidean", 5.),
])
def test_combined_metric(mixer, expected):
    metric = CombinedMetric([(EuclideanMetric(), [0, 1]), (ManhattanMetric(), slice(2, 4))], mixer=mixer)
    a = np.zeros(4)
    b = np.array([3., 0., 1., 3.])
    np.testing.assert_almost_equal(metric.dist(a, b), expected)


def test_combined_metric_rejects_invalid_setup():
    with pytest.raises(ConfigurationError):
        CombinedMetric([])
    with pytest.raises(ConfigurationError):
        CombinedMetric([(EuclideanMetric(), [0])], mixer="median")
    with pytest.raises(ConfigurationError):
        CombinedMetric([(EuclideanMetric(), [0])], weights=[1., 2.])


@pytest.mark.parametrize("metric", ["euclidean", "manhattan", "minkowski", "cosine", "canberra"])
def test_sparse_rows_match_dense(metric, monkeypatch):
    # Few entries per dense block, so that several blocks are needed
    monkeypatch.setattr(metrics_base, "MAX_DENSE_BLOCK", 12)
    metric = get_metric(metric)
    M = rng.rand(9, 5)
    M[M < .5] = 0.
    np.testing.assert_array_almost_equal(metric.dist_many(A, csr_matrix(M)), metric.dist_many(A, M))


def test_sparse_rows_skip_non_finite_components():
    M = np.array([[1., 0., np.nan], [0., 2., 0.]])
    a = np.array([1., 0., 5.])
    for metric in [EuclideanMetric(), ManhattanMetric()]:
        np.testing.assert_array_almost_equal(metric.dist_many(a, csr_matrix(M)), [0., metric.dist(a, M[1])])


def test_sparse_empty_block():
    assert EuclideanMetric().dist_many(A, csr_matrix((0, 5))).shape == (0,)
