# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import pytest
from sklearn.datasets import make_classification

from hubminer.analysis import Hubness
from hubminer.exceptions import ConfigurationError
from hubminer.neighbors import NeighborSetFinder
from hubminer.reduction import NICDM, LocalScaling

LS_METHODS = [
    "standard",
    "nicdm",
]


@pytest.fixture(scope="module")
def finder():
    X, y = make_classification(n_samples=50, n_features=40, random_state=5)
    return NeighborSetFinder(k=10).fit(X, y)


def test_local_scaling_formula(finder):
    ls = LocalScaling(k=5).fit(finder)
    r = finder.k_distances_[:, 4]
    d = finder.distance_matrix_.get(2, 7)
    np.testing.assert_almost_equal(ls.dist(2, 7), 1. - np.exp(-d ** 2 / (r[2] * r[7])))
    secondary = ls.transform()
    np.testing.assert_almost_equal(secondary.get(2, 7), ls.dist(2, 7))
    assert np.all((secondary.condensed >= 0) & (secondary.condensed <= 1))


def test_nicdm_formula(finder):
    nicdm = NICDM(k=5).fit(finder)
    mean_dist = finder.k_distances_[:, :5].mean(axis=1)
    d = finder.distance_matrix_.get(3, 11)
    np.testing.assert_almost_equal(nicdm.dist(3, 11), d / np.sqrt(mean_dist[3] * mean_dist[11]))
    assert LocalScaling(k=5, method="nicdm").fit(finder).dist(3, 11) == nicdm.dist(3, 11)


@pytest.mark.parametrize("method", LS_METHODS)
def test_transform_preserves_shape(finder, method):
    ls = LocalScaling(k=3, method=method).fit(finder)
    secondary = ls.transform()
    assert secondary.shape == finder.distance_matrix_.shape
    square = ls.transform_to_square()
    assert square.shape == (50, 50)
    np.testing.assert_array_equal(square, square.T)
    np.testing.assert_array_equal(np.diag(square), 0.)
    np.testing.assert_almost_equal(square[4, 9], secondary.get(4, 9))


@pytest.mark.parametrize("method", LS_METHODS)
def test_query_transform(finder, method):
    X = finder.dataset_.X
    ls = LocalScaling(k=5, method=method).fit(finder)
    query_dist = finder.query_distances(X[:4] * 1.01)
    secondary = ls.transform(query_dist)
    assert secondary.shape == (4, 50)
    nearest = np.sort(query_dist, axis=1)[:, :5]
    r_query = nearest[:, -1] if method == "standard" else nearest.mean(axis=1)
    d = query_dist[2, 8]
    if method == "standard":
        expected = 1. - np.exp(-d ** 2 / (r_query[2] * ls.r_indexed_[8]))
    else:
        expected = d / np.sqrt(r_query[2] * ls.r_indexed_[8])
    np.testing.assert_almost_equal(secondary[2, 8], expected)


def test_zero_scale():
    X = np.array([[0.], [0.], [0.], [5.]])
    finder = NeighborSetFinder(k=1).fit(X)
    secondary = LocalScaling(k=1).fit(finder).transform().to_square()
    assert secondary[0, 1] == 0.
    assert secondary[0, 3] == 1.
    nicdm = NICDM(k=1).fit(finder).transform().to_square()
    # Points with zero mean neighbor distance keep their primary distances
    assert nicdm[0, 3] == 5.


@pytest.mark.parametrize("method", ["invalid", None])
def test_invalid_method(finder, method):
    with pytest.raises(ConfigurationError):
        LocalScaling(method=method).fit(finder)


@pytest.mark.parametrize("k", [0, 11])
def test_invalid_k(finder, k):
    with pytest.raises(ConfigurationError):
        LocalScaling(k=k).fit(finder)


@pytest.mark.parametrize("method", LS_METHODS)
def test_reduces_hubness(method):
    X, _ = make_classification(n_samples=300, n_features=200, n_informative=150, random_state=0)
    finder = NeighborSetFinder(k=10).fit(X)
    hubness = Hubness(k=10, metric="precomputed", return_value="robinhood")
    before = hubness.fit(finder).score()
    secondary = LocalScaling(k=10, method=method).fit(finder).transform()
    after = hubness.fit(secondary).score()
    assert after < before
