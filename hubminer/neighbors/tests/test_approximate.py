# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import pytest
from scipy.spatial.distance import cdist
from sklearn.datasets import make_classification

from hubminer.exceptions import ConfigurationError
from hubminer.neighbors import NeighborSetFinder, approximate_neighbor_sets


@pytest.fixture
def X():
    X, _ = make_classification(n_samples=300, n_features=10, n_informative=5, random_state=7)
    return X


def test_small_data_is_exact(X):
    k_distances, k_neighbors = approximate_neighbor_sets(X[:60], k=5, division_threshold=100)
    exact = NeighborSetFinder(k=5).fit(X[:60])
    np.testing.assert_array_equal(k_neighbors, exact.k_neighbors_)
    np.testing.assert_array_almost_equal(k_distances, exact.k_distances_)


def test_valid_neighbor_sets(X):
    k = 5
    k_distances, k_neighbors = approximate_neighbor_sets(X, k=k, division_threshold=40, random_state=1)
    n = X.shape[0]
    assert k_neighbors.shape == k_distances.shape == (n, k)
    assert not np.any(k_neighbors == np.arange(n)[:, np.newaxis])
    assert np.all((k_neighbors >= 0) & (k_neighbors < n))
    assert np.all(np.diff(k_distances, axis=1) >= 0)
    for i in range(n):
        assert np.unique(k_neighbors[i]).size == k
        np.testing.assert_array_almost_equal(k_distances[i], cdist(X[i:i + 1], X[k_neighbors[i]])[0])


def test_recall(X):
    k = 5
    _, k_neighbors = approximate_neighbor_sets(X, k=k, division_threshold=40, random_state=1)
    exact = NeighborSetFinder(k=k).fit(X)
    hits = [np.intersect1d(a, b).size for a, b in zip(k_neighbors, exact.k_neighbors_)]
    assert np.sum(hits) / (X.shape[0] * k) > 0.5


def test_wrap_in_finder(X):
    k_distances, k_neighbors = approximate_neighbor_sets(X, k=3, division_threshold=50, random_state=2)
    finder = NeighborSetFinder.from_neighbor_sets(k_neighbors, k_distances, X=X)
    assert finder.k_occurrence_.sum() == X.shape[0] * 3
    _, ind = finder.kneighbors(X[:2], n_neighbors=1)
    np.testing.assert_array_equal(ind.ravel(), [0, 1])


@pytest.mark.parametrize("kwargs", [
    {"alpha": 0.},
    {"alpha": 1.},
    {"division_threshold": 3},
    {"k": 0},
])
def test_invalid_parameters(X, kwargs):
    params = {"k": 5}
    params.update(kwargs)
    with pytest.raises(ConfigurationError):
        approximate_neighbor_sets(X, **params)
