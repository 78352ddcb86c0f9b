# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import pytest
from sklearn.datasets import make_classification

from hubminer.exceptions import ConfigurationError
from hubminer.neighbors import NeighborSetFinder, SharedNeighborFinder, VALID_WEIGHTINGS


@pytest.fixture(scope="module")
def finder():
    X, y = make_classification(n_samples=60, n_features=15, n_informative=8, n_classes=3,
                               random_state=11)
    return NeighborSetFinder(k=8).fit(X, y)


@pytest.mark.parametrize("n_jobs", [1, 3])
def test_counts_match_set_intersections(finder, n_jobs):
    snf = SharedNeighborFinder(finder, k=6, n_jobs=n_jobs)
    counts = snf.compute_shared_counts()
    neighbors = finder.k_neighbors_[:, :6]
    for i, j in [(0, 1), (3, 40), (17, 59)]:
        expected = np.intersect1d(neighbors[i], neighbors[j]).size
        assert counts.get(i, j) == expected
        assert snf.count_shared(neighbors[i], neighbors[j]) == expected


@pytest.mark.parametrize("weighting", VALID_WEIGHTINGS)
def test_weighted_counts(finder, weighting):
    snf = SharedNeighborFinder(finder, weighting=weighting)
    weights = snf.instance_weights_
    assert weights.shape == (finder.n_samples_fit_,)
    assert np.all(np.isfinite(weights))
    counts = snf.compute_shared_counts()
    neighbors = finder.k_neighbors_
    shared = np.intersect1d(neighbors[5], neighbors[6])
    np.testing.assert_almost_equal(counts.get(5, 6), weights[shared].sum())


def test_query_count(finder):
    snf = SharedNeighborFinder(finder)
    query_dist = finder.distance_matrix_.row(4)
    # The query's own neighbors include point 4 itself at distance 0
    _, query_neighbors = finder.kneighbors_from_distances(query_dist.reshape(1, -1), finder.k_)
    expected = np.intersect1d(query_neighbors[0], finder.k_neighbors_[9]).size
    assert snf.count_shared_query(query_dist, 9) == expected


@pytest.mark.parametrize("weighting", VALID_WEIGHTINGS)
def test_batch_query_counts_match_single_counts(finder, weighting):
    snf = SharedNeighborFinder(finder, k=5, weighting=weighting)
    query_dist = np.vstack([finder.distance_matrix_.row(i) * 1.05 for i in (2, 17, 40)])
    _, query_neighbors = finder.kneighbors_from_distances(query_dist, 5)
    counts = snf.count_shared_queries(query_neighbors)
    assert counts.shape == (3, 60)
    for q in range(3):
        for j in (0, 17, 59):
            np.testing.assert_almost_equal(
                counts[q, j], snf.count_shared(query_neighbors[q], finder.k_neighbors_[j, :5]))
            np.testing.assert_almost_equal(counts[q, j], snf.count_shared_query(query_dist[q], j))


@pytest.mark.parametrize("kwargs", [{"weighting": "huge"}, {"k": 9}, {"k": 0}])
def test_invalid_parameters(finder, kwargs):
    with pytest.raises(ConfigurationError):
        SharedNeighborFinder(finder, **kwargs)
