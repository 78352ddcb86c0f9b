# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import pytest
from scipy.sparse import csr_matrix
from scipy.spatial.distance import pdist, squareform
from sklearn.datasets import make_classification

from hubminer.exceptions import ConfigurationError, DegenerateInputError, WorkerFailure
from hubminer.metrics import EuclideanMetric
from hubminer.neighbors import DistanceMatrix, compute_distance_matrix

FOUR_POINTS = np.array([[0., 0.], [1., 0.], [0., 1.], [10., 10.]])


def test_four_points():
    D = compute_distance_matrix(FOUR_POINTS)
    assert D.shape == (4, 4)
    assert [len(row) for row in D.rows] == [3, 2, 1, 0]
    np.testing.assert_almost_equal(D.get(0, 1), 1.)
    np.testing.assert_almost_equal(D[2, 0], 1.)
    np.testing.assert_almost_equal(D.get(1, 2), np.sqrt(2))
    np.testing.assert_almost_equal(D.get(3, 0), np.sqrt(200))
    np.testing.assert_almost_equal(D.get(1, 3), np.sqrt(181))
    assert D.get(3, 3) == 0.


def test_square_layout():
    X, _ = make_classification(n_samples=20, random_state=0)
    D = compute_distance_matrix(X)
    np.testing.assert_array_almost_equal(D.condensed, pdist(X))
    square = D.to_square()
    np.testing.assert_array_almost_equal(square, squareform(pdist(X)))
    for i in [0, 7, 19]:
        np.testing.assert_array_almost_equal(D.row(i), square[i])
    np.testing.assert_array_almost_equal(DistanceMatrix.from_square(square).condensed, D.condensed)


def test_from_rows():
    D = DistanceMatrix.from_rows([[1., 2.], [3.], []])
    np.testing.assert_array_equal(D.to_square(), [[0., 1., 2.], [1., 0., 3.], [2., 3., 0.]])
    with pytest.raises(ConfigurationError):
        DistanceMatrix.from_rows([[1.], [3.], []])
    with pytest.raises(ConfigurationError):
        DistanceMatrix(np.zeros(4), 3)


def test_single_point():
    D = compute_distance_matrix(np.ones((1, 3)))
    assert D.condensed.size == 0
    np.testing.assert_array_equal(D.to_square(), [[0.]])


def test_empty_dataset():
    with pytest.raises(DegenerateInputError):
        compute_distance_matrix(np.empty((0, 3)))


@pytest.mark.parametrize("n_jobs", [2, 3, -1])
def test_threads_match_sequential(n_jobs):
    X, _ = make_classification(n_samples=50, random_state=1)
    sequential = compute_distance_matrix(X, metric="manhattan", n_jobs=1)
    threaded = compute_distance_matrix(X, metric="manhattan", n_jobs=n_jobs)
    np.testing.assert_array_equal(threaded.condensed, sequential.condensed)


class FailingMetric(EuclideanMetric):
    """ Fails for query vectors with a negative first component. """

    def dist_many(self, a, B):
        if a[0] < 0:
            raise FloatingPointError("negative query")
        return super().dist_many(a, B)


def test_worker_failure_lists_ranges():
    X = np.ones((8, 2))
    X[6, 0] = -1.
    with pytest.raises(WorkerFailure) as e:
        compute_distance_matrix(X, metric=FailingMetric(), n_jobs=4)
    assert len(e.value.failed_ranges) == 1
    start, end = e.value.failed_ranges[0]
    assert start <= 6 < end


def test_statistics():
    D = DistanceMatrix(np.array([1., 2., 3.]), 3)
    assert D.mean_ == 2.
    np.testing.assert_almost_equal(D.variance_, 2 / 3)
    copy = D.copy()
    copy.condensed[0] = 10.
    assert D.get(0, 1) == 1.


def test_sparse_dataset_matches_dense():
    X, _ = make_classification(n_samples=25, n_features=30, random_state=2)
    X[np.abs(X) < 1.] = 0.
    for metric in ["euclidean", "manhattan", "cosine"]:
        sparse = compute_distance_matrix(csr_matrix(X), metric=metric)
        dense = compute_distance_matrix(X, metric=metric)
        np.testing.assert_array_almost_equal(sparse.condensed, dense.condensed)
