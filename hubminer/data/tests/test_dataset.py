# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import pytest
from scipy.sparse import csr_matrix

from hubminer.data import Cluster, Dataset, as_dataset, make_gaussian_hubs
from hubminer.exceptions import ConfigurationError


def test_dense_dataset():
    data = Dataset([[0., 1.], [2., 3.], [4., 5.]], [0, 1, 1])
    assert len(data) == 3
    assert data.n_features == 2
    assert data.n_classes == 2
    assert not data.is_sparse
    np.testing.assert_array_almost_equal(data.class_priors(), [1 / 3, 2 / 3])
    np.testing.assert_array_equal(data.instance(1), [2., 3.])


def test_sparse_instances_are_mappings():
    X = csr_matrix(np.array([[0., 1.5, 0.], [2., 0., 0.]]))
    data = Dataset(X)
    assert data.is_sparse
    assert data.instance(0) == {1: 1.5}
    assert data.instance(1) == {0: 2.}
    np.testing.assert_array_equal(data.y, [-1, -1])
    assert data.n_classes == 0


@pytest.mark.parametrize("X, y", [
    (np.zeros(3), None),
    (np.zeros((3, 2)), [0, 1]),
    (np.zeros((2, 2)), [0.5, 1]),
    (np.zeros((2, 2)), [0, -2]),
])
def test_invalid_datasets(X, y):
    with pytest.raises(ConfigurationError):
        Dataset(X, y)


def test_as_dataset():
    data = Dataset(np.eye(3), [0, 1, 2])
    assert as_dataset(data) is data
    relabeled = as_dataset(data, [1, 1, 0])
    np.testing.assert_array_equal(relabeled.y, [1, 1, 0])
    with pytest.raises(ConfigurationError):
        as_dataset(None)


def test_subset_and_feature_definition():
    data = Dataset(np.arange(12.).reshape(4, 3), [0, 1, 0, 1])
    sub = data.subset([3, 1])
    np.testing.assert_array_equal(sub.y, [1, 1])
    np.testing.assert_array_equal(sub.X[0], [9., 10., 11.])
    assert data.equals_in_feature_definition(sub)
    assert not data.equals_in_feature_definition(Dataset(np.eye(2)))
    assert not data.equals_in_feature_definition(None)


def test_cluster():
    data = Dataset(np.array([[0., 0.], [2., np.nan], [4., 2.]]))
    cluster = Cluster(data, [0], name="c")
    cluster.add(1)
    cluster.add(2)
    assert cluster.size == 3
    assert cluster.to_dataset().n_samples == 3
    np.testing.assert_array_almost_equal(cluster.centroid(), [2., 1.])
    with pytest.raises(ConfigurationError):
        cluster.add(3)


def test_gaussian_hubs():
    data = make_gaussian_hubs(n_samples=60, n_features=10, n_classes=3, noise_ratio=0.1, random_state=1)
    assert data.X.shape == (60, 10)
    assert np.sum(data.y == -1) == 6
    assert set(np.unique(data.y)) <= {-1, 0, 1, 2}
