# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
from typing import Iterable, Optional, Union

import numpy as np
from scipy.sparse import csr_matrix, issparse
from sklearn.utils.validation import check_consistent_length

from ..exceptions import ConfigurationError
from ..utils.check import is_acceptable

__all__ = [
    "Dataset",
    "Cluster",
    "as_dataset",
    "UNLABELED",
]

#: Label of unlabeled (or noise) instances
UNLABELED = -1


class Dataset:
    """ Ordered collection of instances sharing one feature schema.

    Parameters
    ----------
    X : array-like or sparse matrix of shape (n_samples, n_features)
        Feature vectors. Missing values may be encoded as NaN.
        Sparse rows are exposed as index->value mappings.
    y : array-like of shape (n_samples,), optional
        Integer class labels in ``[0, n_classes)``, or -1 for unlabeled instances.
        If None, all instances are unlabeled.
    """

    def __init__(self, X, y=None):
        if issparse(X):
            X = csr_matrix(X, dtype=np.float64)
        else:
            X = np.asarray(X, dtype=np.float64)
            if X.ndim == 1 and X.size == 0:
                X = X.reshape(0, 0)
            if X.ndim != 2:
                raise ConfigurationError(f"Feature data must be two-dimensional, got shape {X.shape}.")
        if y is None:
            y = np.full(X.shape[0], UNLABELED, dtype=np.int64)
        else:
            y = np.asarray(y)
            if y.ndim != 1:
                raise ConfigurationError(f"Labels must be one-dimensional, got shape {y.shape}.")
            try:
                check_consistent_length(X, y)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
            if y.size and not np.all(np.equal(np.mod(y, 1), 0)):
                raise ConfigurationError("Class labels must be integers.")
            y = y.astype(np.int64)
            if y.size and y.min() < UNLABELED:
                raise ConfigurationError(f"Class labels must be >= {UNLABELED}, got {y.min()}.")
        self.X = X
        self.y = y

    def __len__(self):
        return self.n_samples

    def __repr__(self):
        kind = "sparse" if self.is_sparse else "dense"
        return f"Dataset(n_samples={self.n_samples}, n_features={self.n_features}, {kind})"

    @property
    def n_samples(self) -> int:
        return self.X.shape[0]

    @property
    def n_features(self) -> int:
        return self.X.shape[1]

    @property
    def is_sparse(self) -> bool:
        return issparse(self.X)

    @property
    def labels(self) -> np.ndarray:
        return self.y

    @property
    def n_classes(self) -> int:
        """ Number of classes, inferred as max label + 1 (0 for unlabeled data). """
        if self.y.size == 0:
            return 0
        return int(max(self.y.max() + 1, 0))

    def class_priors(self) -> np.ndarray:
        """ Relative class frequencies among the labeled instances. """
        n_classes = self.n_classes
        labeled = self.y[self.y != UNLABELED]
        counts = np.bincount(labeled, minlength=n_classes).astype(np.float64)
        if labeled.size:
            counts /= labeled.size
        return counts

    def instance(self, i: int) -> Union[np.ndarray, dict]:
        """ Feature vector of instance `i`: a dense array, or an index->value dict for sparse data. """
        if self.is_sparse:
            row = self.X.getrow(i)
            return dict(zip(row.indices.tolist(), row.data.tolist()))
        return self.X[i]

    def instances(self) -> Iterable:
        for i in range(self.n_samples):
            yield self.instance(i)

    def subset(self, indices) -> Dataset:
        indices = np.asarray(indices, dtype=np.int64)
        return Dataset(self.X[indices], self.y[indices])

    def equals_in_feature_definition(self, other: Dataset) -> bool:
        return (other is not None
                and self.n_features == other.n_features
                and self.is_sparse == other.is_sparse)


def as_dataset(X, y=None) -> Dataset:
    """ Wrap vector data in a :class:`Dataset`, unless it already is one. """
    if X is None:
        raise ConfigurationError("A dataset is required, but None was passed.")
    if isinstance(X, Dataset):
        if y is not None:
            return Dataset(X.X, y)
        return X
    return Dataset(X, y)


class Cluster:
    """ Named subset of the instances of a dataset.

    Parameters
    ----------
    dataset : Dataset
        The dataset that owns the instances
    indices : iterable of int, optional
        Initial member indices
    name : str, optional
    """

    def __init__(self, dataset: Dataset, indices: Optional[Iterable[int]] = None, name: str = None):
        if dataset is None:
            raise ConfigurationError("Clusters require an owning dataset.")
        self.dataset = dataset
        self.indices = [] if indices is None else [int(i) for i in indices]
        self.name = name

    def __len__(self):
        return len(self.indices)

    @property
    def size(self) -> int:
        return len(self.indices)

    def add(self, index: int):
        if not 0 <= index < self.dataset.n_samples:
            raise ConfigurationError(f"Index {index} out of bounds for {self.dataset}.")
        self.indices.append(int(index))

    def instances(self):
        return [self.dataset.instance(i) for i in self.indices]

    def to_dataset(self) -> Dataset:
        return self.dataset.subset(self.indices)

    def centroid(self) -> np.ndarray:
        """ Component-wise mean of the members. Non-finite values are ignored. """
        X = self.dataset.X[self.indices]
        if issparse(X):
            X = X.toarray()
        X = np.where(is_acceptable(X), X, np.nan)
        if X.shape[0] == 0:
            return np.zeros(self.dataset.n_features)
        counts = np.sum(~np.isnan(X), axis=0)
        sums = np.nansum(X, axis=0)
        return np.divide(sums, counts, out=np.zeros_like(sums), where=counts > 0)
