# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Tuple, Union

import numpy as np
from scipy.sparse import csr_matrix, issparse

from ..exceptions import ConfigurationError
from ..utils.check import MAX_DISTANCE, is_acceptable

__all__ = [
    "PrimaryMetric",
    "SparseVector",
]

SparseVector = dict

#: Upper bound on the number of entries of a dense block made from sparse rows
MAX_DENSE_BLOCK = 2 ** 22


def _is_sparse_vector(v) -> bool:
    return isinstance(v, dict) or issparse(v)


def _to_mapping(v) -> dict:
    if isinstance(v, dict):
        return v
    v = v.tocsr()
    if v.shape[0] != 1:
        raise ConfigurationError(f"Sparse vectors must be single rows, got shape {v.shape}.")
    return dict(zip(v.indices.tolist(), v.data.tolist()))


def _align_sparse(a: dict, b: dict) -> Tuple[np.ndarray, np.ndarray]:
    """ Dense views of two sparse vectors on the union of their keys; absent keys are zeros. """
    keys = sorted(set(a) | set(b))
    a_dense = np.array([a.get(key, 0.) for key in keys], dtype=np.float64)
    b_dense = np.array([b.get(key, 0.) for key in keys], dtype=np.float64)
    return a_dense, b_dense


class PrimaryMetric(ABC):
    """ Distance between two feature vectors.

    Subclasses implement :meth:`_dist_many`, the vectorized distances from one
    dense vector to each row of a dense matrix. Components that are not finite
    in either operand must not contribute.
    """

    #: Whether sparse (index->value) vectors may be compared
    supports_sparse = True

    def __repr__(self):
        params = ", ".join(f"{key}={value!r}" for key, value in vars(self).items() if not key.startswith("_"))
        return f"{self.__class__.__name__}({params})"

    @abstractmethod
    def _dist_many(self, a: np.ndarray, B: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """ Distances from `a` (n_features,) to the rows of `B` (m, n_features), given the acceptance mask. """

    def dist(self, a, b) -> float:
        """ Distance between `a` and `b`.

        Parameters
        ----------
        a, b : array-like, dict, sparse row, or None
            Dense vectors of identical length, or sparse vectors.

        Returns
        -------
        distance : float
            MAX_DISTANCE, if exactly one of the operands is None; 0, if both are None.
        """
        if a is None or b is None:
            return 0. if a is None and b is None else MAX_DISTANCE
        if _is_sparse_vector(a) or _is_sparse_vector(b):
            if not self.supports_sparse:
                raise ConfigurationError(f"{self.__class__.__name__} does not support sparse vectors.")
            a, b = _align_sparse(_to_mapping(a), _to_mapping(b))
        else:
            a, b = self._check_pair(a, b)
        return float(self.dist_many(a, b.reshape(1, -1))[0])

    def dist_many(self, a, B) -> np.ndarray:
        """ Distances from dense vector `a` to every row of `B` (dense or sparse matrix). """
        a = np.asarray(a, dtype=np.float64).ravel()
        if issparse(B):
            if not self.supports_sparse:
                raise ConfigurationError(f"{self.__class__.__name__} does not support sparse vectors.")
            if B.shape[1] != a.size:
                raise ConfigurationError(f"Feature vector length mismatch: {a.size} and {B.shape[1]}.")
            if B.shape[0] == 0:
                return np.empty(0, dtype=np.float64)
            return self._dist_many_sparse(a, B.tocsr())
        B = np.asarray(B, dtype=np.float64)
        if B.ndim != 2 or B.shape[1] != a.size:
            raise ConfigurationError(f"Feature vector length mismatch: {a.size} and {B.shape[-1]}.")
        return self._dist_many_dense(a, B)

    def _dist_many_dense(self, a: np.ndarray, B: np.ndarray) -> np.ndarray:
        if B.shape[0] == 0:
            return np.empty(0, dtype=np.float64)
        mask = is_acceptable(a)[np.newaxis, :] & is_acceptable(B)
        return self._dist_many(a, B, mask)

    def _dist_many_sparse(self, a: np.ndarray, B: csr_matrix) -> np.ndarray:
        """ Distances to the rows of sparse `B`, densified in blocks of at most MAX_DENSE_BLOCK entries. """
        n_rows, n_features = B.shape
        block_rows = max(1, MAX_DENSE_BLOCK // max(n_features, 1))
        out = np.empty(n_rows, dtype=np.float64)
        for start in range(0, n_rows, block_rows):
            end = min(start + block_rows, n_rows)
            out[start:end] = self._dist_many_dense(a, B[start:end].toarray())
        return out

    def __call__(self, a, b) -> float:
        return self.dist(a, b)

    @staticmethod
    def _check_pair(a, b) -> Tuple[np.ndarray, np.ndarray]:
        a = np.asarray(a, dtype=np.float64).ravel()
        b = np.asarray(b, dtype=np.float64).ravel()
        if a.size != b.size:
            raise ConfigurationError(f"Feature vector length mismatch: {a.size} and {b.size}.")
        return a, b


def masked(values: Union[np.ndarray, float], mask: np.ndarray) -> np.ndarray:
    """ Zero out all entries not covered by `mask`. """
    return np.where(mask, values, 0.)
