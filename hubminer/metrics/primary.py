# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import numpy as np
from scipy.sparse import csr_matrix
from sklearn.metrics import pairwise_distances

from ._base import PrimaryMetric, masked
from ..exceptions import ConfigurationError
from ..utils.check import is_acceptable

__all__ = [
    "MinkowskiMetric",
    "EuclideanMetric",
    "ManhattanMetric",
    "CosineMetric",
    "CanberraMetric",
    "BrayCurtisMetric",
    "TanimotoMetric",
]


class MinkowskiMetric(PrimaryMetric):
    """ Minkowski distance of order `p`, i.e. (sum |a_i - b_i|^p)^(1/p).

    Parameters
    ----------
    p : float, default = 2
        Order of the norm. Must be positive.
    """

    def __init__(self, p: float = 2):
        if p is None or p <= 0:
            raise ConfigurationError(f"Minkowski order p must be positive, got {p}.")
        self.p = p

    def _dist_many(self, a, B, mask):
        diff = masked(np.abs(a - B), mask)
        if self.p == 1:
            return diff.sum(axis=1)
        if self.p == 2:
            return np.sqrt(np.einsum("ij,ij->i", diff, diff))
        return np.sum(diff ** self.p, axis=1) ** (1. / self.p)

    def _dist_many_sparse(self, a, B):
        # Sparse-aware distances, if no component needs to be skipped
        if self.p in (1, 2) and np.all(is_acceptable(a)) and np.all(is_acceptable(B.data)):
            metric = "manhattan" if self.p == 1 else "euclidean"
            return pairwise_distances(csr_matrix(a.reshape(1, -1)), B, metric=metric).ravel()
        return super()._dist_many_sparse(a, B)

    def norm(self, a) -> float:
        """ p-norm of `a`, ignoring non-finite components. """
        a = np.asarray(a, dtype=np.float64).ravel()
        a = masked(np.abs(a), is_acceptable(a))
        return float(np.sum(a ** self.p) ** (1. / self.p))


class EuclideanMetric(MinkowskiMetric):

    def __init__(self):
        super().__init__(p=2)


class ManhattanMetric(MinkowskiMetric):

    def __init__(self):
        super().__init__(p=1)


class CosineMetric(PrimaryMetric):
    """ Cosine distance rescaled to [0, 1], i.e. (1 - cos(a, b)) / 2.

    Two zero vectors are at distance 0, a zero and a non-zero vector at distance 1.
    """
    eps = 1e-38

    def _dist_many(self, a, B, mask):
        dot = np.sum(masked(a * B, mask), axis=1)
        a_ok = is_acceptable(a)
        norm_a = np.sqrt(np.sum(masked(a * a, a_ok)))
        norm_B = np.sqrt(np.sum(masked(B * B, is_acceptable(B)), axis=1))
        nonzero_a = norm_a >= self.eps
        nonzero_B = norm_B >= self.eps
        with np.errstate(divide="ignore", invalid="ignore"):
            cos = np.where(nonzero_a & nonzero_B, dot / (norm_a * norm_B), 0.)
        cos = np.where(~nonzero_a & ~nonzero_B, 1., cos)
        cos = np.where(nonzero_a ^ nonzero_B, -1., cos)
        return np.clip((1. - cos) * 0.5, 0., 1.)


class CanberraMetric(PrimaryMetric):
    """ Canberra distance, sum |a_i - b_i| / (|a_i| + |b_i|) over components not both zero. """

    def _dist_many(self, a, B, mask):
        denominator = np.abs(a) + np.abs(B)
        valid = mask & (denominator > 0)
        with np.errstate(divide="ignore", invalid="ignore"):
            terms = np.abs(a - B) / denominator
        return np.sum(masked(terms, valid), axis=1)


class BrayCurtisMetric(PrimaryMetric):

    def _dist_many(self, a, B, mask):
        numerator = np.sum(masked(np.abs(a - B), mask), axis=1)
        denominator = np.sum(masked(np.abs(a) + np.abs(B), mask), axis=1)
        out = np.zeros_like(numerator)
        np.divide(numerator, denominator, out=out, where=denominator != 0)
        return out


class TanimotoMetric(PrimaryMetric):
    """ Tanimoto (generalized Jaccard) distance for non-negative count data.

    Distance is 1 - sum min(a_i, b_i) / (sum a_i + sum b_i - sum min(a_i, b_i)).
    """

    def _dist_many(self, a, B, mask):
        a_ok = is_acceptable(a)
        count_a = np.sum(masked(a, a_ok))
        count_B = np.sum(masked(B, is_acceptable(B)), axis=1)
        overlap = np.sum(masked(np.minimum(a, B), mask), axis=1)
        union = count_a + count_B - overlap
        out = np.zeros_like(overlap)
        np.divide(union - overlap, union, out=out, where=union != 0)
        return out
