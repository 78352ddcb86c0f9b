# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
import logging
from typing import Tuple

import numpy as np
from scipy.sparse.linalg import svds
from sklearn.utils.validation import check_random_state

from ..data.dataset import Dataset, as_dataset
from ..exceptions import ConfigurationError
from ..metrics import get_metric
from ..utils.check import check_k, check_n_samples

__all__ = [
    "approximate_neighbor_sets",
]


def _top_k(candidates: np.ndarray, dist: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
    """ k best (distance, index) pairs, ties broken by lower index, padded with (inf, -1). """
    order = np.lexsort((candidates, dist))[:k]
    out_dist = np.full(k, np.inf)
    out_ind = np.full(k, -1, dtype=np.int64)
    out_dist[:order.size] = dist[order]
    out_ind[:order.size] = candidates[order]
    return out_dist, out_ind


class _LanczosBisection:
    """ Divide and conquer kNN graph construction [1]_.

    References
    ----------
    .. [1] Chen, J., Fang, H. & Saad, Y. (2009). Fast approximate kNN graph
           construction for high dimensional data via recursive Lanczos bisection.
           Journal of Machine Learning Research, 10, 1989-2012.
    """

    def __init__(self, dataset: Dataset, metric, k: int, alpha: float, division_threshold: int, random_state):
        self.dataset = dataset
        self.X = dataset.X.toarray() if dataset.is_sparse else dataset.X
        self.metric = metric
        self.k = k
        self.alpha = alpha
        self.division_threshold = division_threshold
        self.random_state = random_state
        self.n_distance_evaluations = 0

    def _distances(self, i: int, others: np.ndarray) -> np.ndarray:
        self.n_distance_evaluations += others.size
        return self.metric.dist_many(self.X[i], self.X[others])

    def _exact(self, indices: np.ndarray) -> dict:
        result = {}
        for i in indices:
            others = indices[indices != i]
            result[i] = _top_k(others, self._distances(i, others), self.k)
        return result

    def _bisect(self, indices: np.ndarray):
        """ Project onto the largest singular vector of the centered subset. """
        Xs = self.X[indices]
        Xs = Xs - Xs.mean(axis=0)
        Xs = np.where(np.isfinite(Xs), Xs, 0.)
        if min(Xs.shape) > 1:
            v0 = self.random_state.uniform(size=min(Xs.shape))
            _, _, direction = svds(Xs, k=1, v0=v0)
            projection = Xs @ direction.ravel()
        else:
            projection = Xs[:, 0] if Xs.shape[1] else np.zeros(Xs.shape[0])
        right = projection >= 0
        if right.all() or not right.any():
            right = projection >= np.median(projection)
            if right.all() or not right.any():
                return None
        magnitude = np.abs(projection)
        n_glue = max(1, int(np.ceil(self.alpha * indices.size)))
        middle = np.argsort(magnitude, kind="stable")[:n_glue]
        return indices[~right], indices[right], indices[np.sort(middle)]

    def conquer(self, indices: np.ndarray) -> dict:
        if indices.size <= self.division_threshold:
            return self._exact(indices)
        split = self._bisect(indices)
        if split is None:
            return self._exact(indices)
        left, right, middle = split
        result = self.conquer(left)
        result.update(self.conquer(right))
        glued = self.conquer(middle)
        for i, (dist, ind) in glued.items():
            own_dist, own_ind = result[i]
            candidates = np.concatenate([own_ind, ind])
            dist_all = np.concatenate([own_dist, dist])
            valid = candidates >= 0
            candidates, unique = np.unique(candidates[valid], return_index=True)
            result[i] = _top_k(candidates, dist_all[valid][unique], self.k)
        self._refine(result)
        return result

    def _refine(self, result: dict):
        """ Look for better neighbors among the neighbors of neighbors. """
        for i, (dist, ind) in list(result.items()):
            known = set(ind[ind >= 0].tolist())
            known.add(i)
            second = [result[j][1] for j in ind if j >= 0 and j in result]
            if not second:
                continue
            candidates = np.unique(np.concatenate(second))
            candidates = np.array([c for c in candidates if c >= 0 and c not in known], dtype=np.int64)
            if candidates.size == 0:
                continue
            all_ind = np.concatenate([ind[ind >= 0], candidates])
            all_dist = np.concatenate([dist[ind >= 0], self._distances(i, candidates)])
            result[i] = _top_k(all_ind, all_dist, self.k)


def approximate_neighbor_sets(
        X,
        k: int = 5,
        metric="euclidean",
        metric_params: dict = None,
        alpha: float = 0.3,
        division_threshold: int = None,
        random_state=None,
) -> Tuple[np.ndarray, np.ndarray]:
    """ Approximate k-nearest neighbor sets by recursive Lanczos bisection.

    Data is recursively split along its principal direction. Neighbor sets
    are computed exactly in small leaves, merged with the sets found in an
    overlapping glue subset, and refined with neighbors of neighbors.
    Far fewer than n^2 distances are evaluated for large n.

    Parameters
    ----------
    X : Dataset or array-like of shape (n_samples, n_features)
    k : int
        Neighborhood size
    metric : str or PrimaryMetric
    metric_params : dict, optional
    alpha : float, default = 0.3
        Fraction of points in the glue subset at each split, in (0, 1)
    division_threshold : int, optional
        Subsets up to this size are solved exactly. Defaults to max(5 k, 100).
    random_state : int, RandomState instance or None
        Seeds the Lanczos start vector

    Returns
    -------
    k_distances, k_neighbors : ndarray of shape (n_samples, k)
        Sorted by ascending distance. Usable with
        :meth:`NeighborSetFinder.from_neighbor_sets`.
    """
    dataset = as_dataset(X)
    n = check_n_samples(dataset.n_samples)
    k = check_k(k, n)
    if not 0 < alpha < 1:
        raise ConfigurationError(f"Glue fraction alpha must be in (0, 1), got {alpha}.")
    if division_threshold is None:
        division_threshold = max(5 * k, 100)
    elif division_threshold <= k:
        raise ConfigurationError(f"division_threshold must exceed k={k}, got {division_threshold}.")

    bisection = _LanczosBisection(
        dataset,
        metric=get_metric(metric, **(metric_params or {})),
        k=k,
        alpha=alpha,
        division_threshold=division_threshold,
        random_state=check_random_state(random_state),
    )
    result = bisection.conquer(np.arange(n))

    k_distances = np.empty((n, k))
    k_neighbors = np.empty((n, k), dtype=np.int64)
    for i in range(n):
        dist, ind = result[i]
        # Points isolated in tiny leaves may lack candidates
        if np.any(ind < 0):
            others = np.delete(np.arange(n), i)
            dist, ind = _top_k(others, bisection._distances(i, others), k)
        k_distances[i], k_neighbors[i] = dist, ind

    logging.info(f"Approximate {k}-NN sets of {n} points from "
                 f"{bisection.n_distance_evaluations} distance evaluations.")
    return k_distances, k_neighbors
