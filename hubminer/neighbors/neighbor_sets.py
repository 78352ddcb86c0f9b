# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hubminer.

The :class:`NeighborSetFinder` computes a distance matrix, k-nearest neighbor sets,
and the neighbor occurrence (hubness) statistics derived from them.
"""
from __future__ import annotations
import logging
from typing import Optional, Union

import numpy as np
import numba
from scipy.sparse import csr_matrix
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from .distance_matrix import DistanceMatrix, compute_distance_matrix, _row_offset
from ..data.dataset import Dataset, UNLABELED, as_dataset
from ..exceptions import ConfigurationError
from ..metrics import get_metric
from ..utils.check import check_k, check_n_samples
from ..utils.multiprocessing import run_row_ranges, validate_n_jobs

__all__ = [
    "NeighborSetFinder",
]


@numba.jit(nopython=True, nogil=True)
def _insert_top_k(dist, k, exclude, out_ind, out_dist):
    """ Insertion-based selection of the k smallest entries of `dist`, skipping index `exclude`.

    Only strictly smaller distances displace a stored neighbor, so ties keep the lower index.
    NaN counts as infinitely far.
    """
    length = 0
    for j in range(dist.shape[0]):
        if j == exclude:
            continue
        d = dist[j]
        if d != d:
            d = np.inf
        if length < k:
            pos = length
            length += 1
        elif d < out_dist[k - 1]:
            pos = k - 1
        else:
            continue
        while pos > 0 and d < out_dist[pos - 1]:
            out_dist[pos] = out_dist[pos - 1]
            out_ind[pos] = out_ind[pos - 1]
            pos -= 1
        out_dist[pos] = d
        out_ind[pos] = j


@numba.jit(nopython=True, nogil=True)
def _neighbor_sets_for_rows(condensed, n, k, start, end, k_neighbors, k_distances, occurrence):
    row = np.empty(n, dtype=np.float64)
    for i in range(start, end):
        for j in range(i):
            row[j] = condensed[j * n - (j * (j + 1)) // 2 + i - j - 1]
        row[i] = 0.
        offset = i * n - (i * (i + 1)) // 2
        for j in range(i + 1, n):
            row[j] = condensed[offset + j - i - 1]
        _insert_top_k(row, k, i, k_neighbors[i], k_distances[i])
        for pos in range(k):
            occurrence[k_neighbors[i, pos]] += 1


def _entropy(counts: np.ndarray, total) -> float:
    counts = counts[counts > 0]
    if counts.size == 0:
        return 0.
    p = counts / total
    return float(-np.sum(p * np.log2(p)))


def _standardized_exp_weights(values: np.ndarray) -> np.ndarray:
    """ exp(-(v - mean(v)) / std(v)), or all ones for constant `values`. """
    values = values.astype(np.float64)
    std = values.std()
    if std <= 0 or not np.isfinite(std):
        return np.ones_like(values)
    return np.exp(-(values - values.mean()) / std)


class NeighborSetFinder(BaseEstimator):
    """ Exact k-nearest neighbor sets and neighbor occurrence statistics.

    The finder moves through three phases: after construction nothing is computed,
    :meth:`fit` computes (or accepts) the pairwise distance matrix, and
    :meth:`compute_neighbor_sets` derives the k-nearest neighbor sets together
    with the k-occurrence of every point, i.e. how often it appears in other
    points' neighbor sets. High k-occurrence indicates a hub, zero k-occurrence
    an anti-hub.

    Parameters
    ----------
    k : int or None, default = 5
        Neighborhood size. If not None, neighbor sets are computed in :meth:`fit`.
    metric : str or PrimaryMetric, default = "euclidean"
        Primary distance, see :func:`hubminer.metrics.get_metric`.
    metric_params : dict, optional
        Passed to the metric constructor, if `metric` is a name.
    n_jobs : int, default = 1
        Number of worker threads for distance and neighbor set computation.

        - `1`: Don't use multithreading.
        - `-1`: Use all CPUs
    verbose : int, default = 0
        If verbose > 0, show progress bars.

    Attributes
    ----------
    distance_matrix_ : DistanceMatrix
        Primary distances between all fitted points
    k_neighbors_ : ndarray of shape (n_samples, k)
        Indices of the k nearest neighbors, nearest first, never the point itself
    k_distances_ : ndarray of shape (n_samples, k)
        Distances to the k nearest neighbors, ascending
    k_occurrence_ : ndarray of shape (n_samples,)
        Number of neighbor sets each point occurs in. Sums to n_samples * k.
    k_good_occurrence_, k_bad_occurrence_ : ndarray of shape (n_samples,)
        Occurrences in neighbor sets of points with the same / a different label.
        Occurrences involving unlabeled points are neither good nor bad.
    reverse_neighbors_ : list of ndarray
        Indices of the points whose neighbor sets contain each point

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Hubs in space: Popular nearest neighbors in high-dimensional data.
            Journal of Machine Learning Research, 2010, 11, 2487-2531`
    .. [2] `Tomašev, N. & Mladenić, D.
            Hub miner: A hubness-aware machine learning library. 2014.`
    """

    def __init__(
            self,
            k: Optional[int] = 5,
            metric="euclidean",
            metric_params: dict = None,
            n_jobs: int = 1,
            verbose: int = 0,
    ):
        self.k = k
        self.metric = metric
        self.metric_params = metric_params
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None, distance_matrix: Union[DistanceMatrix, np.ndarray] = None) -> NeighborSetFinder:
        """ Compute the distance matrix and, if `k` is set, the neighbor sets.

        Parameters
        ----------
        X : Dataset or array-like of shape (n_samples, n_features)
            Vector data (dense or sparse)
        y : array-like of shape (n_samples,), optional
            Integer class labels, -1 for unlabeled objects
        distance_matrix : DistanceMatrix or square ndarray, optional
            Precomputed primary distances between the objects in `X`

        Returns
        -------
        self
        """
        dataset: Dataset = as_dataset(X, y)
        n = check_n_samples(dataset.n_samples)
        self.metric_ = get_metric(self.metric, **(self.metric_params or {}))
        self.n_jobs_ = validate_n_jobs(self.n_jobs)

        if distance_matrix is None:
            distance_matrix = compute_distance_matrix(
                dataset,
                metric=self.metric_,
                n_jobs=self.n_jobs_,
                verbose=self.verbose,
            )
        elif not isinstance(distance_matrix, DistanceMatrix):
            distance_matrix = DistanceMatrix.from_square(distance_matrix)
        if distance_matrix.n_samples != n:
            raise ConfigurationError(f"Distance matrix of {distance_matrix.n_samples} points "
                                     f"does not match the {n} points in the dataset.")
        self.dataset_ = dataset
        self.distance_matrix_ = distance_matrix
        self.n_samples_fit_ = n

        if self.k is not None:
            self.compute_neighbor_sets(self.k)
        return self

    @classmethod
    def from_neighbor_sets(cls, k_neighbors, k_distances, X=None, y=None, **kwargs) -> NeighborSetFinder:
        """ Wrap precomputed (e.g. approximate) neighbor sets.

        Without a distance matrix, methods requiring all pairwise distances are unavailable.
        If `X` is given, out-of-sample queries are supported.
        """
        k_neighbors = np.asarray(k_neighbors, dtype=np.int64)
        k_distances = np.asarray(k_distances, dtype=np.float64)
        if k_neighbors.shape != k_distances.shape or k_neighbors.ndim != 2:
            raise ConfigurationError(f"Neighbor indices {k_neighbors.shape} and distances "
                                     f"{k_distances.shape} must be 2D arrays of equal shape.")
        n, k = k_neighbors.shape
        check_n_samples(n)
        finder = cls(k=k, **kwargs)
        finder.metric_ = get_metric(finder.metric, **(finder.metric_params or {}))
        finder.n_jobs_ = validate_n_jobs(finder.n_jobs)
        if X is None:
            finder.dataset_ = Dataset(np.empty((n, 0)), y)
        else:
            finder.dataset_ = as_dataset(X, y)
        if finder.dataset_.n_samples != n:
            raise ConfigurationError(f"Got neighbor sets for {n} points, but {finder.dataset_.n_samples} points.")
        finder.distance_matrix_ = None
        finder.n_samples_fit_ = n
        finder.k_neighbors_ = k_neighbors
        finder.k_distances_ = k_distances
        finder.k_ = k
        finder.k_occurrence_ = np.bincount(k_neighbors.ravel(), minlength=n).astype(np.int64)
        finder._update_label_statistics()
        return finder

    # ------------------------------------------------------------------
    # Neighbor sets

    def compute_neighbor_sets(self, k: int) -> NeighborSetFinder:
        """ Find the k nearest neighbors of every fitted point and count k-occurrences.

        Row ranges are processed by worker threads. Each worker counts occurrences
        into a private array; the arrays are summed after all workers have finished.

        Parameters
        ----------
        k : int
            Neighborhood size, 0 < k < n_samples

        Returns
        -------
        self
        """
        check_is_fitted(self, "dataset_")
        if self.distance_matrix_ is None:
            raise ConfigurationError("Computing neighbor sets requires a distance matrix.")
        n = self.n_samples_fit_
        k = check_k(k, n)
        k_neighbors = np.zeros((n, k), dtype=np.int64)
        k_distances = np.full((n, k), np.inf, dtype=np.float64)
        condensed = self.distance_matrix_.condensed

        def neighbor_sets_for_rows(start: int, end: int) -> np.ndarray:
            occurrence = np.zeros(n, dtype=np.int64)
            _neighbor_sets_for_rows(condensed, n, k, start, end, k_neighbors, k_distances, occurrence)
            return occurrence

        logging.debug(f"Computing k={k} neighbor sets for {n} points.")
        partial_occurrences = run_row_ranges(neighbor_sets_for_rows, n_rows=n, n_jobs=self.n_jobs_)

        self.k_ = k
        self.k_neighbors_ = k_neighbors
        self.k_distances_ = k_distances
        self.k_occurrence_ = np.sum(partial_occurrences, axis=0).astype(np.int64)
        self._update_label_statistics()
        return self

    def _update_label_statistics(self):
        n = self.n_samples_fit_
        y = self.dataset_.y
        neighbors = self.k_neighbors_
        query = np.repeat(np.arange(n), neighbors.shape[1])
        flat = neighbors.ravel()
        labeled = (y[query] != UNLABELED) & (y[flat] != UNLABELED)
        same = labeled & (y[query] == y[flat])
        different = labeled & ~same
        self.k_good_occurrence_ = np.bincount(flat[same], minlength=n).astype(np.int64)
        self.k_bad_occurrence_ = np.bincount(flat[different], minlength=n).astype(np.int64)

        order = np.argsort(flat, kind="stable")
        split = np.cumsum(np.bincount(flat, minlength=n))[:-1]
        self.reverse_neighbors_ = np.split(query[order], split)

    def recalculate_for_smaller_k(self, k_small: int) -> NeighborSetFinder:
        """ Truncate the neighbor sets to `k_small` and recount all occurrence statistics.

        No distances are recomputed, as stored neighbors are sorted by distance.
        The result equals computing neighbor sets for `k_small` from scratch.
        """
        check_is_fitted(self, "k_neighbors_")
        if not np.issubdtype(type(k_small), np.integer) or not 0 < k_small <= self.k_:
            raise ConfigurationError(f"Smaller neighborhood size must be in [1, {self.k_}], got {k_small}.")
        self.k_neighbors_ = self.k_neighbors_[:, :k_small].copy()
        self.k_distances_ = self.k_distances_[:, :k_small].copy()
        self.k_ = int(k_small)
        self.k_occurrence_ = self.occurrence_for_k(k_small)
        self._update_label_statistics()
        return self

    def copy_with_smaller_k(self, k_small: int) -> NeighborSetFinder:
        """ New finder with truncated neighbor sets, sharing dataset and distance matrix. """
        check_is_fitted(self, "k_neighbors_")
        finder = NeighborSetFinder(**self.get_params())
        for attribute in ["metric_", "n_jobs_", "dataset_", "distance_matrix_", "n_samples_fit_",
                          "k_", "k_neighbors_", "k_distances_", "k_occurrence_"]:
            setattr(finder, attribute, getattr(self, attribute))
        finder.k = int(k_small)
        return finder.recalculate_for_smaller_k(k_small)

    def occurrence_for_k(self, k_small: int) -> np.ndarray:
        """ k-occurrence for a neighborhood size up to the current k, without altering the finder. """
        check_is_fitted(self, "k_neighbors_")
        if not 0 < k_small <= self.k_:
            raise ConfigurationError(f"Neighborhood size must be in [1, {self.k_}], got {k_small}.")
        return np.bincount(self.k_neighbors_[:, :k_small].ravel(),
                           minlength=self.n_samples_fit_).astype(np.int64)

    def occurrences_all_k(self) -> np.ndarray:
        """ k-occurrence for every neighborhood size; column j holds the counts for k = j + 1. """
        check_is_fitted(self, "k_neighbors_")
        n = self.n_samples_fit_
        per_position = np.stack([np.bincount(self.k_neighbors_[:, j], minlength=n)
                                 for j in range(self.k_)], axis=1)
        return np.cumsum(per_position, axis=1).astype(np.int64)

    def kneighbors(self, X=None, n_neighbors: int = None, return_distance: bool = True):
        """ Find the nearest fitted points of query objects.

        Parameters
        ----------
        X : array-like of shape (n_query, n_features), optional
            Query vectors. If None, return the neighbors of the fitted points,
            which never contain the point itself.
        n_neighbors : int, optional
            Defaults to the current `k`
        return_distance : bool

        Returns
        -------
        neigh_dist : ndarray of shape (n_query, n_neighbors)
            Only present if `return_distance` is True
        neigh_ind : ndarray of shape (n_query, n_neighbors)
        """
        check_is_fitted(self, "dataset_")
        if n_neighbors is None:
            n_neighbors = getattr(self, "k_", self.k)
        if X is None:
            check_is_fitted(self, "k_neighbors_")
            if not 0 < n_neighbors <= self.k_:
                raise ConfigurationError(f"n_neighbors must be in [1, {self.k_}] for the fitted points, "
                                         f"got {n_neighbors}.")
            neigh_ind = self.k_neighbors_[:, :n_neighbors]
            neigh_dist = self.k_distances_[:, :n_neighbors]
        else:
            dist = self.query_distances(X)
            neigh_dist, neigh_ind = self.kneighbors_from_distances(dist, n_neighbors)
        if return_distance:
            return neigh_dist, neigh_ind
        return neigh_ind

    def query_distances(self, X) -> np.ndarray:
        """ Primary distances from query vectors to all fitted points, shape (n_query, n_samples). """
        check_is_fitted(self, "dataset_")
        query: Dataset = as_dataset(X)
        if query.n_samples and query.n_features != self.dataset_.n_features:
            raise ConfigurationError(f"Query vectors have {query.n_features} features, "
                                     f"fitted data has {self.dataset_.n_features}.")
        dist = np.empty((query.n_samples, self.n_samples_fit_), dtype=np.float64)
        indexed = self.dataset_.X
        for i in tqdm(range(query.n_samples), desc="Query distances", disable=self.verbose < 1):
            q = query.X[i].toarray().ravel() if query.is_sparse else query.X[i]
            dist[i, :] = self.metric_.dist_many(q, indexed)
        return dist

    def kneighbors_from_distances(self, dist, n_neighbors: int = None, exclude=None):
        """ Select nearest neighbors from rows of distances to all fitted points.

        Parameters
        ----------
        dist : array-like of shape (n_query, n_samples)
        n_neighbors : int, optional
            Defaults to the current `k`
        exclude : array-like of shape (n_query,), optional
            Index to skip per query, e.g. the query itself. -1 skips nothing.

        Returns
        -------
        neigh_dist, neigh_ind : ndarray of shape (n_query, n_neighbors)
        """
        dist = np.atleast_2d(np.asarray(dist, dtype=np.float64))
        n_query, n = dist.shape
        if n_neighbors is None:
            n_neighbors = getattr(self, "k_", self.k)
        if exclude is None:
            exclude = np.full(n_query, -1, dtype=np.int64)
        n_candidates = n - int(np.any(np.asarray(exclude) >= 0))
        if n_neighbors is None or not 0 < n_neighbors <= n_candidates:
            raise ConfigurationError(f"n_neighbors must be in [1, {n_candidates}], got {n_neighbors}.")
        neigh_ind = np.zeros((n_query, n_neighbors), dtype=np.int64)
        neigh_dist = np.full((n_query, n_neighbors), np.inf, dtype=np.float64)
        for i in range(n_query):
            _insert_top_k(np.ascontiguousarray(dist[i]), n_neighbors, int(exclude[i]), neigh_ind[i], neigh_dist[i])
        return neigh_dist, neigh_ind

    def average_k_distance(self, k: int = None) -> np.ndarray:
        """ Mean distance of every point to its k nearest neighbors. """
        check_is_fitted(self, "k_neighbors_")
        k = self.k_ if k is None else k
        if not 0 < k <= self.k_:
            raise ConfigurationError(f"Neighborhood size must be in [1, {self.k_}], got {k}.")
        return self.k_distances_[:, :k].mean(axis=1)

    def k_cooccurrences(self, k: int = None) -> DistanceMatrix:
        """ How often each pair of points occurs together in a neighbor set.

        Returns
        -------
        cooccurrence : DistanceMatrix
            Pair counts in the upper-triangular layout
        """
        check_is_fitted(self, "k_neighbors_")
        k = self.k_ if k is None else k
        n = self.n_samples_fit_
        first, second = np.triu_indices(k, k=1)
        neighbors = self.k_neighbors_[:, :k]
        a = neighbors[:, first].ravel()
        b = neighbors[:, second].ravel()
        lo, hi = np.minimum(a, b), np.maximum(a, b)
        counts = np.zeros(n * (n - 1) // 2, dtype=np.float64)
        np.add.at(counts, _row_offset(lo, n) + hi - lo - 1, 1.)
        return DistanceMatrix(counts, n)

    def k_cooccurrence_graph(self, k: int = None) -> csr_matrix:
        """ Symmetric sparse matrix of neighbor set co-occurrence counts. """
        counts = self.k_cooccurrences(k)
        return csr_matrix(counts.to_square())

    # ------------------------------------------------------------------
    # Hubs and anti-hubs

    def frequent_at_least(self, threshold: int) -> np.ndarray:
        """ Indices of points with k-occurrence >= `threshold`. """
        check_is_fitted(self, "k_occurrence_")
        return np.flatnonzero(self.k_occurrence_ >= threshold)

    def anti_hubs(self, threshold: int = 0) -> np.ndarray:
        """ Indices of points with k-occurrence <= `threshold`. """
        check_is_fitted(self, "k_occurrence_")
        return np.flatnonzero(self.k_occurrence_ <= threshold)

    def hubs(self, hub_size: float = 2.) -> np.ndarray:
        """ Indices of points with k-occurrence > hub_size * k. """
        check_is_fitted(self, "k_occurrence_")
        return np.flatnonzero(self.k_occurrence_ > hub_size * self.k_)

    def hubness_statistics(self) -> dict:
        """ Mean and standard deviation of the occurrence counts.

        Covers total, good, bad, good minus bad, and relative good minus bad
        occurrence. Relative values of anti-hubs count as 1.
        """
        check_is_fitted(self, "k_occurrence_")
        occurrence = self.k_occurrence_.astype(np.float64)
        good = self.k_good_occurrence_.astype(np.float64)
        bad = self.k_bad_occurrence_.astype(np.float64)
        difference = good - bad
        relative = np.ones_like(difference)
        np.divide(difference, occurrence, out=relative, where=occurrence > 0)
        stats = {}
        for name, values in [("occurrence", occurrence),
                             ("good_occurrence", good),
                             ("bad_occurrence", bad),
                             ("good_minus_bad", difference),
                             ("relative_good_minus_bad", relative)]:
            stats[f"mean_{name}"] = float(values.mean())
            stats[f"std_{name}"] = float(values.std())
        return stats

    # ------------------------------------------------------------------
    # Class-conditional statistics

    def _n_classes(self, n_classes: Optional[int]) -> int:
        if n_classes is None:
            n_classes = self.dataset_.n_classes
        if n_classes < 1:
            raise ConfigurationError("Class-conditional statistics require labeled data.")
        return int(n_classes)

    def class_neighbor_relation(self, n_classes: int = None, include_self: bool = False,
                                sample_weight: np.ndarray = None) -> np.ndarray:
        """ Class-conditional occurrence counts.

        Entry (c, j) counts how often point j is among the neighbors of a point of class c.

        Parameters
        ----------
        n_classes : int, optional
            Defaults to the number of classes in the fitted labels
        include_self : bool
            Also count every labeled point as its own neighbor
        sample_weight : ndarray of shape (n_samples,), optional
            Each occurrence counts with the weight of the query point

        Returns
        -------
        relation : ndarray of shape (n_classes, n_samples)
        """
        check_is_fitted(self, "k_neighbors_")
        n_classes = self._n_classes(n_classes)
        n, k = self.k_neighbors_.shape
        y = self.dataset_.y
        weight = np.ones(n) if sample_weight is None else np.asarray(sample_weight, dtype=np.float64)
        relation = np.zeros((n_classes, n), dtype=np.float64)
        labeled = y != UNLABELED
        query = np.repeat(np.flatnonzero(labeled), k)
        np.add.at(relation, (y[query], self.k_neighbors_[labeled].ravel()), weight[query])
        if include_self:
            np.add.at(relation, (y[labeled], np.flatnonzero(labeled)), weight[labeled])
        return relation

    def fuzzy_class_neighbor_relation(self, n_classes: int = None, smoothing: float = 0.001,
                                      include_self: bool = True) -> np.ndarray:
        """ Laplace-smoothed class membership estimates from occurrences.

        Entry (c, j) is (count + smoothing) / (k-occurrence_j + 1 + n_classes * smoothing).
        """
        n_classes = self._n_classes(n_classes)
        relation = self.class_neighbor_relation(n_classes, include_self=include_self)
        denominator = self.k_occurrence_ + 1. + n_classes * smoothing
        return (relation + smoothing) / denominator

    def class_to_class_counts(self, n_classes: int = None, include_self: bool = False) -> np.ndarray:
        """ Entry (c, c') counts occurrences of class-c neighbors for queries of class c'. """
        check_is_fitted(self, "k_neighbors_")
        n_classes = self._n_classes(n_classes)
        y = self.dataset_.y
        labeled = y != UNLABELED
        query_labels = np.repeat(y, self.k_)
        neighbor_labels = y[self.k_neighbors_.ravel()]
        both = (query_labels != UNLABELED) & (neighbor_labels != UNLABELED)
        counts = np.zeros((n_classes, n_classes), dtype=np.float64)
        np.add.at(counts, (neighbor_labels[both], query_labels[both]), 1.)
        if include_self:
            np.add.at(counts, (y[labeled], y[labeled]), 1.)
        return counts

    def class_to_class_priors(self, n_classes: int = None, smoothing: float = 0.001,
                              include_self: bool = True) -> np.ndarray:
        """ Smoothed probability that a neighbor of class c occurs for a query of class c'.

        Returns
        -------
        priors : ndarray of shape (n_classes, n_classes)
            Rows are neighbor classes, columns query classes. Each row sums to 1.
        """
        n_classes = self._n_classes(n_classes)
        counts = self.class_to_class_counts(n_classes, include_self=include_self)
        return (counts + smoothing) / (counts.sum(axis=1, keepdims=True) + n_classes * smoothing)

    def k_entropies(self, n_classes: int = None, k: int = None) -> np.ndarray:
        """ Entropy of the label distribution within each neighbor set. """
        check_is_fitted(self, "k_neighbors_")
        n_classes = self._n_classes(n_classes)
        k = self.k_ if k is None else min(k, self.k_)
        labels = self.dataset_.y[self.k_neighbors_[:, :k]]
        entropies = np.zeros(self.n_samples_fit_)
        for i in range(self.n_samples_fit_):
            row = labels[i][labels[i] != UNLABELED]
            entropies[i] = _entropy(np.bincount(row, minlength=n_classes).astype(np.float64), k)
        return entropies

    def reverse_neighbor_entropies(self, n_classes: int = None, class_weights=None) -> np.ndarray:
        """ Entropy of the label distribution among the reverse neighbors of each point.

        Points with at most one reverse neighbor have zero entropy.

        Parameters
        ----------
        n_classes : int, optional
        class_weights : array-like of shape (n_classes,), optional
            Reweight class frequencies before computing the entropy
            (weights are bounded below by 1e-7).
        """
        check_is_fitted(self, "reverse_neighbors_")
        n_classes = self._n_classes(n_classes)
        y = self.dataset_.y
        if class_weights is not None:
            class_weights = np.maximum(np.asarray(class_weights, dtype=np.float64), 1e-7)
        entropies = np.zeros(self.n_samples_fit_)
        for i, reverse in enumerate(self.reverse_neighbors_):
            if reverse.size <= 1:
                continue
            labels = y[reverse]
            labels = labels[labels != UNLABELED]
            counts = np.bincount(labels, minlength=n_classes).astype(np.float64)
            if class_weights is None:
                entropies[i] = _entropy(counts, reverse.size)
            else:
                weighted = class_weights * counts / reverse.size
                total = weighted.sum()
                entropies[i] = _entropy(weighted, total) if total > 0 else 0.
        return entropies

    def label_mismatch_percentages_all_k(self) -> np.ndarray:
        """ Fraction of neighbors with a label different from the query's, for k = 1, ..., current k. """
        check_is_fitted(self, "k_neighbors_")
        y = self.dataset_.y
        mismatch = (y[self.k_neighbors_] != y[:, np.newaxis]).sum(axis=0)
        n = self.n_samples_fit_
        return np.cumsum(mismatch) / (n * np.arange(1, self.k_ + 1))

    def error_inducing_hubness(self, k: int = None) -> np.ndarray:
        """ Bad occurrences in neighbor sets whose majority vote misclassifies the query. """
        check_is_fitted(self, "k_neighbors_")
        k = self.k_ if k is None else k
        y = self.dataset_.y
        n_classes = max(self.dataset_.n_classes, 1)
        error_occurrence = np.zeros(self.n_samples_fit_)
        for i in range(self.n_samples_fit_):
            if y[i] == UNLABELED:
                continue
            neighbors = self.k_neighbors_[i, :k]
            labels = y[neighbors]
            votes = np.bincount(labels[labels != UNLABELED], minlength=n_classes)
            if np.argmax(votes) != y[i]:
                bad = neighbors[(labels != y[i]) & (labels != UNLABELED)]
                np.add.at(error_occurrence, bad, 1.)
        return error_occurrence

    # ------------------------------------------------------------------
    # Hubness-based instance weights

    def hw_knn_weights(self) -> np.ndarray:
        """ Instance weights exp(-h_b), h_b being the standardized bad occurrence (hw-kNN). """
        check_is_fitted(self, "k_bad_occurrence_")
        return _standardized_exp_weights(self.k_bad_occurrence_)

    def penalize_hubness_weights(self) -> np.ndarray:
        """ Instance weights exp(-h), h being the standardized occurrence. """
        check_is_fitted(self, "k_occurrence_")
        return _standardized_exp_weights(self.k_occurrence_)

    def simhub_weights(self, n_classes: int = None, theta: float = 0.) -> np.ndarray:
        """ Weights of the simhub shared-neighbor similarity.

        The informativeness log2(n / (occurrence + 1)) is multiplied with the
        purity log2(n_classes) - reverse neighbor entropy + theta, and the
        result divided by max(max |weight|, 1).
        """
        check_is_fitted(self, "k_occurrence_")
        n_classes = self._n_classes(n_classes)
        n = self.n_samples_fit_
        informativeness = np.log2(n / (self.k_occurrence_ + 1.))
        purity = np.log2(n_classes) - self.reverse_neighbor_entropies(n_classes) + theta
        weights = informativeness * purity
        return weights / max(np.abs(weights).max(initial=0.), 1.)
