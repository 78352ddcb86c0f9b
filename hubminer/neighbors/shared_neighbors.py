# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import numpy as np
from scipy.sparse import csr_matrix, diags
from sklearn.utils.validation import check_is_fitted

from .distance_matrix import DistanceMatrix, _row_offset
from .neighbor_sets import NeighborSetFinder
from ..exceptions import ConfigurationError
from ..utils.multiprocessing import run_row_ranges

__all__ = [
    "SharedNeighborFinder",
    "VALID_WEIGHTINGS",
]

#: Hubness-based weighting of shared neighbors
VALID_WEIGHTINGS = [
    "none",
    "hubness",
    "bad_hubness",
    "hubness_information",
    "imbalance",
]


class SharedNeighborFinder:
    """ Count (weighted) shared k-nearest neighbors between all pairs of points.

    Parameters
    ----------
    finder : NeighborSetFinder
        Fitted finder providing the neighbor sets
    k : int, optional
        Neighborhood size for the shared neighbor sets. Defaults to the finder's k.
    weighting : str, default = "none"
        Per-neighbor weight, one of `VALID_WEIGHTINGS`:

        - "none": every shared neighbor counts 1
        - "hubness": penalize frequent neighbors, exp(-standardized occurrence)
        - "bad_hubness": penalize neighbors with label mismatches (hw-kNN weights)
        - "hubness_information": simhub weights from occurrence and reverse neighbor purity
        - "imbalance": simhub variant with class-relevance weighted purity
    theta : float, default = 0
        Purity offset of the "hubness_information" weights
    k_classification : int, optional
        Neighborhood size the class relevance for "imbalance" is measured with.
        Defaults to the finder's k.
    n_jobs : int, optional
        Worker threads, defaults to the finder's

    References
    ----------
    .. [1] Tomašev, N. & Mladenić, D. (2012). Hubness-aware shared neighbor
           distances for high-dimensional k-nearest neighbor classification.
           Knowledge and Information Systems, 39, 89-122.
    """

    def __init__(self, finder: NeighborSetFinder, k: int = None, weighting: str = "none",
                 theta: float = 0., k_classification: int = None, n_jobs: int = None):
        if finder is None:
            raise ConfigurationError("SharedNeighborFinder requires a fitted NeighborSetFinder.")
        check_is_fitted(finder, "k_neighbors_")
        if weighting is None:
            weighting = "none"
        if weighting not in VALID_WEIGHTINGS:
            raise ConfigurationError(f"Unknown shared neighbor weighting '{weighting}'. "
                                     f"Must be one of {VALID_WEIGHTINGS}.")
        k = finder.k_ if k is None else k
        if not 0 < k <= finder.k_:
            raise ConfigurationError(f"Shared neighbor k must be in [1, {finder.k_}], got {k}.")
        self.finder = finder
        self.k = int(k)
        self.weighting = weighting
        self.theta = theta
        self.k_classification = finder.k_ if k_classification is None else k_classification
        self.n_jobs = finder.n_jobs_ if n_jobs is None else n_jobs
        self.instance_weights_ = self._instance_weights()

    def _instance_weights(self) -> np.ndarray:
        finder = self.finder
        if self.weighting == "none":
            return np.ones(finder.n_samples_fit_)
        if self.weighting == "hubness":
            return finder.penalize_hubness_weights()
        if self.weighting == "bad_hubness":
            return finder.hw_knn_weights()
        if self.weighting == "hubness_information":
            return finder.simhub_weights(theta=self.theta)
        return self.imbalance_weights()

    def imbalance_weights(self, n_classes: int = None) -> np.ndarray:
        """ Simhub-style weights with reverse neighbor purity weighted by class relevance.

        A class is relevant if its points often have neighbors from other classes,
        i.e. relevance_c = 1 - (c->c occurrences) / (k * |c|).
        """
        finder = self.finder
        if n_classes is None:
            n_classes = finder.dataset_.n_classes
        n = finder.n_samples_fit_
        k_classification = min(self.k_classification, finder.k_)
        class_counts = np.bincount(finder.dataset_.y[finder.dataset_.y >= 0], minlength=n_classes)
        sub_finder = finder if k_classification == finder.k_ else finder.copy_with_smaller_k(k_classification)
        class_to_class = sub_finder.class_to_class_counts(n_classes)
        relevance = 1. - ((np.diag(class_to_class) + 1e-5) / (k_classification * class_counts + 1e-5))
        entropies = finder.reverse_neighbor_entropies(n_classes, class_weights=relevance)

        informativeness = np.log2(n / (finder.k_occurrence_ + 1.))
        informativeness /= max(np.abs(informativeness).max(initial=0.), 1.)
        purity = np.log2(n_classes) - entropies
        return informativeness * purity

    def _incidence(self) -> csr_matrix:
        n = self.finder.n_samples_fit_
        neighbors = self.finder.k_neighbors_[:, :self.k]
        indptr = np.arange(0, n * self.k + 1, self.k)
        return csr_matrix((np.ones(n * self.k), neighbors.ravel(), indptr), shape=(n, n))

    def compute_shared_counts(self) -> DistanceMatrix:
        """ Weighted number of shared neighbors for all pairs, by row range in worker threads.

        Returns
        -------
        shared_counts : DistanceMatrix
            Counts in the upper-triangular layout
        """
        n = self.finder.n_samples_fit_
        A = self._incidence()
        weighted_T = (A @ diags(self.instance_weights_)).T.tocsc()
        condensed = np.empty(n * (n - 1) // 2, dtype=np.float64)

        def count_rows(start: int, end: int):
            block = (A[start:end] @ weighted_T).toarray()
            for i in range(start, end):
                condensed[_row_offset(i, n):_row_offset(i + 1, n)] = block[i - start, i + 1:]

        run_row_ranges(count_rows, n_rows=n, n_jobs=self.n_jobs)
        self.shared_counts_ = DistanceMatrix(condensed, n)
        return self.shared_counts_

    def count_shared(self, neighbors_first, neighbors_second) -> float:
        """ Weighted count of indices occurring in both neighbor lists. """
        shared = np.intersect1d(np.asarray(neighbors_first), np.asarray(neighbors_second))
        shared = shared[shared >= 0]
        return float(self.instance_weights_[shared].sum())

    def count_shared_query(self, query_dist: np.ndarray, j: int) -> float:
        """ Shared neighbor count between an out-of-sample query and fitted point `j`.

        Parameters
        ----------
        query_dist : ndarray of shape (n_samples,)
            Primary distances of the query to all fitted points
        j : int
            Index of a fitted point
        """
        _, query_neighbors = self.finder.kneighbors_from_distances(query_dist.reshape(1, -1), self.k)
        return self.count_shared(query_neighbors[0], self.finder.k_neighbors_[j, :self.k])

    def count_shared_queries(self, query_neighbors) -> np.ndarray:
        """ Weighted shared neighbor counts between query neighbor sets and all fitted points.

        Parameters
        ----------
        query_neighbors : array-like of shape (n_query, k)
            Indices of the k nearest fitted points of each query

        Returns
        -------
        counts : ndarray of shape (n_query, n_samples)
        """
        query_neighbors = np.atleast_2d(np.asarray(query_neighbors, dtype=np.int64))
        n_query, k = query_neighbors.shape
        n = self.finder.n_samples_fit_
        indptr = np.arange(0, n_query * k + 1, k)
        Q = csr_matrix((self.instance_weights_[query_neighbors.ravel()], query_neighbors.ravel(), indptr),
                       shape=(n_query, n))
        return (Q @ self._incidence().T).toarray()
