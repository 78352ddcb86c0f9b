# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from ._base import SecondaryDistance
from ..exceptions import ConfigurationError
from ..neighbors import DistanceMatrix, NeighborSetFinder, SharedNeighborFinder

__all__ = [
    "SharedNearestNeighbors",
]


class SharedNearestNeighbors(SecondaryDistance, BaseEstimator):
    """ Hubness-aware shared nearest neighbor distance.

    The distance of two points is ``k - s``, where s is the (weighted) number
    of neighbors their k-nearest neighbor sets share.

    Parameters
    ----------
    k: int, default = 5
        Size of the neighbor sets that are compared
    weighting : str, default = "none"
        Weight of each shared neighbor, see :class:`hubminer.neighbors.SharedNeighborFinder`.
        Hubness-based weights may exceed 1 for anti-hubs, so that distances can become negative.
    theta : float, default = 0
        Offset for "hubness_information" weights
    metric : str or PrimaryMetric
        Primary metric, used if vector data is passed to :meth:`fit`
    n_jobs : int, optional
        Number of worker threads
    verbose: int, default = 0

    References
    ----------
    .. [1] Jarvis, R. A. & Patrick, E. A. (1973). Clustering using a similarity
           measure based on shared near neighbors. IEEE Transactions on Computers.
    .. [2] Tomašev, N. & Mladenić, D. (2012). Hubness-aware shared neighbor
           distances for high-dimensional k-nearest neighbor classification.
           Knowledge and Information Systems, 39, 89-122.
    """

    def __init__(self, k: int = 5, weighting: str = "none", theta: float = 0.,
                 metric="euclidean", n_jobs: int = None, verbose: int = 0):
        super().__init__(metric=metric, n_jobs=n_jobs, verbose=verbose)
        self.k = k
        self.weighting = weighting
        self.theta = theta

    @property
    def requires_k(self):
        return self.k

    def _fit(self, finder: NeighborSetFinder):
        if self.k is None or self.k < 1:
            raise ConfigurationError(f"Shared neighbor k must be positive, got {self.k}.")
        self.shared_finder_ = SharedNeighborFinder(
            finder,
            k=self.k,
            weighting=self.weighting,
            theta=self.theta,
            n_jobs=self.n_jobs_,
        )

    def transform(self, X=None) -> DistanceMatrix:
        """ Shared neighbor distances; the full matrix is built from all shared counts at once. """
        check_is_fitted(self, "shared_finder_")
        if X is not None:
            return self.transform_query(X)
        counts = self.shared_finder_.compute_shared_counts()
        return DistanceMatrix(self.k - counts.condensed, counts.n_samples)

    def _pair_values(self, i, others, dist):
        neighbors = self.finder_.k_neighbors_[:, :self.k]
        return np.array([self.k - self.shared_finder_.count_shared(neighbors[i], neighbors[j])
                         for j in others])

    def _query_values(self, query_dist):
        _, query_neighbors = self.finder_.kneighbors_from_distances(query_dist, self.k)
        return self.k - self.shared_finder_.count_shared_queries(query_neighbors)
