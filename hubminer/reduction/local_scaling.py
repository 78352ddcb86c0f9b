# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator

from ._base import SecondaryDistance
from ..exceptions import ConfigurationError
from ..neighbors import NeighborSetFinder

__all__ = [
    "LocalScaling",
    "NICDM",
]


class LocalScaling(SecondaryDistance, BaseEstimator):
    """ Hubness reduction with Local Scaling [1]_.

    Parameters
    ----------
    k: int, default = 5
        Number of neighbors to consider for the rescaling
    method: 'standard' or 'nicdm', default = 'standard'
        Perform local scaling with the specified variant:

        - 'standard' or 'ls' rescale distances using the distance to the k-th neighbor,
          ``1 - exp(-d^2 / (r_x r_y))``
        - 'nicdm' rescales distances using the mean distance to the k neighbors,
          ``d / sqrt(m_x m_y)``
    metric : str or PrimaryMetric
        Primary metric, used if vector data is passed to :meth:`fit`
    n_jobs : int, optional
        Number of worker threads
    verbose: int, default = 0
        If verbose > 0, show progress bar.

    References
    ----------
    .. [1] Schnitzer, D., Flexer, A., Schedl, M., & Widmer, G. (2012).
           Local and global scaling reduce hubs in space. The Journal of Machine
           Learning Research, 13(1), 2871–2902.
    """

    def __init__(self, k: int = 5, method: str = "standard", metric="euclidean",
                 n_jobs: int = None, verbose: int = 0):
        super().__init__(metric=metric, n_jobs=n_jobs, verbose=verbose)
        self.k = k
        self.method = method

    @property
    def requires_k(self):
        return self.k

    def _fit(self, finder: NeighborSetFinder):
        if self.method in ["ls", "standard"]:
            self.effective_method_ = "ls"
        elif self.method == "nicdm":
            self.effective_method_ = "nicdm"
        else:
            raise ConfigurationError(f"Unknown local scaling method: {self.method}. "
                                     f"Must be one of: 'ls', 'standard', 'nicdm'.")
        k = self.k
        if k is None or not 0 < k <= finder.k_:
            raise ConfigurationError(f"Local scaling neighbor parameter k={k} must be in "
                                     f"[1, {finder.k_}], that is, at most the finder's k.")
        if self.effective_method_ == "ls":
            self.r_indexed_ = finder.k_distances_[:, k - 1].copy()
        else:
            self.r_indexed_ = finder.average_k_distance(k)

    def _local_statistic(self, query_dist: np.ndarray) -> np.ndarray:
        """ Per-query scale: k-th smallest distance (LS) or mean of the k smallest (NICDM). """
        k = self.k
        nearest = np.partition(query_dist, k - 1, axis=1)[:, :k]
        if self.effective_method_ == "ls":
            return nearest.max(axis=1)
        return nearest.mean(axis=1)

    def _rescale(self, dist: np.ndarray, r_x, r_y: np.ndarray) -> np.ndarray:
        scale = r_x * r_y
        if self.effective_method_ == "ls":
            with np.errstate(divide="ignore", invalid="ignore"):
                out = 1. - np.exp(-dist ** 2 / scale)
            # Zero bandwidth: identical points stay at 0, all others move to the maximum
            return np.where(scale > 0, out, np.where(dist > 0, 1., 0.))
        denominator = np.sqrt(scale)
        out = dist.copy()
        np.divide(dist, denominator, out=out, where=denominator > 0)
        return out

    def _pair_values(self, i, others, dist):
        return self._rescale(dist, self.r_indexed_[i], self.r_indexed_[others])

    def _query_values(self, query_dist):
        if self.k > query_dist.shape[1]:
            raise ConfigurationError(f"Queries need at least k={self.k} indexed points.")
        r_query = self._local_statistic(query_dist)
        return self._rescale(query_dist, r_query[:, np.newaxis], self.r_indexed_[np.newaxis, :])


class NICDM(LocalScaling):
    """ Hubness reduction with the non-iterative contextual dissimilarity measure [1]_.

    Distances are divided by the geometric mean of both points' average
    distance to their k nearest neighbors. Points with zero average keep
    their primary distances.

    References
    ----------
    .. [1] Jegou, H., Harzallah, H., & Schmid, C. (2007). A contextual dissimilarity
           measure for accurate and efficient image search. CVPR.
    """

    def __init__(self, k: int = 5, metric="euclidean", n_jobs: int = None, verbose: int = 0):
        super().__init__(k=k, method="nicdm", metric=metric, n_jobs=n_jobs, verbose=verbose)
