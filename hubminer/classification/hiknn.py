# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import numpy as np

from ._base import HubnessVoteClassifier, fuzzy_distance_weights
from ..exceptions import ConfigurationError
from ..neighbors import NeighborSetFinder

__all__ = [
    "HIKNN",
]


class HIKNN(HubnessVoteClassifier):
    """ Hubness information k-nearest neighbor classifier (HIKNN) [1]_.

    Rarely occurring neighbors are more informative than hubs. Each neighbor's
    vote blends its own label and its class-conditional occurrence profile,
    where the label share grows with the neighbor's self-information
    log2(n / (occurrence + 1)). Votes are further weighted by that
    information and by the inverse neighbor distance.

    Parameters
    ----------
    k : int, default = 5
        Number of neighbors
    m : float, default = 2
        Fuzzifier of the distance weights ``1 / d^(2 / (m - 1))``. Must be > 1.
    boosting : "b1" or "b2", default = "b1"
        Instance weighting mode, see :class:`HubnessVoteClassifier`
    metric : str or PrimaryMetric, default = "euclidean"
    metric_params : dict, optional
    n_jobs : int, default = 1
    verbose : int, default = 0

    Attributes
    ----------
    relation_ : ndarray of shape (n_classes, n_samples)
        Class-conditional occurrence of each training point, divided by its occurrence + 1
    label_information_ : ndarray of shape (n_samples,)
        Self-information of each point, rescaled to [0, 1)

    References
    ----------
    .. [1] Tomašev, N. & Mladenić, D. (2011). Nearest neighbor voting in
           high-dimensional data: learning from past occurrences. Computer
           Science and Information Systems, 9(2), 691-712.
    """

    def __init__(self, k: int = 5, m: float = 2., boosting: str = "b1", metric="euclidean",
                 metric_params: dict = None, n_jobs: int = 1, verbose: int = 0):
        super().__init__(k=k, boosting=boosting, metric=metric, metric_params=metric_params,
                         n_jobs=n_jobs, verbose=verbose)
        self.m = m

    def _train(self, finder: NeighborSetFinder, sample_weight, label_costs):
        if self.m is None or not self.m > 1:
            raise ConfigurationError(f"Fuzzifier m must be greater than 1, got {self.m}.")
        n = finder.n_samples_fit_
        self.occurrence_ = finder.k_occurrence_
        self.information_ = np.log2(n / (self.occurrence_ + 1.))

        min_information = np.log2(n / (self.occurrence_.max() + 1.))
        max_information = np.log2(n)
        self.label_information_ = ((self.information_ - min_information)
                                   / (max_information - min_information + 1e-4))
        self.relation_ = self._relation_table(finder, sample_weight, label_costs)

    def _distance_weights(self, neigh_ind, neigh_dist) -> np.ndarray:
        weights = fuzzy_distance_weights(neigh_dist, self.m, neigh_ind.shape[1])
        return np.broadcast_to(weights, neigh_ind.shape)

    def _vote(self, neigh_ind, neigh_dist=None):
        lif = self.label_information_[neigh_ind]
        votes = (1. - lif)[:, :, np.newaxis] * self.relation_.T[neigh_ind]
        rows, cols = np.indices(neigh_ind.shape)
        votes[rows, cols, self.y_[neigh_ind]] += lif
        scale = self.information_[neigh_ind] * self._distance_weights(neigh_ind, neigh_dist)
        return (votes * scale[:, :, np.newaxis]).sum(axis=1)
