# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
import logging

import numpy as np

from ._base import HubnessVoteClassifier, fuzzy_distance_weights
from ..exceptions import ConfigurationError
from ..neighbors import NeighborSetFinder

__all__ = [
    "HFNN",
    "VALID_LOCAL_ESTIMATES",
]

#: Vote estimates for neighbors without reliable occurrence statistics
VALID_LOCAL_ESTIMATES = ["global", "local", "localf", "label"]


class HFNN(HubnessVoteClassifier):
    """ Hubness-based fuzzy nearest neighbor classifier (h-FNN) [1]_.

    Every neighbor of a query votes with its smoothed class-conditional
    occurrence profile, i.e. how often it occurred in neighbor sets of each
    class during training. Anti-hubs, i.e. points occurring at most
    `theta_cutoff` times, have no reliable profile and vote with a local
    estimate instead.

    Parameters
    ----------
    k : int, default = 5
        Number of neighbors
    smoothing : float, default = 0.001
        Laplace estimator added to each class count
    theta_cutoff : int, default = 0
        Points with k-occurrence <= theta_cutoff are treated as anti-hubs
    local_estimate : str, default = "global"
        Anti-hub vote, one of `VALID_LOCAL_ESTIMATES`:

        - "global": class-to-class occurrence priors of the anti-hub's class
        - "local": smoothed label distribution of the anti-hub's `n_local` nearest neighbors
        - "localf": like "local", but with at least 0.51 for the anti-hub's own class
        - "label": crisp distribution concentrated on the anti-hub's own class
    n_local : int, default = 10
        Neighborhood size of the "local" and "localf" estimates
    distance_weighted : bool, default = False
        Weight each neighbor's vote by ``1 / d^(2 / (m - 1))``, normalized over
        the neighbors of a query (DWH-FNN). Neighbors at distance zero weigh 10000.
    m : float, default = 2
        Fuzzifier of the distance weights. Must be > 1.
    boosting : "b1" or "b2", default = "b1"
        Instance weighting mode, see :class:`HubnessVoteClassifier`
    metric : str or PrimaryMetric, default = "euclidean"
    metric_params : dict, optional
    n_jobs : int, default = 1
        Number of worker threads for neighbor search
    verbose : int, default = 0

    Attributes
    ----------
    relation_ : ndarray of shape (n_classes, n_samples)
        Normalized class-conditional occurrence of each training point
    antihub_distribution_ : ndarray of shape (n_samples, n_classes)
        Vote of each training point, if it is an anti-hub

    References
    ----------
    .. [1] Tomašev, N., Radovanović, M., Mladenić, D. & Ivanović, M. (2014).
           Hubness-based fuzzy measures for high-dimensional k-nearest neighbor
           classification. International Journal of Machine Learning and
           Cybernetics, 5(3), 445-458.
    """

    def __init__(self, k: int = 5, smoothing: float = 0.001, theta_cutoff: int = 0,
                 local_estimate: str = "global", n_local: int = 10, distance_weighted: bool = False,
                 m: float = 2., boosting: str = "b1",
                 metric="euclidean", metric_params: dict = None, n_jobs: int = 1, verbose: int = 0):
        super().__init__(k=k, boosting=boosting, metric=metric, metric_params=metric_params,
                         n_jobs=n_jobs, verbose=verbose)
        self.smoothing = smoothing
        self.theta_cutoff = theta_cutoff
        self.local_estimate = local_estimate
        self.n_local = n_local
        self.distance_weighted = distance_weighted
        self.m = m

    def _train(self, finder: NeighborSetFinder, sample_weight, label_costs):
        if self.local_estimate not in VALID_LOCAL_ESTIMATES:
            raise ConfigurationError(f"Unknown local estimate '{self.local_estimate}'. "
                                     f"Must be one of {VALID_LOCAL_ESTIMATES}.")
        if self.smoothing is None or self.smoothing < 0:
            raise ConfigurationError(f"Smoothing must be non-negative, got {self.smoothing}.")
        if self.distance_weighted and (self.m is None or not self.m > 1):
            raise ConfigurationError(f"Fuzzifier m must be greater than 1, got {self.m}.")
        self.occurrence_ = finder.k_occurrence_
        self.relation_ = self._relation_table(finder, sample_weight, label_costs, self.smoothing)

        if self.local_estimate == "label":
            self.antihub_distribution_ = self._crisp_distribution(sample_weight, label_costs)
        elif self.local_estimate == "global":
            priors = finder.class_to_class_priors(self.n_classes_, smoothing=self.smoothing, include_self=False)
            self.antihub_distribution_ = priors[:, self.y_].T
        else:
            self.antihub_distribution_ = self._local_distribution(finder)

        n_antihubs = np.sum(self.occurrence_ <= self.theta_cutoff)
        logging.debug(f"HFNN trained with {n_antihubs} anti-hubs at theta={self.theta_cutoff}.")

    def _crisp_distribution(self, sample_weight, label_costs) -> np.ndarray:
        """ Vote concentrated on each point's own class, as if it were its only occurrence. """
        n = self.y_.size
        n_classes = self.n_classes_
        own = np.arange(n), self.y_
        if self.boosting == "b1":
            smoothing = self.smoothing
            with np.errstate(divide="ignore", invalid="ignore"):
                crisp = np.repeat((smoothing / (sample_weight + n_classes * smoothing))[:, np.newaxis],
                                  n_classes, axis=1)
                crisp[own] = (sample_weight + smoothing) / (sample_weight + n_classes * smoothing)
            one_hot = np.zeros((n, n_classes))
            one_hot[own] = 1.
            invalid = ~np.all(np.isfinite(crisp), axis=1)
            crisp[invalid] = one_hot[invalid]
            return crisp
        crisp = -label_costs * sample_weight[:, np.newaxis]
        crisp[own] = sample_weight
        return self._shift_and_normalize(crisp, axis=1)

    def _local_distribution(self, finder: NeighborSetFinder) -> np.ndarray:
        """ Smoothed label distribution of each point's `n_local` neighbors and the point itself. """
        n = finder.n_samples_fit_
        n_local = min(int(self.n_local), n - 1)
        if n_local < 1:
            raise ConfigurationError(f"n_local must be positive, got {self.n_local}.")
        if n_local <= finder.k_:
            neighbors = finder.k_neighbors_[:, :n_local]
        elif finder.distance_matrix_ is not None:
            neighbors = np.empty((n, n_local), dtype=np.int64)
            for i in range(n):
                _, local_ind = finder.kneighbors_from_distances(
                    finder.distance_matrix_.row(i), n_local, exclude=[i])
                neighbors[i] = local_ind[0]
        else:
            logging.warning(f"No distance matrix to find {n_local} local neighbors, using k={finder.k_}.")
            n_local = finder.k_
            neighbors = finder.k_neighbors_

        n_classes = self.n_classes_
        smoothing = self.smoothing
        counts = np.zeros((n, n_classes))
        np.add.at(counts, (np.repeat(np.arange(n), n_local), self.y_[neighbors].ravel()), 1.)
        counts[np.arange(n), self.y_] += 1.
        local = (counts + smoothing) / (n_local + 1 + n_local * smoothing)
        if self.local_estimate == "local":
            return local
        local_f = 0.49 * local
        local_f[np.arange(n), self.y_] += 0.51
        return local_f

    def _vote(self, neigh_ind, neigh_dist=None):
        reliable = self.occurrence_[neigh_ind] > self.theta_cutoff
        votes = np.where(reliable[:, :, np.newaxis],
                         self.relation_.T[neigh_ind],
                         self.antihub_distribution_[neigh_ind])
        if self.distance_weighted:
            votes = votes * fuzzy_distance_weights(neigh_dist, self.m, neigh_ind.shape[1])[:, :, np.newaxis]
        return votes.sum(axis=1)
