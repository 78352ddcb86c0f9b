# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
import logging

import numpy as np

from ._base import HubnessVoteClassifier
from ..neighbors import NeighborSetFinder

__all__ = [
    "HwKNN",
]


class HwKNN(HubnessVoteClassifier):
    """ Hubness-weighted k-nearest neighbor classifier (hw-kNN) [1]_.

    Bad hubs, i.e. points that often occur among the neighbors of points
    from other classes, are down-weighted. Each neighbor votes for its own
    label with weight ``exp(-h_b)``, where h_b is its standardized bad
    k-occurrence. Without bad occurrences at all, every neighbor weighs one
    and the classifier reduces to majority voting.

    Boosting modes do not apply; `sample_weight` passed to :meth:`fit`
    multiplies the hubness weights, and `label_costs` are ignored.

    Parameters
    ----------
    k : int, default = 5
        Number of neighbors
    metric : str or PrimaryMetric, default = "euclidean"
    metric_params : dict, optional
    n_jobs : int, default = 1
    verbose : int, default = 0

    Attributes
    ----------
    instance_weights_ : ndarray of shape (n_samples,)
        Vote weight of each training point
    relation_ : ndarray of shape (n_classes, n_samples)
        Vote of each training point, its weight at its own class and zero elsewhere

    References
    ----------
    .. [1] Radovanović, M., Nanopoulos, A. & Ivanović, M. (2009). Nearest
           neighbors in high-dimensional data: the emergence and influence of
           hubs. Proceedings of the 26th International Conference on Machine
           Learning, 865-872.
    """

    boosting = "b1"

    def __init__(self, k: int = 5, metric="euclidean", metric_params: dict = None,
                 n_jobs: int = 1, verbose: int = 0):
        self.k = k
        self.metric = metric
        self.metric_params = metric_params
        self.n_jobs = n_jobs
        self.verbose = verbose

    def _train(self, finder: NeighborSetFinder, sample_weight, label_costs):
        self.instance_weights_ = finder.hw_knn_weights() * sample_weight
        n = self.y_.size
        relation = np.zeros((self.n_classes_, n))
        relation[self.y_, np.arange(n)] = self.instance_weights_
        self.relation_ = relation
        logging.debug(f"hw-kNN weights range from {self.instance_weights_.min():.3g} "
                      f"to {self.instance_weights_.max():.3g}.")

    def _vote(self, neigh_ind, neigh_dist=None):
        return self.relation_.T[neigh_ind].sum(axis=1)
