# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hubminer.

Hubness measures computed from the k-occurrence distribution of neighbor sets.
"""
from __future__ import annotations
from typing import Union
import warnings

import numpy as np
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from ..exceptions import ConfigurationError
from ..neighbors import DistanceMatrix, NeighborSetFinder

__all__ = [
    "Hubness",
    "VALID_HUBNESS_MEASURES",
    "find_hubs",
    "find_antihubs",
]

#: Available hubness measures
VALID_HUBNESS_MEASURES = [
    "all",
    "antihub_occurrence",
    "atkinson",
    "gini",
    "groupie_ratio",
    "hub_occurrence",
    "k_skewness",
    "k_skewness_truncnorm",
    "robinhood",
]


def find_hubs(k_occurrence: np.ndarray, k: int, hub_size: float = 2.) -> np.ndarray:
    """ Indices of objects with k-occurrence > hub_size * k. """
    if hub_size <= 0:
        raise ConfigurationError(f"Hub size must be greater than zero, got {hub_size}.")
    return np.flatnonzero(np.asarray(k_occurrence) > hub_size * k)


def find_antihubs(k_occurrence: np.ndarray, threshold: int = 0) -> np.ndarray:
    """ Indices of objects with k-occurrence <= threshold, i.e. never (or rarely) a neighbor. """
    return np.flatnonzero(np.asarray(k_occurrence) <= threshold)


def k_skewness(k_occurrence: np.ndarray) -> float:
    """ Skewness of the k-occurrence distribution. """
    if np.std(k_occurrence) == 0:
        return 0.
    return float(stats.skew(k_occurrence))


def k_skewness_truncnorm(k_occurrence: np.ndarray) -> float:
    """ Skewness of a normal distribution truncated at zero, fitted to the k-occurrences.

    Corrects the k-skewness for the non-negativity of occurrence counts.
    """
    mean = k_occurrence.mean()
    std = k_occurrence.std(ddof=1) if k_occurrence.size > 1 else 0.
    if std == 0:
        return 0.
    a = (0. - mean) / std
    b = (np.iinfo(np.int64).max - mean) / std
    return float(stats.truncnorm(a, b).moment(3))


def gini_index(k_occurrence: np.ndarray) -> float:
    """ Gini index, mean absolute difference of k-occurrences divided by twice their mean. """
    n = k_occurrence.size
    total = float(np.sum(k_occurrence))
    if total == 0:
        return 0.
    ranks = 2 * np.arange(1, n + 1) - n - 1
    return float(np.sum(ranks * np.sort(k_occurrence)) / (n * total))


def robinhood_index(k_occurrence: np.ndarray) -> float:
    """ Robin Hood (Hoover) index [1]_.

    Share of all k-occurrences that must be redistributed, so that all objects
    are equally often nearest neighbors to others.

    References
    ----------
    .. [1] `Feldbauer, R.; Leodolter, M.; Plant, C. & Flexer, A.
            Fast approximate hubness reduction for large high-dimensional data.
            IEEE International Conference of Big Knowledge (2018).`
    """
    total = float(np.sum(k_occurrence))
    if total == 0:
        return 0.
    return .5 * float(np.sum(np.abs(k_occurrence - k_occurrence.mean()))) / total


def atkinson_index(k_occurrence: np.ndarray, eps: float = .5) -> float:
    """ Atkinson index with inequality aversion `eps`. """
    mean = k_occurrence.mean()
    if mean == 0:
        return 0.
    if eps == 1:
        term = np.exp(np.mean(np.log(k_occurrence)))
    else:
        term = np.mean(k_occurrence ** (1 - eps)) ** (1 / (1 - eps))
    return float(1. - term / mean)


class Hubness(BaseEstimator):
    """ Examine hubness characteristics of data.

    Parameters
    ----------
    k : int, default = 10
        Neighborhood size
    hub_size : float, default = 2
        Hubs are defined as objects with k-occurrence > hub_size * k.
    metric : str or PrimaryMetric, default = "euclidean"
        Primary distance of vector data. If "precomputed", :meth:`fit` expects a
        square distance matrix (or :class:`DistanceMatrix`), and :meth:`score`
        distances from queries to all indexed objects.
    metric_params : dict, optional
        Passed to the metric constructor
    return_value : str, default = "k_skewness"
        Hubness measure returned by :meth:`score`, one of `VALID_HUBNESS_MEASURES`.
        Use "all" to return a dict of all measures.
    return_hubs, return_antihubs, return_k_occurrence : bool, default = False
        Additionally return the indices of hubs, anti-hubs, or the k-occurrences.
        The result of :meth:`score` is then a dict.
    n_jobs : int, default = 1
        Number of worker threads for the neighbor search
    verbose : int, default = 0

    Attributes
    ----------
    finder_ : NeighborSetFinder
        Neighbor sets of the indexed objects

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Hubs in space: Popular nearest neighbors in high-dimensional data.
            Journal of Machine Learning Research, 2010, 11, 2487-2531`
    """

    def __init__(
            self,
            k: int = 10,
            hub_size: float = 2.,
            metric="euclidean",
            metric_params: dict = None,
            return_value: str = "k_skewness",
            return_hubs: bool = False,
            return_antihubs: bool = False,
            return_k_occurrence: bool = False,
            n_jobs: int = 1,
            verbose: int = 0,
    ):
        self.k = k
        self.hub_size = hub_size
        self.metric = metric
        self.metric_params = metric_params
        self.return_value = return_value
        self.return_hubs = return_hubs
        self.return_antihubs = return_antihubs
        self.return_k_occurrence = return_k_occurrence
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None) -> Hubness:
        """ Compute the neighbor sets of the indexed objects.

        Parameters
        ----------
        X : NeighborSetFinder, DistanceMatrix or array-like
            A fitted finder is used directly (with neighbor sets truncated to `k`, if larger).
            Otherwise, vector data of shape (n_samples, n_features), or a square
            distance matrix if `metric` is "precomputed".
        y : ignored

        Returns
        -------
        self
        """
        if self.return_value not in VALID_HUBNESS_MEASURES:
            raise ConfigurationError(f"Unknown return value: {self.return_value}. "
                                     f"Allowed hubness measures: {VALID_HUBNESS_MEASURES}.")
        if self.hub_size is None or self.hub_size <= 0:
            raise ConfigurationError("Hub size must be greater than zero.")

        if isinstance(X, NeighborSetFinder):
            check_is_fitted(X, "dataset_")
            finder = X
            if getattr(finder, "k_", None) is None:
                finder.compute_neighbor_sets(self.k)
            elif finder.k_ > self.k:
                finder = finder.copy_with_smaller_k(self.k)
            elif finder.k_ < self.k:
                raise ConfigurationError(f"The finder stores only k={finder.k_} neighbors, "
                                         f"but hubness is estimated for k={self.k}.")
        elif self.metric == "precomputed":
            distances = X if isinstance(X, DistanceMatrix) else DistanceMatrix.from_square(X)
            finder = NeighborSetFinder(k=self.k, n_jobs=self.n_jobs, verbose=self.verbose)
            finder.fit(np.empty((distances.n_samples, 0)), distance_matrix=distances)
        else:
            finder = NeighborSetFinder(
                k=self.k,
                metric=self.metric,
                metric_params=self.metric_params,
                n_jobs=self.n_jobs,
                verbose=self.verbose,
            )
            finder.fit(X)
        self.finder_ = finder
        self.n_samples_fit_ = finder.n_samples_fit_
        return self

    def _query_occurrence(self, X) -> np.ndarray:
        finder = self.finder_
        if self.metric == "precomputed":
            _, neigh_ind = finder.kneighbors_from_distances(X, self.k)
        else:
            neigh_ind = finder.kneighbors(X, n_neighbors=self.k, return_distance=False)
        return np.bincount(neigh_ind.ravel(), minlength=self.n_samples_fit_)

    def score(self, X=None, y=None) -> Union[float, dict]:
        """ Estimate hubness from the k-occurrence of the indexed objects.

        Parameters
        ----------
        X : array-like, optional
            Query objects (or, if `metric` is "precomputed", distances from
            queries to all indexed objects). Their neighbors among the indexed
            objects define the k-occurrence. If None, use the neighbor sets
            within the indexed objects.
        y : ignored

        Returns
        -------
        hubness_measure : float or dict
            The measure indicated by `return_value`, or a dict if several
            measures or hub indices are requested.
        """
        check_is_fitted(self, "finder_")
        if X is None:
            k_occurrence = self.finder_.k_occurrence_
            n_query = self.n_samples_fit_
        else:
            k_occurrence = self._query_occurrence(X)
            n_query = int(k_occurrence.sum() // self.k)
        k = self.k
        if n_query < 2:
            warnings.warn("Hubness estimates are unreliable for fewer than two queries.")

        calc_all = self.return_value == "all"
        measures = {}
        if calc_all or self.return_value == "k_skewness":
            measures["k_skewness"] = k_skewness(k_occurrence)
        if calc_all or self.return_value == "k_skewness_truncnorm":
            measures["k_skewness_truncnorm"] = k_skewness_truncnorm(k_occurrence)
        if calc_all or self.return_value == "gini":
            measures["gini"] = gini_index(k_occurrence)
        if calc_all or self.return_value == "robinhood":
            measures["robinhood"] = robinhood_index(k_occurrence)
        if calc_all or self.return_value == "atkinson":
            measures["atkinson"] = atkinson_index(k_occurrence)

        antihubs = find_antihubs(k_occurrence)
        if calc_all or self.return_value == "antihub_occurrence":
            measures["antihub_occurrence"] = antihubs.size / k_occurrence.size
        hubs = find_hubs(k_occurrence, k, self.hub_size)
        if calc_all or self.return_value == "hub_occurrence":
            measures["hub_occurrence"] = float(k_occurrence[hubs].sum()) / k / n_query
        if calc_all or self.return_value == "groupie_ratio":
            measures["groupie_ratio"] = float(k_occurrence.max()) / k / n_query

        if self.return_hubs:
            measures["hubs"] = hubs
        if self.return_antihubs:
            measures["antihubs"] = antihubs
        if self.return_k_occurrence:
            measures["k_occurrence"] = k_occurrence

        if len(measures) == 1:
            return measures[self.return_value]
        return measures
