# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
from abc import ABC, abstractmethod

import numpy as np
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from ..exceptions import ConfigurationError
from ..neighbors import DistanceMatrix, NeighborSetFinder
from ..neighbors.distance_matrix import _row_offset
from ..utils.multiprocessing import run_row_ranges, validate_n_jobs

__all__ = [
    "SecondaryDistance",
]


class SecondaryDistance(ABC):
    """ Base class for secondary distances that rescale a primary distance matrix.

    Subclasses estimate per-point statistics in :meth:`_fit` and implement
    the rescaling of primary distances between an indexed point and several
    others in :meth:`_pair_values`, and between out-of-sample queries and
    all indexed points in :meth:`_query_values`.

    The output of :meth:`transform` has the same upper-triangular layout and
    number of points as the primary distance matrix.
    """

    #: Minimal neighborhood size stored in the finder, if neighbor sets are required
    requires_k = None

    def __init__(self, metric="euclidean", n_jobs: int = None, verbose: int = 0):
        self.metric = metric
        self.n_jobs = n_jobs
        self.verbose = verbose

    @abstractmethod
    def _fit(self, finder: NeighborSetFinder):
        pass  # pragma: no cover

    @abstractmethod
    def _pair_values(self, i: int, others: np.ndarray, dist: np.ndarray) -> np.ndarray:
        """ Secondary distances between indexed point i and indexed points `others`, given primary `dist`. """

    @abstractmethod
    def _query_values(self, query_dist: np.ndarray) -> np.ndarray:
        """ Secondary distances from queries (rows of primary distances to all indexed points). """

    def _check_finder(self, X, y=None) -> NeighborSetFinder:
        if X is None:
            raise ConfigurationError("A NeighborSetFinder or vector data is required.")
        k = self.requires_k
        if isinstance(X, NeighborSetFinder):
            finder = X
            check_is_fitted(finder, "dataset_")
        else:
            finder = NeighborSetFinder(k=k, metric=self.metric, n_jobs=self.n_jobs, verbose=self.verbose)
            finder.fit(X, y)
        if getattr(finder, "distance_matrix_", None) is None:
            raise ConfigurationError(f"{self.__class__.__name__} requires a primary distance matrix.")
        if k is not None:
            if getattr(finder, "k_", None) is None:
                finder.compute_neighbor_sets(k)
            elif finder.k_ < k:
                raise ConfigurationError(f"{self.__class__.__name__} requires neighbor sets of size "
                                         f"k={k}, but the finder stores only k={finder.k_}.")
        return finder

    def fit(self, X, y=None) -> SecondaryDistance:
        """ Estimate the rescaling parameters.

        Parameters
        ----------
        X : NeighborSetFinder or array-like of shape (n_samples, n_features)
            Fitted finder holding the primary distances, or vector data
            for which such a finder is fitted with `metric`.
        y : array-like, optional
            Class labels, only used if `X` is vector data

        Returns
        -------
        self
        """
        finder = self._check_finder(X, y)
        self.n_jobs_ = validate_n_jobs(self.n_jobs if self.n_jobs is not None else finder.n_jobs_)
        self.finder_ = finder
        self.n_indexed_ = finder.n_samples_fit_
        self._fit(finder)
        return self

    def transform(self, X=None) -> DistanceMatrix:
        """ Rescale the primary distances.

        Parameters
        ----------
        X : None or array-like of shape (n_query, n_indexed)
            If None, transform the full distance matrix of the indexed points.
            Otherwise, `X` holds primary distances from out-of-sample queries
            to all indexed points, see :meth:`NeighborSetFinder.query_distances`.

        Returns
        -------
        secondary : DistanceMatrix or ndarray of shape (n_query, n_indexed)
        """
        check_is_fitted(self, "finder_")
        if X is not None:
            return self.transform_query(X)

        n = self.n_indexed_
        primary = self.finder_.distance_matrix_
        condensed = np.empty_like(primary.condensed)

        with tqdm(total=n, desc=f"{self.__class__.__name__} trafo", disable=self.verbose < 1) as progress:
            def transform_rows(start: int, end: int):
                for i in range(start, end):
                    others = np.arange(i + 1, n)
                    condensed[_row_offset(i, n):_row_offset(i + 1, n)] = self._pair_values(
                        i, others, primary.upper_row(i))
                    progress.update(1)

            run_row_ranges(transform_rows, n_rows=n, n_jobs=self.n_jobs_)
        return DistanceMatrix(condensed, n)

    def fit_transform(self, X, y=None) -> DistanceMatrix:
        return self.fit(X, y).transform()

    def transform_to_square(self) -> np.ndarray:
        """ Secondary distances of the indexed points as a square matrix with zero diagonal. """
        return self.transform().to_square()

    def transform_query(self, query_dist) -> np.ndarray:
        """ Secondary distances from out-of-sample queries to all indexed points. """
        check_is_fitted(self, "finder_")
        query_dist = np.atleast_2d(np.asarray(query_dist, dtype=np.float64))
        if query_dist.shape[1] != self.n_indexed_:
            raise ConfigurationError(f"Query distances of shape {query_dist.shape} do not match "
                                     f"{self.n_indexed_} indexed points.")
        return self._query_values(query_dist)

    def dist(self, i: int, j: int) -> float:
        """ Secondary distance between indexed points i and j. """
        check_is_fitted(self, "finder_")
        if i == j:
            return 0.
        d = self.finder_.distance_matrix_.get(i, j)
        return float(self._pair_values(i, np.array([j]), np.array([d]))[0])

    def dist_query(self, query_dist, j: int) -> float:
        """ Secondary distance between one query, given its primary distances to all indexed points, and point j. """
        return float(self.transform_query(np.asarray(query_dist).reshape(1, -1))[0, j])
