# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
import logging
from typing import Sequence

import numpy as np
from scipy.spatial.distance import squareform
from tqdm.auto import tqdm

from ..data.dataset import Dataset, as_dataset
from ..exceptions import ConfigurationError
from ..metrics import get_metric
from ..utils.check import check_n_samples
from ..utils.multiprocessing import run_row_ranges

__all__ = [
    "DistanceMatrix",
    "compute_distance_matrix",
]


def _row_offset(i, n: int):
    """ Position of entry (i, i + 1) in the condensed storage of an n x n matrix. """
    return i * n - (i * (i + 1)) // 2


class DistanceMatrix:
    """ Symmetric n x n matrix with zero diagonal, stored upper-triangular.

    Row `i` holds the entries to all points ``j > i``, so that
    entry (i, j) lives at ``rows[min(i, j)][max(i, j) - min(i, j) - 1]``.
    All rows are views into one condensed array in the layout of
    :func:`scipy.spatial.distance.squareform`.

    Parameters
    ----------
    condensed : ndarray of shape (n * (n - 1) / 2,)
        Upper-triangular entries, row by row
    n_samples : int
        Number of points
    """

    def __init__(self, condensed: np.ndarray, n_samples: int):
        condensed = np.asarray(condensed, dtype=np.float64).ravel()
        if condensed.size != n_samples * (n_samples - 1) // 2:
            raise ConfigurationError(f"Condensed storage of size {condensed.size} does not "
                                     f"match a distance matrix of {n_samples} points.")
        self.condensed = condensed
        self.n_samples = int(n_samples)

    @classmethod
    def from_rows(cls, rows: Sequence[np.ndarray]) -> DistanceMatrix:
        """ Build from the jagged upper-triangular rows; row i must have length n - i - 1. """
        n = len(rows)
        for i, row in enumerate(rows):
            if len(row) != n - i - 1:
                raise ConfigurationError(f"Row {i} of an upper-triangular matrix of {n} points "
                                         f"must have length {n - i - 1}, got {len(row)}.")
        if n < 2:
            return cls(np.empty(0), n)
        return cls(np.concatenate([np.asarray(row, dtype=np.float64) for row in rows]), n)

    @classmethod
    def from_square(cls, D) -> DistanceMatrix:
        """ Take the upper triangle of a square matrix. Symmetry is not enforced. """
        D = np.asarray(D, dtype=np.float64)
        if D.ndim != 2 or D.shape[0] != D.shape[1]:
            raise ConfigurationError(f"Expected a square matrix, got shape {D.shape}.")
        n = D.shape[0]
        return cls(D[np.triu_indices(n, k=1)], n)

    def __repr__(self):
        return f"DistanceMatrix(n_samples={self.n_samples})"

    def __len__(self):
        return self.n_samples

    @property
    def shape(self):
        return self.n_samples, self.n_samples

    @property
    def rows(self):
        """ The jagged upper-triangular rows (views, no copies). """
        n = self.n_samples
        return [self.condensed[_row_offset(i, n):_row_offset(i + 1, n)] for i in range(n)]

    def upper_row(self, i: int) -> np.ndarray:
        """ Entries (i, j) for all j > i, as a view. """
        n = self.n_samples
        return self.condensed[_row_offset(i, n):_row_offset(i + 1, n)]

    def get(self, i: int, j: int) -> float:
        if i == j:
            return 0.
        lo, hi = (i, j) if i < j else (j, i)
        return float(self.condensed[_row_offset(lo, self.n_samples) + hi - lo - 1])

    def __getitem__(self, item):
        i, j = item
        return self.get(i, j)

    def row(self, i: int) -> np.ndarray:
        """ Full row i of the square matrix, with 0 at position i. """
        n = self.n_samples
        out = np.empty(n, dtype=np.float64)
        lower = np.arange(i)
        out[:i] = self.condensed[_row_offset(lower, n) + i - lower - 1]
        out[i] = 0.
        out[i + 1:] = self.upper_row(i)
        return out

    def to_square(self) -> np.ndarray:
        if self.n_samples == 1:
            return np.zeros((1, 1))
        return squareform(self.condensed, checks=False)

    def copy(self) -> DistanceMatrix:
        return DistanceMatrix(self.condensed.copy(), self.n_samples)

    @property
    def mean_(self) -> float:
        """ Mean over all stored entries. """
        return float(self.condensed.mean()) if self.condensed.size else 0.

    @property
    def variance_(self) -> float:
        return float(self.condensed.var()) if self.condensed.size else 0.


def compute_distance_matrix(
        X,
        metric="euclidean",
        metric_params: dict = None,
        n_jobs: int = 1,
        verbose: int = 0,
) -> DistanceMatrix:
    """ Compute all pairwise distances of a dataset.

    Rows are split into contiguous ranges, each computed by one worker thread
    that writes only to its own rows.

    Parameters
    ----------
    X : Dataset or array-like of shape (n_samples, n_features)
    metric : str or PrimaryMetric
    metric_params : dict, optional
        Passed to the metric constructor, if `metric` is a name
    n_jobs : int
        Number of worker threads (-1 for all cores)
    verbose : int
        Show a progress bar if verbose > 0

    Returns
    -------
    distances : DistanceMatrix

    Raises
    ------
    DegenerateInputError
        If the dataset is empty
    WorkerFailure
        If the distance computation failed for any row range
    """
    dataset: Dataset = as_dataset(X)
    n = check_n_samples(dataset.n_samples)
    metric = get_metric(metric, **(metric_params or {}))
    condensed = np.empty(n * (n - 1) // 2, dtype=np.float64)
    X = dataset.X

    logging.debug(f"Computing {n} x {n} distances with {metric!r}.")
    with tqdm(total=n, desc="Distances", disable=verbose < 1) as progress:
        def compute_rows(start: int, end: int):
            for i in range(start, end):
                x_i = X[i].toarray().ravel() if dataset.is_sparse else X[i]
                condensed[_row_offset(i, n):_row_offset(i + 1, n)] = metric.dist_many(x_i, X[i + 1:])
                progress.update(1)

        run_row_ranges(compute_rows, n_rows=n, n_jobs=n_jobs)
    return DistanceMatrix(condensed, n)
