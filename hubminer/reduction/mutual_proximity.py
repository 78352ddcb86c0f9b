# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import numpy as np
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_random_state
from tqdm.auto import tqdm

from ._base import SecondaryDistance
from ..exceptions import ConfigurationError
from ..neighbors import DistanceMatrix, NeighborSetFinder

__all__ = [
    "MutualProximity",
]


def _survival(d: np.ndarray, mu: np.ndarray, sd: np.ndarray) -> np.ndarray:
    """ P(X > d) for X ~ N(mu, sd^2); a step function at mu for sd == 0. """
    d, mu, sd = np.broadcast_arrays(d, mu, sd)
    degenerate = ~(sd > 0)
    with np.errstate(invalid="ignore", divide="ignore"):
        p = stats.norm.sf(d, loc=mu, scale=np.where(degenerate, 1., sd))
    step = np.where(d < mu, 1., np.where(d > mu, 0., 0.5))
    return np.where(degenerate, step, p)


class MutualProximity(SecondaryDistance, BaseEstimator):
    """ Hubness reduction with Mutual Proximity [1]_.

    Mutual proximity transforms the distance between x and y into the
    probability that neither is closer to any third object, i.e.
    ``1 - P(X > d_xy) * P(Y > d_xy)``. Values are within [0, 1].

    Parameters
    ----------
    method: 'normal' or 'empiric', default = 'normal'
        Model distance distribution with 'method'.

        - 'normal' or 'gaussi' model distance distributions with independent Gaussians,
          whose means and variances are estimated online over each point's distances
        - 'empiric' or 'exact' model distances with the empiric distributions (slow)
    sample_size: int, optional
        Estimate each point's Gaussian from distances to only
        ``min(sample_size, n - 1)`` other points, drawn uniformly without
        replacement. Faster for large data, less accurate. Only for 'normal'.
    random_state : int, RandomState instance or None
        Seed for sampling
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

    def __init__(self, method: str = "normal", sample_size: int = None, random_state=None,
                 metric="euclidean", n_jobs: int = None, verbose: int = 0):
        super().__init__(metric=metric, n_jobs=n_jobs, verbose=verbose)
        self.method = method
        self.sample_size = sample_size
        self.random_state = random_state

    def _fit(self, finder: NeighborSetFinder):
        method = "" if self.method is None else self.method.lower()
        if method in ["normal", "gaussi"]:
            self.effective_method_ = "normal"
        elif method in ["empiric", "exact"]:
            self.effective_method_ = "empiric"
        else:
            raise ConfigurationError(f'Mutual proximity method "{self.method}" not recognized. '
                                     f'Try "normal" or "empiric".')
        distances: DistanceMatrix = finder.distance_matrix_

        if self.effective_method_ == "empiric":
            self.square_ = distances.to_square()
            return
        if self.sample_size is None:
            self.mu_indexed_, self.sd_indexed_ = self._online_moments(distances)
        else:
            if self.sample_size < 1:
                raise ConfigurationError(f"Sample size must be positive, got {self.sample_size}.")
            self.mu_indexed_, self.sd_indexed_ = self._sampled_moments(distances)

    def _online_moments(self, distances: DistanceMatrix):
        """ Per-point mean and standard deviation, updated incrementally in one pass over the stored rows. """
        n = distances.n_samples
        count = np.zeros(n)
        mean = np.zeros(n)
        m2 = np.zeros(n)
        for i in tqdm(range(n - 1), desc="MP moments", disable=self.verbose < 1):
            row = distances.upper_row(i)
            others = slice(i + 1, n)

            # Each later point sees one new distance
            count[others] += 1
            delta = row - mean[others]
            mean[others] += delta / count[others]
            m2[others] += delta * (row - mean[others])

            # Point i sees a batch of distances, merged with its running moments
            n_batch = row.size
            batch_mean = row.mean()
            batch_m2 = np.sum((row - batch_mean) ** 2)
            total = count[i] + n_batch
            delta = batch_mean - mean[i]
            mean[i] += delta * n_batch / total
            m2[i] += batch_m2 + delta ** 2 * count[i] * n_batch / total
            count[i] = total

        variance = np.divide(m2, count, out=np.zeros(n), where=count > 0)
        return mean, np.sqrt(variance)

    def _sampled_moments(self, distances: DistanceMatrix):
        random_state = check_random_state(self.random_state)
        n = distances.n_samples
        n_sample = min(self.sample_size, n - 1)
        mu = np.zeros(n)
        sd = np.zeros(n)
        for i in tqdm(range(n), desc="MP sampled moments", disable=self.verbose < 1):
            if n_sample < 1:
                continue
            others = np.delete(np.arange(n), i)
            sample = random_state.choice(others, size=n_sample, replace=False)
            values = distances.row(i)[sample]
            mu[i] = values.mean()
            sd[i] = values.std()
        return mu, sd

    def _pair_values(self, i, others, dist):
        if self.effective_method_ == "normal":
            p_i = _survival(dist, self.mu_indexed_[i], self.sd_indexed_[i])
            p_j = _survival(dist, self.mu_indexed_[others], self.sd_indexed_[others])
            return 1. - p_i * p_j
        return self._empiric(self.square_[i], self.square_[others], dist, n_third=self.n_indexed_ - 2)

    @staticmethod
    def _empiric(row_x: np.ndarray, rows_y: np.ndarray, dist: np.ndarray, n_third: int) -> np.ndarray:
        """ 1 - fraction of the `n_third` third points farther from both x and each y than their distance.

        Neither x nor y is ever counted: each lies at `dist` from the other
        and at zero from itself.
        """
        if n_third < 1:
            return np.ones_like(dist)
        farther = (row_x[np.newaxis, :] > dist[:, np.newaxis]) & (rows_y > dist[:, np.newaxis])
        return 1. - farther.sum(axis=1) / n_third

    def _query_values(self, query_dist):
        out = np.empty_like(query_dist)
        for q in tqdm(range(query_dist.shape[0]), desc="MP query trafo", disable=self.verbose < 1):
            row = query_dist[q]
            if self.effective_method_ == "normal":
                p_q = _survival(row, row.mean(), row.std())
                p_j = _survival(row, self.mu_indexed_, self.sd_indexed_)
                out[q] = 1. - p_q * p_j
            else:
                # Out-of-sample queries: all indexed points except j are third points
                out[q] = self._empiric(row, self.square_, row, n_third=self.n_indexed_ - 1)
        return out

    def transform_similarity(self) -> DistanceMatrix:
        """ Mutual proximity as a similarity, i.e. ``P(X > d_xy) * P(Y > d_xy)``. """
        secondary = self.transform()
        return DistanceMatrix(1. - secondary.condensed, secondary.n_samples)
