# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
This file is part of hubminer.

Shared training and voting pipeline of the hubness-aware kNN classifiers.
"""
from __future__ import annotations
from abc import abstractmethod
import logging

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.preprocessing import LabelEncoder
from sklearn.utils.validation import check_consistent_length, check_is_fitted, column_or_1d

from ..data import Dataset
from ..exceptions import ConfigurationError
from ..neighbors import NeighborSetFinder

__all__ = [
    "HubnessVoteClassifier",
    "VALID_BOOSTING",
    "fuzzy_distance_weights",
]

#: Instance weighting modes during training
VALID_BOOSTING = ["b1", "b2"]

#: Distance weight of neighbors at distance zero
ZERO_DISTANCE_WEIGHT = 10000.


def fuzzy_distance_weights(neigh_dist, m: float, n_neighbors: int) -> np.ndarray:
    """ Neighbor weights ``1 / d^(2 / (m - 1))``, normalized per query.

    Neighbors at distance zero get `ZERO_DISTANCE_WEIGHT`, non-finite distances weight zero.
    Without distances, all `n_neighbors` neighbors weigh the same.
    """
    if neigh_dist is None:
        return np.full((1, n_neighbors), 1. / n_neighbors)
    exponent = 2. / (m - 1.)
    with np.errstate(divide="ignore", over="ignore", invalid="ignore"):
        weights = np.where(neigh_dist > 0, 1. / neigh_dist ** exponent, ZERO_DISTANCE_WEIGHT)
    weights[np.isposinf(weights)] = ZERO_DISTANCE_WEIGHT
    weights[np.isnan(neigh_dist) | np.isnan(weights)] = 0.
    total = weights.sum(axis=1, keepdims=True)
    return np.divide(weights, total, out=np.zeros_like(weights), where=total > 0)


class HubnessVoteClassifier(ClassifierMixin, BaseEstimator):
    """ Base class for kNN classifiers voting with class-conditional neighbor occurrences.

    Training counts how often each point occurs as a neighbor of points of
    each class (every point also counts as its own neighbor), and stores the
    normalized counts in `relation_`, shape (n_classes, n_samples).
    Queries accumulate per-class votes from their neighbors. Negative scores
    are shifted to zero, the scores are normalized to sum to one, and zero
    vote mass falls back to the class priors.

    Two boosting modes weight the training points:

    - "b1": occurrence counts are weighted by `sample_weight` and normalized
      by the weighted occurrence of each point.
    - "b2": a point adds its weight to its own class and subtracts
      ``label_costs[i, c] * weight`` from every other class c. Columns are
      shifted to be non-negative and normalized to sum to one.

    In both modes, columns that cannot be normalized (non-finite results or
    non-positive totals) keep their unnormalized values.

    Subclasses implement :meth:`_train` and :meth:`_vote`.
    """

    def __init__(self, k: int = 5, boosting: str = "b1", metric="euclidean",
                 metric_params: dict = None, n_jobs: int = 1, verbose: int = 0):
        self.k = k
        self.boosting = boosting
        self.metric = metric
        self.metric_params = metric_params
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y, sample_weight=None, label_costs=None):
        """ Fit the model using X as training data and y as target values

        Parameters
        ----------
        X : array-like or sparse matrix of shape (n_samples, n_features)
            Training data. Missing values may be encoded as NaN; the metric
            skips such components.
        y : array-like of shape (n_samples,)
            Target values
        sample_weight : array-like of shape (n_samples,), optional
            Non-negative boosting weight of each training point. Defaults to ones.
        label_costs : array-like of shape (n_samples, n_classes), optional
            Cost of each point voting for each class other than its own.
            Only used by ``boosting="b2"``. Defaults to ones, so that every
            vote for another class is penalized by the full instance weight.
            Pass zeros to disable the penalty, which leaves only the
            weighted own-class counts of "b1" (without smoothing).

        Returns
        -------
        self
        """
        if self.boosting not in VALID_BOOSTING:
            raise ConfigurationError(f"Unknown boosting mode '{self.boosting}'. "
                                     f"Must be one of {VALID_BOOSTING}.")
        dataset = Dataset(X)
        y = column_or_1d(y, warn=True)
        try:
            check_consistent_length(dataset.X, y)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self._label_encoder = LabelEncoder()
        y_encoded = self._label_encoder.fit_transform(y)
        self.classes_ = self._label_encoder.classes_
        self.n_classes_ = len(self.classes_)
        self.n_features_in_ = dataset.n_features
        n = dataset.n_samples

        sample_weight = self._check_sample_weight(sample_weight, n)
        label_costs = self._check_label_costs(label_costs, n)

        self.finder_ = NeighborSetFinder(
            k=self.k,
            metric=self.metric,
            metric_params=self.metric_params,
            n_jobs=self.n_jobs,
            verbose=self.verbose,
        )
        self.finder_.fit(Dataset(dataset.X, y_encoded))
        self.k_ = self.finder_.k_
        self.y_ = y_encoded
        self.class_priors_ = np.bincount(y_encoded, minlength=self.n_classes_) / n
        self._train(self.finder_, sample_weight, label_costs)
        return self

    @staticmethod
    def _check_sample_weight(sample_weight, n_samples: int) -> np.ndarray:
        if sample_weight is None:
            return np.ones(n_samples)
        sample_weight = np.asarray(sample_weight, dtype=np.float64).ravel()
        check_consistent_length(sample_weight, np.empty(n_samples))
        if not np.all(np.isfinite(sample_weight)) or np.any(sample_weight < 0):
            raise ConfigurationError("Sample weights must be finite and non-negative.")
        return sample_weight

    def _check_label_costs(self, label_costs, n_samples: int) -> np.ndarray:
        if label_costs is None:
            return np.ones((n_samples, self.n_classes_))
        label_costs = np.asarray(label_costs, dtype=np.float64)
        if label_costs.shape != (n_samples, self.n_classes_):
            raise ConfigurationError(f"Label costs must have shape {(n_samples, self.n_classes_)}, "
                                     f"got {label_costs.shape}.")
        return label_costs

    @abstractmethod
    def _train(self, finder: NeighborSetFinder, sample_weight: np.ndarray, label_costs: np.ndarray):
        """ Estimate the vote tables from the fitted neighbor sets. """

    @abstractmethod
    def _vote(self, neigh_ind: np.ndarray, neigh_dist: np.ndarray = None) -> np.ndarray:
        """ Unnormalized class scores of shape (n_query, n_classes). """

    def _relation_table(self, finder: NeighborSetFinder, sample_weight: np.ndarray,
                        label_costs: np.ndarray, smoothing: float = 0.) -> np.ndarray:
        """ Class-conditional occurrence table normalized according to the boosting mode. """
        n_classes = self.n_classes_
        relation = finder.class_neighbor_relation(n_classes, include_self=True, sample_weight=sample_weight)
        if self.boosting == "b1":
            with np.errstate(divide="ignore", invalid="ignore"):
                normalized = (relation + smoothing) / (relation.sum(axis=0) + n_classes * smoothing)
            return np.where(np.isfinite(normalized), normalized, relation)

        n, k = finder.k_neighbors_.shape
        y = finder.dataset_.y
        penalty = label_costs * sample_weight[:, np.newaxis]
        penalty[np.arange(n), y] = 0.
        voters = np.hstack([np.arange(n)[:, np.newaxis], finder.k_neighbors_]).ravel()
        penalties = np.zeros((n, n_classes))
        np.add.at(penalties, voters, np.repeat(penalty, k + 1, axis=0))
        relation -= penalties.T
        return self._shift_and_normalize(relation, axis=0)

    @staticmethod
    def _shift_and_normalize(scores: np.ndarray, axis: int) -> np.ndarray:
        """ Shift slices with negative entries to a zero minimum, then divide by their sum.

        Slices with a non-positive or non-finite total keep their shifted values.
        """
        lowest = scores.min(axis=axis, keepdims=True)
        shifted = scores - np.minimum(lowest, 0.)
        total = shifted.sum(axis=axis, keepdims=True)
        valid = np.isfinite(total) & (total > 0)
        return np.divide(shifted, total, out=shifted.copy(), where=valid)

    def _check_neighbors(self, neigh_ind, neigh_dist):
        neigh_ind = np.atleast_2d(np.asarray(neigh_ind))
        if not np.issubdtype(neigh_ind.dtype, np.integer):
            raise ConfigurationError("Neighbor indices must be integers.")
        if neigh_ind.shape[1] < 1:
            raise ConfigurationError("At least one neighbor per query is required.")
        n = self.finder_.n_samples_fit_
        if neigh_ind.size and (neigh_ind.min() < 0 or neigh_ind.max() >= n):
            raise ConfigurationError(f"Neighbor indices must refer to the {n} training points.")
        if neigh_dist is not None:
            neigh_dist = np.atleast_2d(np.asarray(neigh_dist, dtype=np.float64))
            if neigh_dist.shape != neigh_ind.shape:
                raise ConfigurationError(f"Neighbor distances {neigh_dist.shape} do not match "
                                         f"neighbor indices {neigh_ind.shape}.")
        return neigh_ind, neigh_dist

    def predict_proba_from_neighbors(self, neigh_ind, neigh_dist=None) -> np.ndarray:
        """ Class probabilities from precomputed neighbors of the queries.

        Parameters
        ----------
        neigh_ind : array-like of shape (n_query, n_neighbors)
            Indices of training points, nearest first
        neigh_dist : array-like of shape (n_query, n_neighbors), optional
            Corresponding distances, used by distance-weighted classifiers

        Returns
        -------
        p : ndarray of shape (n_query, n_classes)
            Class probabilities, in the order of `classes_`
        """
        check_is_fitted(self, "relation_")
        neigh_ind, neigh_dist = self._check_neighbors(neigh_ind, neigh_dist)
        scores = self._vote(neigh_ind, neigh_dist)

        lowest = scores.min(axis=1, keepdims=True)
        scores = scores - np.minimum(lowest, 0.)
        total = scores.sum(axis=1, keepdims=True)
        mass = np.isfinite(total[:, 0]) & (total[:, 0] > 0)
        proba = np.tile(self.class_priors_, (scores.shape[0], 1))
        proba[mass] = scores[mass] / total[mass]
        if not np.all(mass):
            logging.info(f"{np.sum(~mass)} queries received no vote mass, using class priors.")
        return proba

    def predict_from_neighbors(self, neigh_ind, neigh_dist=None) -> np.ndarray:
        """ Class labels from precomputed neighbors. Ties go to the first class in `classes_`. """
        proba = self.predict_proba_from_neighbors(neigh_ind, neigh_dist)
        return self.classes_[np.argmax(proba, axis=1)]

    def predict_proba(self, X=None) -> np.ndarray:
        """ Return probability estimates for the test data X.

        Parameters
        ----------
        X : array-like of shape (n_query, n_features), optional
            Test samples. If None, classify the training points from their
            own neighbor sets, which never contain the point itself.

        Returns
        -------
        p : ndarray of shape (n_query, n_classes)
            Class probabilities, in the order of `classes_`
        """
        check_is_fitted(self, "finder_")
        neigh_dist, neigh_ind = self.finder_.kneighbors(X, n_neighbors=self.k_)
        return self.predict_proba_from_neighbors(neigh_ind, neigh_dist)

    def predict(self, X=None) -> np.ndarray:
        """ Predict the class labels for the provided data

        Parameters
        ----------
        X : array-like of shape (n_query, n_features), optional
            Test samples, or None for the training points

        Returns
        -------
        y : ndarray of shape (n_query,)
            Class labels for each data sample
        """
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]
