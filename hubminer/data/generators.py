# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import numpy as np
from sklearn.utils.validation import check_random_state

from .dataset import Dataset

__all__ = ["make_gaussian_hubs"]


def make_gaussian_hubs(
        n_samples: int = 200,
        n_features: int = 50,
        n_classes: int = 2,
        class_sep: float = 1.,
        noise_ratio: float = 0.,
        random_state=None,
) -> Dataset:
    """ Draw labeled data from one spherical Gaussian per class.

    High `n_features` yields the distance concentration that makes some points hubs.

    Parameters
    ----------
    n_samples : int
        Total number of instances, distributed evenly over the classes
    n_features : int
        Dimensionality
    n_classes : int
        Number of Gaussian classes
    class_sep : float
        Standard deviation of the random class means
    noise_ratio : float
        Fraction of instances replaced by uniform noise and labeled -1
    random_state : int, RandomState instance or None

    Returns
    -------
    dataset : Dataset
    """
    random_state = check_random_state(random_state)
    y = np.arange(n_samples) % n_classes
    means = random_state.normal(scale=class_sep, size=(n_classes, n_features))
    X = means[y] + random_state.normal(size=(n_samples, n_features))

    n_noise = int(round(noise_ratio * n_samples))
    if n_noise > 0:
        noisy = random_state.choice(n_samples, size=n_noise, replace=False)
        low, high = X.min(), X.max()
        X[noisy] = random_state.uniform(low, high, size=(n_noise, n_features))
        y[noisy] = -1
    return Dataset(X, y)
