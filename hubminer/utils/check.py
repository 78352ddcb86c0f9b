# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
import numpy as np
import numba

from ..exceptions import ConfigurationError, DegenerateInputError

__all__ = [
    "check_k",
    "check_n_samples",
    "check_sorted_k_distances",
    "is_acceptable",
    "MAX_DISTANCE",
]

#: Largest representable distance, signalling "undefined / maximally dissimilar"
MAX_DISTANCE = float(np.finfo(np.float64).max)


@numba.jit(nopython=True)
def _is_sorted_per_row(arr: np.ndarray) -> bool:
    n, m = arr.shape
    for i in range(n):
        for j in range(m - 1):
            if arr[i, j] > arr[i, j + 1]:
                return False
    return True


def is_acceptable(values) -> np.ndarray:
    """ Mask of usable feature values: finite, and not the float max placeholder. """
    values = np.asarray(values, dtype=np.float64)
    return np.isfinite(values) & (np.abs(values) != MAX_DISTANCE)


def check_n_samples(n_samples: int, what: str = "dataset") -> int:
    if n_samples < 1:
        raise DegenerateInputError(f"Cannot operate on an empty {what}.")
    return n_samples


def check_k(k, n_samples: int, name: str = "k") -> int:
    """ Ensure 0 < k < n_samples, i.e. that every object has k neighbors other than itself. """
    if k is None:
        raise ConfigurationError(f"Neighborhood size '{name}' must be specified.")
    if not np.issubdtype(type(k), np.integer):
        raise ConfigurationError(f"Neighborhood size '{name}' must be an integer, got {type(k)}.")
    if k <= 0:
        raise ConfigurationError(f"Neighborhood size '{name}' must be positive, got {name}={k}.")
    if k >= n_samples:
        raise ConfigurationError(f"Neighborhood size {name}={k} must be smaller than "
                                 f"the number of samples n={n_samples}.")
    return int(k)


def check_sorted_k_distances(k_distances: np.ndarray) -> np.ndarray:
    """ Ensure ascending distances in every row of a k-distances array. """
    k_distances = np.ascontiguousarray(k_distances, dtype=np.float64)
    if k_distances.ndim != 2:
        raise ConfigurationError(f"k-distances must be 2D, got shape {k_distances.shape}.")
    if not _is_sorted_per_row(k_distances):
        raise ConfigurationError("k-distances must be sorted, that is, store ascending distances per row.")
    return k_distances
