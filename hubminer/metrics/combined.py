# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
from typing import Sequence, Tuple

import numpy as np

from ._base import PrimaryMetric
from ..exceptions import ConfigurationError

__all__ = [
    "CombinedMetric",
    "VALID_MIXERS",
]

#: Ways of combining the partial distances of a CombinedMetric
VALID_MIXERS = [
    "sum",
    "average",
    "max",
    "min",
    "product",
    "euclidean",
]


class CombinedMetric(PrimaryMetric):
    """ Combine metrics that each operate on a subset of the features.

    Useful for heterogeneous data, e.g. a Manhattan distance on count features
    and a Euclidean distance on real-valued features.

    Parameters
    ----------
    components : sequence of (PrimaryMetric, columns)
        Each metric is applied to the feature columns given as an index array or slice.
    mixer : str, default = "sum"
        How the partial distances are combined, one of `VALID_MIXERS`.
    weights : sequence of float, optional
        Multiplies each partial distance before mixing.
    """
    supports_sparse = False

    def __init__(self, components: Sequence[Tuple[PrimaryMetric, object]], mixer: str = "sum", weights=None):
        if not components:
            raise ConfigurationError("CombinedMetric requires at least one component.")
        for metric, _ in components:
            if metric is None or not hasattr(metric, "dist_many"):
                raise ConfigurationError(f"Invalid component metric: {metric!r}.")
        if mixer not in VALID_MIXERS:
            raise ConfigurationError(f"Unknown mixer '{mixer}'. Must be one of {VALID_MIXERS}.")
        if weights is not None and len(weights) != len(components):
            raise ConfigurationError(f"Got {len(weights)} weights for {len(components)} components.")
        self.components = list(components)
        self.mixer = mixer
        self.weights = weights

    def _dist_many(self, a, B, mask):
        parts = np.vstack([metric.dist_many(a[columns], B[:, columns])
                           for metric, columns in self.components])
        if self.weights is not None:
            parts = parts * np.asarray(self.weights, dtype=np.float64).reshape(-1, 1)
        ok = np.isfinite(parts)
        # Rows without any usable part are at distance 0, like vectors without usable components
        n_ok = ok.sum(axis=0)

        if self.mixer == "sum":
            out = np.where(ok, parts, 0.).sum(axis=0)
        elif self.mixer == "average":
            out = np.where(ok, parts, 0.).sum(axis=0) / np.maximum(n_ok, 1)
        elif self.mixer == "max":
            out = np.where(ok, parts, -np.inf).max(axis=0)
        elif self.mixer == "min":
            out = np.where(ok, parts, np.inf).min(axis=0)
        elif self.mixer == "product":
            out = np.where(ok, parts, 1.).prod(axis=0)
        else:  # "euclidean"
            out = np.sqrt(np.where(ok, parts ** 2, 0.).sum(axis=0))
        return np.where(n_ok > 0, out, 0.)
