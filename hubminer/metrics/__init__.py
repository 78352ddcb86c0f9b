# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.metrics` package provides primary distances between feature vectors.
"""
from ._base import PrimaryMetric
from .primary import (MinkowskiMetric, EuclideanMetric, ManhattanMetric, CosineMetric,
                      CanberraMetric, BrayCurtisMetric, TanimotoMetric)
from .kernels import GeneralizedHistogramKernel
from .combined import CombinedMetric, VALID_MIXERS
from ..exceptions import ConfigurationError

#: Primary metrics available by name
VALID_METRICS = {
    "euclidean": EuclideanMetric,
    "manhattan": ManhattanMetric,
    "minkowski": MinkowskiMetric,
    "cosine": CosineMetric,
    "canberra": CanberraMetric,
    "braycurtis": BrayCurtisMetric,
    "tanimoto": TanimotoMetric,
    "ghk": GeneralizedHistogramKernel,
}


def get_metric(metric, **metric_params) -> PrimaryMetric:
    """ Resolve a metric name, or pass through an object providing `dist` and `dist_many`. """
    if metric is None:
        raise ConfigurationError("A primary metric is required, but None was passed.")
    if isinstance(metric, str):
        try:
            metric_class = VALID_METRICS[metric.lower()]
        except KeyError:
            raise ConfigurationError(f"Unknown metric '{metric}'. "
                                     f"Must be one of {sorted(VALID_METRICS)}, "
                                     f"or a PrimaryMetric instance.")
        return metric_class(**metric_params)
    if not (hasattr(metric, "dist") and hasattr(metric, "dist_many")):
        raise ConfigurationError(f"Metric {metric!r} must provide 'dist' and 'dist_many'.")
    return metric


__all__ = [
    "PrimaryMetric",
    "MinkowskiMetric",
    "EuclideanMetric",
    "ManhattanMetric",
    "CosineMetric",
    "CanberraMetric",
    "BrayCurtisMetric",
    "TanimotoMetric",
    "GeneralizedHistogramKernel",
    "CombinedMetric",
    "VALID_MIXERS",
    "VALID_METRICS",
    "get_metric",
]
