# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.reduction` package provides secondary distances for hubness reduction.
"""

from ._base import SecondaryDistance
from .mutual_proximity import MutualProximity
from .local_scaling import LocalScaling, NICDM
from .shared_neighbors import SharedNearestNeighbors

#: Supported hubness reduction algorithms
hubness_algorithms = [
    "mp",
    "ls",
    "nicdm",
    "snn",
]
hubness_algorithms_long = [
    "mutual_proximity",
    "local_scaling",
    "nicdm",
    "shared_nearest_neighbors",
]


__all__ = [
    "SecondaryDistance",
    "LocalScaling",
    "MutualProximity",
    "NICDM",
    "SharedNearestNeighbors",
    "hubness_algorithms",
]
