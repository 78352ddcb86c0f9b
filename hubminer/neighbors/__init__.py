# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.neighbors` package computes distance matrices,
k-nearest neighbor sets, and neighbor occurrence statistics.
"""
from .distance_matrix import DistanceMatrix, compute_distance_matrix
from .neighbor_sets import NeighborSetFinder
from .shared_neighbors import SharedNeighborFinder, VALID_WEIGHTINGS
from .approximate import approximate_neighbor_sets

__all__ = [
    "DistanceMatrix",
    "compute_distance_matrix",
    "NeighborSetFinder",
    "SharedNeighborFinder",
    "VALID_WEIGHTINGS",
    "approximate_neighbor_sets",
]
