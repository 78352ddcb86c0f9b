# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.data` package provides the dataset representation and synthetic data.
"""
from .dataset import Dataset, Cluster, as_dataset
from .generators import make_gaussian_hubs

__all__ = [
    "Dataset",
    "Cluster",
    "as_dataset",
    "make_gaussian_hubs",
]
