# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.utils` package provides validation and parallelization helpers.
"""
from .check import check_k, check_n_samples, check_sorted_k_distances
from .multiprocessing import validate_n_jobs, row_ranges, run_row_ranges

__all__ = [
    "check_k",
    "check_n_samples",
    "check_sorted_k_distances",
    "validate_n_jobs",
    "row_ranges",
    "run_row_ranges",
]
