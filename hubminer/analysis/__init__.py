# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.analysis` package provides methods for measuring hubness.
"""
from .estimation import Hubness, VALID_HUBNESS_MEASURES, find_hubs, find_antihubs

__all__ = [
    "Hubness",
    "VALID_HUBNESS_MEASURES",
    "find_hubs",
    "find_antihubs",
]
