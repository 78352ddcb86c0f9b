# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.classification` package provides hubness-aware
k-nearest neighbor classifiers.
"""
from ._base import HubnessVoteClassifier, VALID_BOOSTING
from .hfnn import HFNN, VALID_LOCAL_ESTIMATES
from .hiknn import HIKNN
from .hwknn import HwKNN

__all__ = [
    "HubnessVoteClassifier",
    "HFNN",
    "HIKNN",
    "HwKNN",
    "VALID_BOOSTING",
    "VALID_LOCAL_ESTIMATES",
]
