# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

""" Python package for hubness-aware nearest neighbor analysis and classification."""

__version__ = '0.1.0'

from . import analysis
from . import classification
from . import data
from . import metrics
from . import neighbors
from . import reduction
from . import utils
from .analysis import Hubness
from .classification import HFNN, HIKNN, HwKNN
from .exceptions import ConfigurationError, DegenerateInputError, HubminerError, WorkerFailure
from .neighbors import NeighborSetFinder


__all__ = ['analysis',
           'classification',
           'data',
           'metrics',
           'neighbors',
           'reduction',
           'utils',
           'Hubness',
           'HFNN',
           'HIKNN',
           'HwKNN',
           'NeighborSetFinder',
           'HubminerError',
           'ConfigurationError',
           'DegenerateInputError',
           'WorkerFailure',
           ]
