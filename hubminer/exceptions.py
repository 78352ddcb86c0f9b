# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.exceptions` module includes all custom warnings and error
classes used across hubminer.
"""

__all__ = [
    "HubminerError",
    "ConfigurationError",
    "DegenerateInputError",
    "WorkerFailure",
]


class HubminerError(Exception):
    """ Base class for all errors raised by hubminer. """


class ConfigurationError(HubminerError, ValueError):
    """ Invalid parameters, e.g. a neighborhood size k outside of [1, n),
    a missing metric or dataset, or feature vectors of different length.
    """


class DegenerateInputError(HubminerError, ValueError):
    """ Bulk computation (distance matrix, neighbor sets) requested for an empty dataset. """


class WorkerFailure(HubminerError, RuntimeError):
    """ One or more row-range workers failed.

    Rows computed by successful workers are left intact in the target structure.

    Parameters
    ----------
    failures : list of ((int, int), Exception)
        Row range ``[start, end)`` of each failed worker with the error it raised.
    """

    def __init__(self, failures):
        self.failures = list(failures)
        ranges = ", ".join(f"[{start}, {end})" for (start, end), _ in self.failures)
        first = self.failures[0][1] if self.failures else None
        super().__init__(f"{len(self.failures)} worker(s) failed on row ranges {ranges}. "
                         f"First error: {first!r}")

    @property
    def failed_ranges(self):
        return [rows for rows, _ in self.failures]
