# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations
import logging
from multiprocessing import cpu_count
from typing import Callable, List, Tuple

import numpy as np
from joblib import Parallel, delayed

from ..exceptions import ConfigurationError, WorkerFailure

__all__ = [
    "validate_n_jobs",
    "row_ranges",
    "run_row_ranges",
]


def validate_n_jobs(n_jobs):
    """ Handle special integers and non-integer `n_jobs` values. """
    if n_jobs is None:
        n_jobs = 1
    elif n_jobs == -1:
        n_jobs = cpu_count()
    elif n_jobs < -1 or n_jobs == 0:
        raise ConfigurationError(f"Number of parallel threads 'n_jobs' must be "
                                 f"a positive integer, or ``-1`` to use all local"
                                 f" CPU cores. Was {n_jobs} instead.")
    return int(n_jobs)


def row_ranges(n_rows: int, n_jobs: int) -> List[Tuple[int, int]]:
    """ Split ``range(n_rows)`` into at most `n_jobs` contiguous, balanced ranges ``(start, end)``. """
    n_chunks = max(1, min(n_jobs, n_rows))
    bounds = np.linspace(0, n_rows, n_chunks + 1).astype(int)
    return [(int(start), int(end)) for start, end in zip(bounds[:-1], bounds[1:]) if end > start]


def _guarded(func, start, end):
    try:
        return (start, end), func(start, end), None
    except Exception as e:  # noqa: collected and re-raised as WorkerFailure after the join
        return (start, end), None, e


def run_row_ranges(func: Callable[[int, int], object], n_rows: int, n_jobs: int = 1) -> list:
    """ Run ``func(start, end)`` on contiguous row ranges in a thread pool.

    Each worker owns its rows exclusively. The caller blocks until all workers
    have finished (join barrier).

    Parameters
    ----------
    func : callable
        Worker function taking the half-open row range ``[start, end)``.
    n_rows : int
        Total number of rows
    n_jobs : int
        Number of worker threads

    Returns
    -------
    results : list
        Return values of `func` in row order.

    Raises
    ------
    WorkerFailure
        If any worker raised. The error lists all failed ranges.
    """
    n_jobs = validate_n_jobs(n_jobs)
    ranges = row_ranges(n_rows, n_jobs)
    if n_jobs == 1 or len(ranges) == 1:
        outcomes = [_guarded(func, start, end) for start, end in ranges]
    else:
        outcomes = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_guarded)(func, start, end) for start, end in ranges
        )

    failures = [(rows, error) for rows, _, error in outcomes if error is not None]
    if failures:
        for (start, end), error in failures:
            logging.warning(f"Worker on rows [{start}, {end}) failed: {error!r}")
        raise WorkerFailure(failures)
    return [result for _, result, _ in outcomes]
