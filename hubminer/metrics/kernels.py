# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from __future__ import annotations

import numpy as np

from ._base import PrimaryMetric, _align_sparse, _is_sparse_vector, _to_mapping, masked
from ..exceptions import ConfigurationError
from ..utils.check import is_acceptable

__all__ = [
    "GeneralizedHistogramKernel",
]


class GeneralizedHistogramKernel(PrimaryMetric):
    """ Generalized histogram intersection kernel [1]_ and its kernel-induced distance.

    The kernel value is the sum of min(|a_i|^alpha, |b_i|^beta). Components that
    are not finite in either vector are skipped.

    Parameters
    ----------
    alpha, beta : float, default = 1
        Exponents applied to the first and the second operand, respectively.

    References
    ----------
    .. [1] Boughorbel, S., Tarel, J.-P., & Boujemaa, N. (2005).
           Generalized histogram intersection kernel for image recognition.
           IEEE International Conference on Image Processing.
    """

    def __init__(self, alpha: float = 1., beta: float = 1.):
        if alpha <= 0 or beta <= 0:
            raise ConfigurationError(f"Kernel exponents must be positive, got alpha={alpha}, beta={beta}.")
        self.alpha = alpha
        self.beta = beta

    def dot(self, a, b) -> float:
        """ Kernel value K(a, b). """
        if a is None or b is None:
            raise ConfigurationError("Kernel operands must not be None.")
        if _is_sparse_vector(a) or _is_sparse_vector(b):
            a, b = _to_mapping(a), _to_mapping(b)
            # Keys present in only one vector contribute min(|x|, 0) = 0
            shared = set(a) & set(b)
            a = {key: a[key] for key in shared}
            b = {key: b[key] for key in shared}
            a, b = _align_sparse(a, b)
        else:
            a, b = self._check_pair(a, b)
        mask = is_acceptable(a) & is_acceptable(b)
        return float(self._dot_many(a, b.reshape(1, -1), mask.reshape(1, -1))[0])

    def _dot_many(self, a, B, mask):
        with np.errstate(invalid="ignore", over="ignore"):
            terms = np.minimum(np.abs(a) ** self.alpha, np.abs(B) ** self.beta)
        return np.sum(masked(terms, mask), axis=1)

    def _self_dot(self, A):
        A = np.atleast_2d(A)
        return self._dot_many(A, A, is_acceptable(A))

    def _dist_many(self, a, B, mask):
        # Symmetrize, as the kernel is asymmetric for alpha != beta
        k_ab = self._dot_many(a, B, mask)
        if self.alpha != self.beta:
            with np.errstate(invalid="ignore", over="ignore"):
                terms = np.minimum(np.abs(B) ** self.alpha, np.abs(a) ** self.beta)
            k_ab = 0.5 * (k_ab + np.sum(masked(terms, mask), axis=1))
        k_aa = self._self_dot(a)[0]
        k_bb = self._self_dot(B)
        return np.sqrt(np.maximum(k_aa + k_bb - 2. * k_ab, 0.))
