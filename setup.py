#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

""" hubminer: Hubness-aware nearest neighbor analysis and classification in Python.

Package metadata and dependencies are declared in setup.cfg.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
