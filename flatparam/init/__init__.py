# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Weight initialization schemes and sampling distributions.
"""

from flatparam.init.distributions import (
    BinomialDistribution,
    Distribution,
    NormalDistribution,
    UniformDistribution,
)
from flatparam.init.weights import WeightInit, check_scheme, init_weights, resolve_scheme

__all__ = [
    "BinomialDistribution",
    "Distribution",
    "NormalDistribution",
    "UniformDistribution",
    "WeightInit",
    "check_scheme",
    "init_weights",
    "resolve_scheme",
]
