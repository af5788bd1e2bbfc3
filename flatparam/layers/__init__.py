# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Read-only layer configuration objects.
"""

from flatparam.layers.config import (
    ElementWiseLayerConfig,
    FeedForwardLayerConfig,
    LayerConfig,
    NeuralNetConfiguration,
)

__all__ = [
    "ElementWiseLayerConfig",
    "FeedForwardLayerConfig",
    "LayerConfig",
    "NeuralNetConfiguration",
]
