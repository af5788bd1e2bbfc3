# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Flat numeric buffer and the non-owning views carved out of it.
"""

from flatparam.buffer.core import (
    DEFAULT_WEIGHT_INIT_ORDER,
    BufferView,
    FlatBuffer,
    MemoryOrder,
    flatten,
)

__all__ = ["DEFAULT_WEIGHT_INIT_ORDER", "BufferView", "FlatBuffer", "MemoryOrder", "flatten"]
