# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
flatparam — flat parameter buffer layout and weight initialization.

Element-wise layers carve their weight and bias out of one contiguous buffer
shared by the whole network. This package owns the offset arithmetic, the
initialization distributions, and the matching gradient views.
"""

__version__ = "0.1.0"
