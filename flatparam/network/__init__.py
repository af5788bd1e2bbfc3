# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Network-wide orchestration of the shared parameter and gradient buffers.
"""

from flatparam.network.core import NetworkParams

__all__ = ["NetworkParams"]
