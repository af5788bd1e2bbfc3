# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Parameter layout: carving weight/bias views out of flat buffers.
"""

from flatparam.params.elementwise import BIAS_KEY, WEIGHT_KEY, ElementWiseParamInitializer
from flatparam.params.table import ParamTable

__all__ = ["BIAS_KEY", "WEIGHT_KEY", "ElementWiseParamInitializer", "ParamTable"]
