# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Network-wide parameter and gradient buffers.

NetworkParams is the orchestrator around the element-wise layout engine:

  1. Ask the engine how many parameters each layer owns.
  2. Allocate one FlatBuffer for parameters and one for gradients, each
     exactly the sum of those counts.
  3. Hand each layer the slice [offset_i, offset_i + count_i) and let the
     engine split it into weight/bias views.

Slices are adjacent and never overlap, so layers can be initialized on a
thread pool without locks on the buffer. Each layer draws from its own
torch.Generator seeded with ``seed + layer_index``, which makes the parallel
result identical to the sequential one.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import torch

from flatparam.buffer.core import DEFAULT_WEIGHT_INIT_ORDER, BufferView, FlatBuffer, MemoryOrder
from flatparam.layers.config import NeuralNetConfiguration
from flatparam.params.elementwise import ElementWiseParamInitializer
from flatparam.params.table import ParamTable

logger = logging.getLogger(__name__)


def _layer_generator(seed: Optional[int], index: int) -> Optional[torch.Generator]:
    if seed is None:
        return None
    generator = torch.Generator()
    generator.manual_seed(seed + index)
    return generator


class NetworkParams:
    """
    Flat parameter and gradient buffers for a stack of element-wise layers.

    Args:
        confs: Layer configurations, in buffer order.
        dtype: Element dtype of both buffers.
        order: Memory order of both buffers.
        initializer: Layout engine; the shared element-wise instance by default.
    """

    def __init__(
        self,
        confs: Sequence[NeuralNetConfiguration],
        dtype: torch.dtype = torch.float32,
        order: MemoryOrder | str = DEFAULT_WEIGHT_INIT_ORDER,
        initializer: Optional[ElementWiseParamInitializer] = None,
    ) -> None:
        self.confs = list(confs)
        self.initializer = initializer or ElementWiseParamInitializer.get_instance()

        # Sizing happens before any slicing; an unsupported layer fails here.
        self._slices: list[tuple[int, int]] = []
        offset = 0
        for conf in self.confs:
            length = self.initializer.num_params(conf)
            self._slices.append((offset, length))
            offset += length

        self.num_params = offset
        self.params = FlatBuffer(self.num_params, dtype=dtype, order=order)
        self.gradients = FlatBuffer(self.num_params, dtype=dtype, order=order)
        self.param_table = ParamTable()

        logger.debug(
            "network buffers allocated",
            extra={"layers": len(self.confs), "num_params": self.num_params, "dtype": str(dtype)},
        )

    def layer_slices(self) -> list[tuple[int, int]]:
        """(start, length) of every layer's slice, in buffer order."""
        return list(self._slices)

    def layer_view(self, index: int) -> BufferView:
        """This layer's slice of the parameter buffer."""
        start, length = self._slices[index]
        return self.params.view(start, start + length)

    def layer_gradient_view(self, index: int) -> BufferView:
        """This layer's slice of the gradient buffer."""
        start, length = self._slices[index]
        return self.gradients.view(start, start + length)

    def _init_layer(
        self, index: int, initialize_params: bool, seed: Optional[int]
    ) -> ParamTable:
        conf = self.confs[index]
        table = self.initializer.init(
            conf,
            self.layer_view(index),
            initialize_params,
            generator=_layer_generator(seed, index),
        )
        for name, view in table.items():
            self.param_table.put(f"{index}_{name}", view)
        return table

    def init(
        self,
        initialize_params: bool = True,
        seed: Optional[int] = None,
        max_workers: int = 1,
    ) -> list[ParamTable]:
        """
        Carve (and optionally initialize) every layer's parameter views.

        Args:
            initialize_params: Fill views per layer config; otherwise leave the
                buffer as it is (e.g. after loading saved values into it).
            seed: Base seed. Layer i uses ``seed + i``. None draws from torch's
                global generator, which is only reproducible sequentially.
            max_workers: Thread count. 1 initializes layers in order.

        Returns:
            One ParamTable per layer, in buffer order.
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")

        indices = range(len(self.confs))
        if max_workers == 1 or len(self.confs) < 2:
            tables = [self._init_layer(i, initialize_params, seed) for i in indices]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                futures = [
                    pool.submit(self._init_layer, i, initialize_params, seed) for i in indices
                ]
                tables = [future.result() for future in futures]

        logger.info(
            "network parameters ready",
            extra={
                "layers": len(tables),
                "num_params": self.num_params,
                "initialized": initialize_params,
                "workers": max_workers,
            },
        )
        return tables

    def gradient_tables(self) -> list[ParamTable]:
        """Weight/bias gradient views for every layer, from the gradient buffer."""
        return [
            self.initializer.gradients_from_flattened(conf, self.layer_gradient_view(i))
            for i, conf in enumerate(self.confs)
        ]
