# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Layer configuration objects consumed by the parameter initializers.

These are plain data objects (not pydantic) because they sit on the hot path
of network construction and need to be lightweight. YAML-facing validation
lives in config/schema.py and network/factory.py turns validated sections into
these objects.

The parameter initializers treat a layer config as read-only. The only thing
they ever write is the trainable variable list on NeuralNetConfiguration.
"""

import threading
from typing import Optional

from flatparam.init.distributions import Distribution
from flatparam.init.weights import WeightInit, resolve_scheme


class LayerConfig:
    """
    Base for every layer config. Carries only a name.

    Layers that are not feed-forward (no n_in / n_out) subclass this directly
    and are rejected by the element-wise parameter initializer.
    """

    __slots__ = ("name",)

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name


class FeedForwardLayerConfig(LayerConfig):
    """
    A layer with input and output sizes.

    Args:
        n_in: Number of inputs. Must be >= 0.
        n_out: Number of outputs. Must be >= 0.
        weight_init: Weight init scheme (WeightInit or its string value).
        distribution: Sampler for the DISTRIBUTION scheme.
        bias_init: Constant every bias element is set to on initialization.
        name: Optional layer name.
    """

    __slots__ = ("n_in", "n_out", "weight_init", "distribution", "bias_init")

    def __init__(
        self,
        n_in: int,
        n_out: int,
        weight_init: WeightInit | str = WeightInit.XAVIER,
        distribution: Optional[Distribution] = None,
        bias_init: float = 0.0,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(name)
        if n_in < 0 or n_out < 0:
            raise ValueError(f"n_in and n_out must be >= 0, got n_in={n_in}, n_out={n_out}")
        self.n_in = n_in
        self.n_out = n_out
        self.weight_init = resolve_scheme(weight_init)
        self.distribution = distribution
        self.bias_init = bias_init

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, n_in={self.n_in}, n_out={self.n_out}, "
            f"weight_init={self.weight_init.value!r})"
        )


class ElementWiseLayerConfig(FeedForwardLayerConfig):
    """
    Feed-forward layer whose weight is one scalar per input unit.

    Weight and bias both hold n_in values, so the layer owns 2 * n_in
    parameters of the shared buffer.
    """

    __slots__ = ()


class NeuralNetConfiguration:
    """
    Wraps one layer config plus the names of its trainable variables.

    ``add_variable`` is the bookkeeping call-out made by parameter
    initializers. It is idempotent and safe to call from several threads.
    """

    __slots__ = ("layer", "_variables", "_lock")

    def __init__(self, layer: LayerConfig) -> None:
        self.layer = layer
        self._variables: list[str] = []
        self._lock = threading.Lock()

    def add_variable(self, name: str) -> None:
        """Register ``name`` as a trainable variable. Repeated names are ignored."""
        with self._lock:
            if name not in self._variables:
                self._variables.append(name)

    def variables(self) -> list[str]:
        """Registered variable names, in registration order."""
        with self._lock:
            return list(self._variables)

    def __repr__(self) -> str:
        return f"NeuralNetConfiguration(layer={self.layer!r}, variables={self._variables})"
