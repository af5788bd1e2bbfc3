# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Parameter layout for element-wise layers.

An element-wise layer has one weight per input unit plus one bias per input
unit. Its slice of the network-wide parameter buffer is laid out as:

    [0, n_in)          weight
    [n_in, 2 * n_in)   bias

The gradient buffer is split at the same starting offsets, so the weight
gradient for element i always sits at the same flat offset as weight i. The
gradient bias segment is measured with n_out, the width the gradient buffer
uses for biases; with n_in == n_out (the only shape the YAML config accepts)
both layouts coincide element for element.

No logging and no retries here: every failure raises to the caller before
anything in the buffer has been written.
"""

from typing import Optional

import torch

from flatparam.buffer.core import BufferView
from flatparam.exceptions import SizeMismatchError, UnsupportedLayerTypeError
from flatparam.init.weights import check_scheme, init_weights
from flatparam.layers.config import FeedForwardLayerConfig, LayerConfig, NeuralNetConfiguration
from flatparam.params.table import ParamTable

WEIGHT_KEY = "weight"
BIAS_KEY = "bias"


def _feed_forward_layer(conf: NeuralNetConfiguration | LayerConfig) -> FeedForwardLayerConfig:
    layer = conf.layer if isinstance(conf, NeuralNetConfiguration) else conf
    if not isinstance(layer, FeedForwardLayerConfig):
        raise UnsupportedLayerTypeError(f"unsupported layer type: {type(layer).__name__}")
    return layer


class ElementWiseParamInitializer:
    """
    Carves weight and bias views for element-wise layers and initializes them.

    Stateless, so a single shared instance is enough; use ``get_instance()``.
    """

    _INSTANCE: Optional["ElementWiseParamInitializer"] = None

    @classmethod
    def get_instance(cls) -> "ElementWiseParamInitializer":
        if cls._INSTANCE is None:
            cls._INSTANCE = cls()
        return cls._INSTANCE

    def num_params(self, conf: NeuralNetConfiguration | LayerConfig) -> int:
        """
        Number of parameters the layer owns in the shared buffer: ``2 * n_in``.

        Raises:
            UnsupportedLayerTypeError: If the layer isn't feed-forward.
        """
        layer = _feed_forward_layer(conf)
        return layer.n_in * 2  # weights + bias

    def check_params_view(
        self, conf: NeuralNetConfiguration | LayerConfig, params_view: BufferView
    ) -> None:
        """
        Raises:
            UnsupportedLayerTypeError: If the layer isn't feed-forward.
            SizeMismatchError: If ``params_view`` isn't exactly ``num_params`` long.
        """
        expected = self.num_params(conf)
        if params_view.length != expected:
            raise SizeMismatchError(expected, params_view.length)

    def init(
        self,
        conf: NeuralNetConfiguration,
        params_view: BufferView,
        initialize_params: bool,
        generator: Optional[torch.Generator] = None,
    ) -> ParamTable:
        """
        Split ``params_view`` into weight and bias views, optionally initializing them.

        Args:
            conf: Configuration wrapping the layer. Receives the variable
                registrations for ``weight`` and ``bias``.
            params_view: This layer's slice of the network parameter buffer.
            initialize_params: If true, fill the views according to the layer
                config. If false, leave their contents untouched (e.g. so saved
                values can be loaded into the same layout).
            generator: Optional seeded generator for the weight draws.

        Returns:
            ParamTable with ``weight`` then ``bias``, both views of ``params_view``.

        Raises:
            UnsupportedLayerTypeError, SizeMismatchError, InvalidInitSchemeError,
            LengthMismatchError. All are raised before anything is written.
        """
        if not isinstance(conf, NeuralNetConfiguration):
            raise UnsupportedLayerTypeError(
                f"init needs a NeuralNetConfiguration, got {type(conf).__name__}"
            )
        layer = _feed_forward_layer(conf)
        self.check_params_view(layer, params_view)

        n_in = layer.n_in
        n_weight_params = n_in
        weight_view = params_view.sub_view(0, n_weight_params)
        bias_view = params_view.sub_view(n_weight_params, n_weight_params + n_in)

        if initialize_params:
            # Validate up front so a bad scheme can't leave the bias written and weights not.
            check_scheme(layer.weight_init, (n_in,), layer.distribution)

        params = ParamTable()
        params.put(WEIGHT_KEY, self.create_weights(layer, weight_view, initialize_params, generator))
        params.put(BIAS_KEY, self.create_bias(layer, bias_view, initialize_params))
        conf.add_variable(WEIGHT_KEY)
        conf.add_variable(BIAS_KEY)

        return params

    def create_weights(
        self,
        layer: FeedForwardLayerConfig,
        weight_view: BufferView,
        initialize_params: bool,
        generator: Optional[torch.Generator] = None,
    ) -> BufferView:
        """Fill the weight view from the layer's scheme, or pass it through untouched."""
        if not initialize_params:
            return weight_view
        return init_weights(
            fan_in=layer.n_in,
            fan_out=layer.n_out,
            shape=(layer.n_in,),
            scheme=layer.weight_init,
            distribution=layer.distribution,
            order=weight_view.order,
            param_view=weight_view,
            generator=generator,
        )

    def create_bias(
        self,
        layer: FeedForwardLayerConfig,
        bias_view: BufferView,
        initialize_params: bool,
    ) -> BufferView:
        """Fill the bias view with the layer's constant ``bias_init``, or pass it through."""
        if initialize_params:
            with torch.no_grad():
                bias_view.tensor.fill_(layer.bias_init)
        return bias_view

    def gradients_from_flattened(
        self, conf: NeuralNetConfiguration | LayerConfig, gradient_view: BufferView
    ) -> ParamTable:
        """
        Split a flattened gradient view into weight and bias gradient views.

        The weight gradient occupies ``[0, n_in)`` exactly like the weight
        parameters; the bias gradient occupies ``[n_in, n_in + n_out)``.
        Nothing is written.

        Raises:
            UnsupportedLayerTypeError: If the layer isn't feed-forward.
            SizeMismatchError: If ``gradient_view`` is shorter than ``n_in + n_out``.
        """
        layer = _feed_forward_layer(conf)
        n_in = layer.n_in
        n_out = layer.n_out
        n_weight_params = n_in

        required = n_weight_params + n_out
        if gradient_view.length < required:
            raise SizeMismatchError(
                required,
                gradient_view.length,
                f"Expected gradient view of length at least {required}, "
                f"got length {gradient_view.length}",
            )

        out = ParamTable()
        out.put(WEIGHT_KEY, gradient_view.sub_view(0, n_weight_params))
        out.put(BIAS_KEY, gradient_view.sub_view(n_weight_params, n_weight_params + n_out))
        return out
