# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for ElementWiseParamInitializer.

Validates the parameter count, the weight/bias split of a layer's buffer
slice, pass-through when initialization is skipped, failure before any
mutation, and that the gradient views use the same starting offsets.
"""

import threading

import pytest
import torch

from flatparam.buffer.core import FlatBuffer, MemoryOrder
from flatparam.exceptions import (
    InvalidInitSchemeError,
    SizeMismatchError,
    UnsupportedLayerTypeError,
)
from flatparam.init.distributions import NormalDistribution
from flatparam.init.weights import WeightInit
from flatparam.layers.config import ElementWiseLayerConfig, LayerConfig, NeuralNetConfiguration
from flatparam.params import elementwise
from flatparam.params.elementwise import BIAS_KEY, WEIGHT_KEY, ElementWiseParamInitializer


@pytest.fixture()
def initializer() -> ElementWiseParamInitializer:
    return ElementWiseParamInitializer.get_instance()


class TestNumParams:
    @pytest.mark.parametrize("n_in", [0, 1, 4, 37])
    def test_twice_n_in(self, initializer, make_conf, n_in: int) -> None:
        assert initializer.num_params(make_conf(n_in)) == 2 * n_in

    def test_ignores_n_out(self, initializer, make_conf) -> None:
        assert initializer.num_params(make_conf(3, n_out=10)) == 6

    def test_accepts_bare_layer(self, initializer, make_conf) -> None:
        assert initializer.num_params(make_conf(5).layer) == 10

    def test_unsupported_layer(self, initializer) -> None:
        with pytest.raises(UnsupportedLayerTypeError, match="LayerConfig"):
            initializer.num_params(NeuralNetConfiguration(LayerConfig("pool")))

    def test_singleton(self) -> None:
        assert ElementWiseParamInitializer.get_instance() is ElementWiseParamInitializer.get_instance()


class TestInitSplit:
    def test_weight_then_bias(self, initializer, make_conf) -> None:
        params = initializer.init(make_conf(4), FlatBuffer(8).view(), initialize_params=False)
        assert list(params) == [WEIGHT_KEY, BIAS_KEY]

    def test_segments_are_adjacent_and_disjoint(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(20)
        layer_view = buffer.view(6, 14)
        params = initializer.init(make_conf(4), layer_view, initialize_params=False)
        weight, bias = params[WEIGHT_KEY], params[BIAS_KEY]
        assert (weight.start, weight.length) == (6, 4)
        assert (bias.start, bias.length) == (10, 4)
        assert weight.end == bias.start
        assert not weight.overlaps(bias)
        assert weight.buffer is buffer and bias.buffer is buffer

    def test_views_alias_the_buffer(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(6)
        params = initializer.init(make_conf(3), buffer.view(), initialize_params=False)
        params[BIAS_KEY].tensor.fill_(5.0)
        assert buffer.data.tolist() == [0.0, 0.0, 0.0, 5.0, 5.0, 5.0]

    def test_registers_trainable_variables(self, initializer, make_conf) -> None:
        conf = make_conf(2)
        initializer.init(conf, FlatBuffer(4).view(), initialize_params=False)
        assert conf.variables() == [WEIGHT_KEY, BIAS_KEY]

    def test_repeated_init_does_not_duplicate_variables(self, initializer, make_conf) -> None:
        conf = make_conf(2)
        view = FlatBuffer(4).view()
        initializer.init(conf, view, initialize_params=False)
        initializer.init(conf, view, initialize_params=False)
        assert conf.variables() == [WEIGHT_KEY, BIAS_KEY]

    def test_empty_layer(self, initializer, make_conf) -> None:
        params = initializer.init(make_conf(0), FlatBuffer(0).view(), initialize_params=True)
        assert params[WEIGHT_KEY].length == 0
        assert params[BIAS_KEY].length == 0


class TestInitValues:
    def test_skip_init_leaves_contents(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(8)
        sentinel = torch.arange(8, dtype=torch.float32) + 0.5
        buffer.data.copy_(sentinel)
        initializer.init(make_conf(4, weight_init="zero", bias_init=9.0), buffer.view(), False)
        assert torch.equal(buffer.data, sentinel)

    def test_zero_scheme_and_bias_constant(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(6)
        buffer.data.fill_(7.0)
        params = initializer.init(
            make_conf(3, weight_init=WeightInit.ZERO, bias_init=0.25), buffer.view(), True
        )
        assert params[WEIGHT_KEY].tensor.tolist() == [0.0, 0.0, 0.0]
        assert params[BIAS_KEY].tensor.tolist() == [0.25, 0.25, 0.25]

    def test_default_bias_is_zero(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(4)
        buffer.data.fill_(1.0)
        params = initializer.init(make_conf(2), buffer.view(), True)
        assert params[BIAS_KEY].tensor.tolist() == [0.0, 0.0]

    def test_uniform_four_inputs_within_half(self, initializer, make_conf, generator) -> None:
        conf = make_conf(4, weight_init="uniform")
        view = FlatBuffer(8).view()
        for _ in range(200):
            params = initializer.init(conf, view, True, generator=generator)
            assert params[WEIGHT_KEY].tensor.abs().max().item() <= 0.5

    def test_distribution_scheme(self, initializer, make_conf) -> None:
        conf = make_conf(3, weight_init="distribution", distribution=NormalDistribution(1.5, 0.0))
        params = initializer.init(conf, FlatBuffer(6).view(), True)
        assert params[WEIGHT_KEY].tensor.tolist() == [1.5, 1.5, 1.5]

    def test_seeded_generator_is_reproducible(self, initializer, make_conf) -> None:
        conf = make_conf(5, weight_init="xavier")
        first = FlatBuffer(10)
        second = FlatBuffer(10)
        initializer.init(conf, first.view(), True, generator=torch.Generator().manual_seed(11))
        initializer.init(conf, second.view(), True, generator=torch.Generator().manual_seed(11))
        assert torch.equal(first.data, second.data)

    @pytest.mark.parametrize("order", [MemoryOrder.C, MemoryOrder.F])
    def test_weights_generated_in_buffer_order(
        self, initializer, make_conf, monkeypatch, order: MemoryOrder
    ) -> None:
        seen: list[MemoryOrder] = []
        real_init_weights = elementwise.init_weights

        def recording_init_weights(**kwargs):
            seen.append(kwargs["order"])
            return real_init_weights(**kwargs)

        monkeypatch.setattr(elementwise, "init_weights", recording_init_weights)
        initializer.init(make_conf(3), FlatBuffer(6, order=order).view(), True)
        assert seen == [order]

    def test_does_not_touch_neighbours(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(12)
        buffer.data.fill_(-1.0)
        initializer.init(make_conf(3, weight_init="zero", bias_init=2.0), buffer.view(3, 9), True)
        assert buffer.data[:3].tolist() == [-1.0] * 3
        assert buffer.data[9:].tolist() == [-1.0] * 3


class TestInitFailures:
    def test_wrong_length_raises_before_mutation(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(7)
        buffer.data.fill_(3.0)
        conf = make_conf(3, weight_init="zero")
        with pytest.raises(SizeMismatchError) as excinfo:
            initializer.init(conf, buffer.view(), True)
        assert (excinfo.value.expected, excinfo.value.actual) == (6, 7)
        assert torch.all(buffer.data == 3.0)
        assert conf.variables() == []

    def test_unsupported_layer_raises(self, initializer) -> None:
        with pytest.raises(UnsupportedLayerTypeError):
            initializer.init(NeuralNetConfiguration(LayerConfig()), FlatBuffer(0).view(), True)

    def test_bare_layer_rejected_before_mutation(self, initializer) -> None:
        buffer = FlatBuffer(4)
        buffer.data.fill_(7.0)
        layer = ElementWiseLayerConfig(n_in=2, n_out=2, weight_init="zero", bias_init=1.0)
        with pytest.raises(UnsupportedLayerTypeError):
            initializer.init(layer, buffer.view(), True)  # type: ignore[arg-type]
        assert torch.all(buffer.data == 7.0)

    def test_xavier_legacy_rejected_without_writing(self, initializer, make_conf) -> None:
        buffer = FlatBuffer(4)
        buffer.data.fill_(8.0)
        conf = make_conf(2, weight_init="xavier_legacy", bias_init=1.0)
        with pytest.raises(InvalidInitSchemeError):
            initializer.init(conf, buffer.view(), True)
        assert torch.all(buffer.data == 8.0)

    def test_missing_distribution_rejected(self, initializer, make_conf) -> None:
        with pytest.raises(InvalidInitSchemeError):
            initializer.init(make_conf(2, weight_init="distribution"), FlatBuffer(4).view(), True)

    def test_xavier_legacy_allowed_when_not_initializing(self, initializer, make_conf) -> None:
        params = initializer.init(make_conf(2, weight_init="xavier_legacy"), FlatBuffer(4).view(), False)
        assert params[WEIGHT_KEY].length == 2


class TestGradientsFromFlattened:
    def test_same_weight_offsets_as_params(self, initializer, make_conf) -> None:
        conf = make_conf(5)
        params = initializer.init(conf, FlatBuffer(10).view(), False)
        grads = initializer.gradients_from_flattened(conf, FlatBuffer(10).view())
        assert (grads[WEIGHT_KEY].start, grads[WEIGHT_KEY].end) == (
            params[WEIGHT_KEY].start,
            params[WEIGHT_KEY].end,
        )
        assert grads[BIAS_KEY].start == params[BIAS_KEY].start

    def test_bias_width_is_n_out(self, initializer, make_conf) -> None:
        conf = make_conf(4, n_out=2)
        grads = initializer.gradients_from_flattened(conf, FlatBuffer(8).view())
        assert (grads[WEIGHT_KEY].start, grads[WEIGHT_KEY].length) == (0, 4)
        assert (grads[BIAS_KEY].start, grads[BIAS_KEY].length) == (4, 2)

    def test_order_is_weight_then_bias(self, initializer, make_conf) -> None:
        grads = initializer.gradients_from_flattened(make_conf(2), FlatBuffer(4).view())
        assert list(grads) == [WEIGHT_KEY, BIAS_KEY]

    def test_too_short_raises(self, initializer, make_conf) -> None:
        with pytest.raises(SizeMismatchError, match="at least 7"):
            initializer.gradients_from_flattened(make_conf(3, n_out=4), FlatBuffer(6).view())

    def test_does_not_mutate_or_register(self, initializer, make_conf) -> None:
        conf = make_conf(2)
        buffer = FlatBuffer(4)
        buffer.data.copy_(torch.tensor([1.0, 2.0, 3.0, 4.0]))
        grads = initializer.gradients_from_flattened(conf, buffer.view())
        assert buffer.data.tolist() == [1.0, 2.0, 3.0, 4.0]
        assert grads[BIAS_KEY].tensor.tolist() == [3.0, 4.0]
        assert conf.variables() == []


class TestConcurrentLayers:
    def test_parallel_equals_sequential(self, initializer, make_conf) -> None:
        """Two layers on disjoint slices give the same buffer in any thread order."""
        confs = [make_conf(6, weight_init="xavier"), make_conf(4, weight_init="relu_uniform")]
        slices = [(0, 12), (12, 20)]

        def run(buffer: FlatBuffer, index: int) -> None:
            start, end = slices[index]
            gen = torch.Generator().manual_seed(100 + index)
            initializer.init(confs[index], buffer.view(start, end), True, generator=gen)

        sequential = FlatBuffer(20)
        run(sequential, 0)
        run(sequential, 1)

        reversed_order = FlatBuffer(20)
        run(reversed_order, 1)
        run(reversed_order, 0)

        threaded = FlatBuffer(20)
        threads = [threading.Thread(target=run, args=(threaded, i)) for i in (1, 0)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert torch.equal(sequential.data, reversed_order.data)
        assert torch.equal(sequential.data, threaded.data)
