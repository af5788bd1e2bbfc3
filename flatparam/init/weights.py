# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Weight initialization into flat parameter views.

``init_weights`` generates a fresh array of the requested shape according to
one of the WeightInit schemes, flattens it in the requested memory order, and
copies it into a caller-supplied BufferView. That copy is the only observable
side effect.

Generation honours the memory order: values are drawn into storage laid out in
``order`` and flattened with the same order. With a seeded generator the flat
result is therefore exactly the generator's draw sequence, whatever the shape.

Scheme table (fan_in / fan_out are connection counts):

    DISTRIBUTION     distribution.sample(shape)
    RELU             N(0, 1) * sqrt(2 / fan_in)
    RELU_UNIFORM     U(-u, u),  u = sqrt(6 / fan_in)
    SIGMOID_UNIFORM  U(-r, r),  r = 4 * sqrt(6 / (fan_in + fan_out))
    UNIFORM          U(-a, a),  a = 1 / sqrt(fan_in)
    XAVIER           N(0, 1) * sqrt(2 / (fan_in + fan_out))
    XAVIER_UNIFORM   U(-s, s),  s = sqrt(6) / sqrt(fan_in + fan_out)
    XAVIER_FAN_IN    N(0, 1) / sqrt(fan_in)
    XAVIER_LEGACY    N(0, 1) / sqrt(shape[0] + shape[1])
    ZERO             zeros
"""

import math
from enum import Enum
from typing import Callable, Optional, Sequence

import torch

from flatparam.buffer.core import BufferView, MemoryOrder, flatten
from flatparam.exceptions import InvalidInitSchemeError, LengthMismatchError
from flatparam.init.distributions import Distribution


class WeightInit(str, Enum):
    """Closed set of weight initialization schemes."""

    DISTRIBUTION = "distribution"
    RELU = "relu"
    RELU_UNIFORM = "relu_uniform"
    SIGMOID_UNIFORM = "sigmoid_uniform"
    UNIFORM = "uniform"
    XAVIER = "xavier"
    XAVIER_UNIFORM = "xavier_uniform"
    XAVIER_FAN_IN = "xavier_fan_in"
    XAVIER_LEGACY = "xavier_legacy"
    ZERO = "zero"


def resolve_scheme(scheme: WeightInit | str) -> WeightInit:
    """
    Turn a scheme selector into a WeightInit member.

    Accepts a WeightInit or its string value (case-insensitive).

    Raises:
        InvalidInitSchemeError: If the selector isn't one of the known schemes.
    """
    if isinstance(scheme, WeightInit):
        return scheme
    if isinstance(scheme, str):
        try:
            return WeightInit(scheme.lower())
        except ValueError:
            pass
    available = ", ".join(member.value for member in WeightInit)
    raise InvalidInitSchemeError(f"Illegal weight init value: {scheme!r}. Available: {available}")


# ── Order-aware raw generators ─────────────────────────────────────────────


def _storage_shape(shape: tuple[int, ...], order: MemoryOrder) -> tuple[int, ...]:
    return shape if order is MemoryOrder.C else tuple(reversed(shape))


def _in_order(storage: torch.Tensor, order: MemoryOrder) -> torch.Tensor:
    """View storage drawn in ``order`` with its logical shape."""
    if order is MemoryOrder.F and storage.dim() > 1:
        return storage.permute(*reversed(range(storage.dim())))
    return storage


def _randn(shape, order, generator, dtype) -> torch.Tensor:
    storage = torch.randn(_storage_shape(shape, order), generator=generator, dtype=dtype)
    return _in_order(storage, order)


def _rand_uniform(shape, order, generator, dtype, bound: float) -> torch.Tensor:
    storage = torch.empty(_storage_shape(shape, order), dtype=dtype)
    storage.uniform_(-bound, bound, generator=generator)
    return _in_order(storage, order)


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0 for this init scheme, got {value}")
    return value


# ── Scheme samplers ────────────────────────────────────────────────────────
# Each takes (fan_in, fan_out, shape, distribution, order, generator, dtype).

_Sampler = Callable[
    [float, float, tuple[int, ...], Optional[Distribution], MemoryOrder,
     Optional[torch.Generator], torch.dtype],
    torch.Tensor,
]


def _distribution(fan_in, fan_out, shape, dist, order, generator, dtype):
    return dist.sample(shape, generator=generator, dtype=dtype)


def _relu(fan_in, fan_out, shape, dist, order, generator, dtype):
    return _randn(shape, order, generator, dtype) * math.sqrt(2.0 / _positive("fan_in", fan_in))


def _relu_uniform(fan_in, fan_out, shape, dist, order, generator, dtype):
    u = math.sqrt(6.0 / _positive("fan_in", fan_in))
    return _rand_uniform(shape, order, generator, dtype, u)


def _sigmoid_uniform(fan_in, fan_out, shape, dist, order, generator, dtype):
    r = 4.0 * math.sqrt(6.0 / _positive("fan_in + fan_out", fan_in + fan_out))
    return _rand_uniform(shape, order, generator, dtype, r)


def _uniform(fan_in, fan_out, shape, dist, order, generator, dtype):
    a = 1.0 / math.sqrt(_positive("fan_in", fan_in))
    return _rand_uniform(shape, order, generator, dtype, a)


def _xavier(fan_in, fan_out, shape, dist, order, generator, dtype):
    scale = math.sqrt(2.0 / _positive("fan_in + fan_out", fan_in + fan_out))
    return _randn(shape, order, generator, dtype) * scale


def _xavier_uniform(fan_in, fan_out, shape, dist, order, generator, dtype):
    # Glorot & Bengio 2010, eq. 16
    s = math.sqrt(6.0) / math.sqrt(_positive("fan_in + fan_out", fan_in + fan_out))
    return _rand_uniform(shape, order, generator, dtype, s)


def _xavier_fan_in(fan_in, fan_out, shape, dist, order, generator, dtype):
    return _randn(shape, order, generator, dtype) / math.sqrt(_positive("fan_in", fan_in))


def _xavier_legacy(fan_in, fan_out, shape, dist, order, generator, dtype):
    return _randn(shape, order, generator, dtype) / math.sqrt(shape[0] + shape[1])


def _zero(fan_in, fan_out, shape, dist, order, generator, dtype):
    return torch.zeros(shape, dtype=dtype)


_SAMPLERS: dict[WeightInit, _Sampler] = {
    WeightInit.DISTRIBUTION: _distribution,
    WeightInit.RELU: _relu,
    WeightInit.RELU_UNIFORM: _relu_uniform,
    WeightInit.SIGMOID_UNIFORM: _sigmoid_uniform,
    WeightInit.UNIFORM: _uniform,
    WeightInit.XAVIER: _xavier,
    WeightInit.XAVIER_UNIFORM: _xavier_uniform,
    WeightInit.XAVIER_FAN_IN: _xavier_fan_in,
    WeightInit.XAVIER_LEGACY: _xavier_legacy,
    WeightInit.ZERO: _zero,
}


def check_scheme(
    scheme: WeightInit | str,
    shape: Sequence[int],
    distribution: Optional[Distribution] = None,
) -> WeightInit:
    """
    Validate that ``scheme`` can produce an array of ``shape``.

    Nothing is sampled here, so callers can validate before touching a buffer.

    Returns:
        The resolved WeightInit member.

    Raises:
        InvalidInitSchemeError: Unknown scheme, DISTRIBUTION without a
            distribution, or XAVIER_LEGACY on a shape with fewer than 2 dims.
    """
    resolved = resolve_scheme(scheme)
    if resolved is WeightInit.DISTRIBUTION and distribution is None:
        raise InvalidInitSchemeError("Weight init scheme DISTRIBUTION requires a distribution")
    if resolved is WeightInit.XAVIER_LEGACY and len(shape) < 2:
        raise InvalidInitSchemeError(
            f"Weight init scheme XAVIER_LEGACY requires a shape with at least 2 dimensions, "
            f"got {list(shape)}"
        )
    return resolved


def init_weights(
    fan_in: float,
    fan_out: float,
    shape: Sequence[int],
    scheme: WeightInit | str,
    distribution: Optional[Distribution],
    order: MemoryOrder | str,
    param_view: BufferView,
    generator: Optional[torch.Generator] = None,
) -> BufferView:
    """
    Generate weights for ``shape`` and copy them, flattened, into ``param_view``.

    Args:
        fan_in: Number of input connections per unit.
        fan_out: Number of output connections per unit.
        shape: Logical shape of the raw weights.
        scheme: WeightInit member or its string value.
        distribution: Sampler used by the DISTRIBUTION scheme.
        order: Memory order for generation and flattening; must be the order
            the consumer of ``param_view`` expects.
        param_view: Destination window. Written in place.
        generator: Optional seeded generator for reproducible draws.

    Returns:
        ``param_view``, now populated.

    Raises:
        InvalidInitSchemeError: See ``check_scheme``. Raised before sampling.
        LengthMismatchError: Flattened output length differs from the view
            length. Raised before assignment; the view is untouched.
        ValueError: Negative dimensions, or a non-positive fan where the
            scheme divides by it.
    """
    shape = tuple(int(dim) for dim in shape)
    if any(dim < 0 for dim in shape):
        raise ValueError(f"Shape dimensions must be >= 0, got {list(shape)}")

    resolved = check_scheme(scheme, shape, distribution)
    order = MemoryOrder(order)
    dtype = param_view.dtype

    if math.prod(shape) == 0:
        raw = torch.zeros(shape, dtype=dtype)
    else:
        raw = _SAMPLERS[resolved](fan_in, fan_out, shape, distribution, order, generator, dtype)

    flat = flatten(raw, order)
    if flat.numel() != param_view.length:
        raise LengthMismatchError(
            view_length=param_view.length,
            view_shape=param_view.shape,
            flat_length=flat.numel(),
            raw_shape=tuple(raw.shape),
        )

    param_view.assign(flat.to(dtype))
    return param_view
