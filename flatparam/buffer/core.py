# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Flat parameter buffer for flatparam.

A whole network keeps its parameters (and, separately, its gradients) in one
contiguous 1-D tensor. The buffer owns that storage. Everything else only ever
sees a BufferView, which is a window described by (buffer, start, length).

How this works:
  - BufferView.tensor is a torch ``narrow`` of the buffer storage, so reads and
    writes through a view hit the shared buffer directly. No copies.
  - Views never own storage. They are recomputed every time they are needed
    and die with the buffer.
  - A view whose range falls outside its buffer cannot be constructed.

Memory order matters once values are generated for a multi-dimensional shape
and then flattened into a view: the same raw array flattened in C order and in
F order puts different elements at the same flat offset. Generation and
flattening must agree, which is why a single DEFAULT_WEIGHT_INIT_ORDER exists.
"""

from enum import Enum
from typing import Optional

import torch


class MemoryOrder(str, Enum):
    """Element order used when flattening an n-d array into a flat view."""

    C = "c"
    F = "f"


# Params get flattened to F order by the network, so weights are generated in F order too.
DEFAULT_WEIGHT_INIT_ORDER = MemoryOrder.F


def flatten(tensor: torch.Tensor, order: MemoryOrder | str) -> torch.Tensor:
    """
    Flatten a tensor to 1-D in the given memory order.

    C order walks the last dimension fastest, F order the first. For 0-d and
    1-d tensors both orders are the same.

    Args:
        tensor: Any tensor.
        order: MemoryOrder or its string value ("c" / "f").

    Returns:
        A 1-D tensor with ``tensor.numel()`` elements.
    """
    order = MemoryOrder(order)
    if order is MemoryOrder.F and tensor.dim() > 1:
        tensor = tensor.permute(*reversed(range(tensor.dim())))
    return tensor.reshape(-1)


class FlatBuffer:
    """
    Owner of one contiguous 1-D parameter (or gradient) storage region.

    Args:
        length: Number of elements. Fixed for the buffer's lifetime.
        dtype: Element dtype.
        order: Memory order consumers of this buffer expect.
    """

    __slots__ = ("_data", "order")

    def __init__(
        self,
        length: int,
        dtype: torch.dtype = torch.float32,
        order: MemoryOrder | str = DEFAULT_WEIGHT_INIT_ORDER,
    ) -> None:
        if length < 0:
            raise ValueError(f"Buffer length must be >= 0, got {length}")
        self._data = torch.zeros(length, dtype=dtype)
        self.order = MemoryOrder(order)

    @classmethod
    def from_tensor(
        cls,
        tensor: torch.Tensor,
        order: MemoryOrder | str = DEFAULT_WEIGHT_INIT_ORDER,
    ) -> "FlatBuffer":
        """
        Wrap an existing 1-D contiguous tensor without copying it.

        Raises:
            ValueError: If the tensor is not 1-D or not contiguous.
        """
        if tensor.dim() != 1:
            raise ValueError(f"FlatBuffer requires a 1-D tensor, got shape {tuple(tensor.shape)}")
        if not tensor.is_contiguous():
            raise ValueError("FlatBuffer requires a contiguous tensor")
        buffer = cls.__new__(cls)
        buffer._data = tensor
        buffer.order = MemoryOrder(order)
        return buffer

    @property
    def length(self) -> int:
        return self._data.numel()

    def __len__(self) -> int:
        return self.length

    @property
    def dtype(self) -> torch.dtype:
        return self._data.dtype

    @property
    def data(self) -> torch.Tensor:
        """The owned storage. Mutating it mutates every view."""
        return self._data

    def view(self, start: int = 0, end: Optional[int] = None) -> "BufferView":
        """Return a view over ``[start, end)``; the whole buffer by default."""
        if end is None:
            end = self.length
        return BufferView(self, start, end - start)

    def __repr__(self) -> str:
        return f"FlatBuffer(length={self.length}, dtype={self.dtype}, order={self.order.value!r})"


class BufferView:
    """
    Non-owning window ``[start, start + length)`` into a FlatBuffer.

    Args:
        buffer: The buffer that owns the storage.
        start: Offset of the first element, in elements.
        length: Number of elements in the window.

    Raises:
        ValueError: If the window doesn't lie inside the buffer.
    """

    __slots__ = ("buffer", "start", "length")

    def __init__(self, buffer: FlatBuffer, start: int, length: int) -> None:
        if start < 0 or length < 0:
            raise ValueError(f"View start and length must be >= 0, got start={start}, length={length}")
        if start + length > buffer.length:
            raise ValueError(
                f"View [{start}, {start + length}) exceeds buffer of length {buffer.length}"
            )
        self.buffer = buffer
        self.start = start
        self.length = length

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def shape(self) -> tuple[int, ...]:
        return (self.length,)

    @property
    def order(self) -> MemoryOrder:
        return self.buffer.order

    @property
    def dtype(self) -> torch.dtype:
        return self.buffer.dtype

    @property
    def tensor(self) -> torch.Tensor:
        """Zero-copy tensor aliasing this window of the buffer storage."""
        return self.buffer.data.narrow(0, self.start, self.length)

    def __len__(self) -> int:
        return self.length

    def sub_view(self, start: int, end: int) -> "BufferView":
        """
        Return the window ``[start, end)`` relative to this view.

        Raises:
            ValueError: If the range is inverted or falls outside this view.
        """
        if start < 0 or end < start or end > self.length:
            raise ValueError(
                f"Sub-view [{start}, {end}) is not inside a view of length {self.length}"
            )
        return BufferView(self.buffer, self.start + start, end - start)

    def assign(self, values: torch.Tensor) -> "BufferView":
        """
        Copy ``values`` elementwise into this window, in place.

        ``values`` must already be flat (or flatten in C order to the intended
        sequence) and hold exactly ``length`` elements.

        Raises:
            ValueError: If the element count differs from the view length.
        """
        if values.numel() != self.length:
            raise ValueError(
                f"Cannot assign {values.numel()} values into a view of length {self.length}"
            )
        with torch.no_grad():
            self.tensor.copy_(values.reshape(-1))
        return self

    def overlaps(self, other: "BufferView") -> bool:
        """True if both views share the same buffer and at least one element."""
        if self.buffer is not other.buffer:
            return False
        return self.start < other.end and other.start < self.end

    def __repr__(self) -> str:
        return f"BufferView(start={self.start}, length={self.length}, order={self.order.value!r})"
