# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Ordered, insertion-safe mapping from parameter name to buffer view.

Downstream consumers iterate parameter tables positionally (weight before
bias), so insertion order is part of the contract. Writes take a narrow lock
so several layers can populate one shared table from different threads.
Reads take no lock; a table is effectively immutable once its owner has
finished populating it.
"""

import threading
from collections.abc import Iterator, Mapping

from flatparam.buffer.core import BufferView


class ParamTable(Mapping[str, BufferView]):
    """Insertion-ordered name → BufferView mapping with locked writes."""

    def __init__(self) -> None:
        self._entries: dict[str, BufferView] = {}
        self._lock = threading.Lock()

    def put(self, name: str, view: BufferView) -> None:
        """
        Insert or replace ``name``. Replacing keeps the original position.
        """
        with self._lock:
            self._entries[name] = view

    def __getitem__(self, name: str) -> BufferView:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name!r}: {view!r}" for name, view in self._entries.items())
        return f"ParamTable({{{inner}}})"
