# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""MemoryStore node class."""

from __future__ import annotations

from bisect import bisect_left, bisect_right, insort
from typing import Any


class MemoryNode:
    """A node in a MemoryStore hierarchy.

    Each node has:
    - label: The node's unique key within its parent
    - value: The value written at this node, None if never written
    - parent: The containing MemoryNode, None at the root
    - children: Child nodes by label, with labels also kept sorted

    Example:
        >>> node = MemoryNode('2020')
        >>> node.add_child('08').label
        '08'
        >>> node.keys()
        ['08']
    """

    __slots__ = ('label', 'value', 'parent', '_children', '_keys')

    def __init__(
        self,
        label: str | None,
        value: Any = None,
        parent: MemoryNode | None = None,
    ) -> None:
        """Initialize a MemoryNode.

        Args:
            label: The node's key, None for the root.
            value: The node's value.
            parent: The MemoryNode containing this node.
        """
        self.label = label
        self.value = value
        self.parent = parent
        self._children: dict[str, MemoryNode] = {}
        self._keys: list[str] = []

    def __repr__(self) -> str:
        return f"MemoryNode({self.label!r}, value={self.value!r}, children={len(self._keys)})"

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def is_branch(self) -> bool:
        """True if this node has children."""
        return bool(self._keys)

    @property
    def path(self) -> tuple[str, ...]:
        """Keys from the root down to this node."""
        labels: list[str] = []
        node: MemoryNode | None = self
        while node is not None and node.parent is not None:
            labels.append(node.label)  # type: ignore[arg-type]
            node = node.parent
        return tuple(reversed(labels))

    def get(self, label: str) -> MemoryNode | None:
        """Return the child at label, or None."""
        return self._children.get(label)

    def add_child(self, label: str, value: Any = None) -> MemoryNode:
        """Create and index a child node.

        Raises:
            KeyError: If label already exists.
        """
        if label in self._children:
            raise KeyError(f"Label '{label}' already exists")
        node = MemoryNode(label, value, parent=self)
        self._children[label] = node
        insort(self._keys, label)
        return node

    def keys(self) -> list[str]:
        """Return child labels in key order."""
        return list(self._keys)

    def seek(
        self,
        start: str | None = None,
        end: str | None = None,
        start_inclusive: bool = True,
        end_inclusive: bool = True,
        reverse: bool = False,
        after: str | None = None,
    ) -> str | None:
        """Return the first label within bounds that comes after `after`.

        Order is ascending, or descending when reverse is set, so `after`
        is the last label already returned by a scan in that direction.

        Returns:
            The next label, or None when the range is exhausted.
        """
        keys = self._keys
        if start is None:
            lo = 0
        elif start_inclusive:
            lo = bisect_left(keys, start)
        else:
            lo = bisect_right(keys, start)
        if end is None:
            hi = len(keys)
        elif end_inclusive:
            hi = bisect_right(keys, end)
        else:
            hi = bisect_left(keys, end)

        if after is not None:
            if reverse:
                hi = min(hi, bisect_left(keys, after))
            else:
                lo = max(lo, bisect_right(keys, after))

        if lo >= hi:
            return None
        return keys[hi - 1] if reverse else keys[lo]
