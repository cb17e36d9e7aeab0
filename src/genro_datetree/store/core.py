# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""MemoryStore - an in-memory ordered hierarchical key-value store.

MemoryStore is the reference backend for DateTree. Nodes are MemoryNode
instances whose children are indexed in key order, and MemoryRef handles
address them by path.

Key Features:
    - **Lazy materialization**: child() only builds a reference; nodes appear
      when a value is written at or below them
    - **Ordered listing**: children listed by key, ascending or descending,
      within inclusive or exclusive bounds
    - **Cursor scans**: listings re-seek after every key, so keys inserted
      during a scan are picked up if they fall ahead of the cursor
    - **Change subscriptions**: only keys whose link or value changed are
      notified

Example:
    Basic usage::

        store = MemoryStore()
        ref = store.root.child('2020').child('08')
        await ref.put('summer')

        async for child, key in store.root.children():
            print(key)  # '2020'
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator

from ..exceptions import StoreClosedError
from .base import META_KEY, ChangeCallback, TreeRef, Unsubscribe
from .node import MemoryNode
from .subscription import SubscriptionMixin

logger = logging.getLogger(__name__)


class MemoryStore(SubscriptionMixin):
    """An ordered hierarchical key-value store held in memory.

    Attributes:
        root: MemoryRef to the root node.

    Example:
        >>> store = MemoryStore({'2020': {'08': 'summer'}})
        >>> store.as_dict()
        {'2020': {'08': 'summer'}}
    """

    __slots__ = (
        '_root', '_closed', '_open_listings',
        '_subscribers', '_subscriber_ids',
    )

    def __init__(self, source: dict[str, Any] | None = None) -> None:
        """Initialize a MemoryStore.

        Args:
            source: Optional nested dict of initial data. Dict values become
                branches, anything else a leaf value. Loading does not notify
                subscribers.
        """
        self._root = MemoryNode(None)
        self._closed = False
        self._open_listings = 0
        self._init_subscriptions()
        if source is not None:
            self._load(self._root, source)

    def _load(self, node: MemoryNode, source: dict[str, Any]) -> None:
        if not isinstance(source, dict):
            raise TypeError(f"source must be dict, not {type(source).__name__}")
        for label, value in source.items():
            child = node.get(label)
            if child is None:
                child = node.add_child(label)
            if isinstance(value, dict):
                self._load(child, value)
            else:
                child.value = value

    def __repr__(self) -> str:
        return f"MemoryStore({self._root.keys()})"

    @property
    def root(self) -> MemoryRef:
        return MemoryRef(self, ())

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def open_listings(self) -> int:
        """Number of children() scans started and not yet finished or closed."""
        return self._open_listings

    def close(self) -> None:
        """Close the store. Any further operation raises StoreClosedError."""
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("MemoryStore is closed")

    # ==================== Node access ====================

    def _find(self, path: tuple[str, ...]) -> MemoryNode | None:
        node: MemoryNode | None = self._root
        for label in path:
            node = node.get(label)
            if node is None:
                return None
        return node

    async def _put(self, path: tuple[str, ...], value: Any) -> None:
        self._check_open()
        node = self._root
        created: list[MemoryNode] = []
        for label in path:
            child = node.get(label)
            if child is None:
                child = node.add_child(label)
                created.append(child)
            node = child

        changed = bool(created) or node.value != value
        node.value = value
        logger.debug("Put /%s", '/'.join(path))

        # Parents learn about new links, and about the changed value of node.
        for child in created:
            if child is not node:
                self._notify(child.parent.path, {child.label: {'#': '/'.join(child.path)}})
        if changed and node.parent is not None:
            self._notify(node.parent.path, {node.label: value})

    async def _value(self, path: tuple[str, ...]) -> Any:
        self._check_open()
        node = self._find(path)
        return None if node is None else node.value

    async def _iter_children(
        self,
        path: tuple[str, ...],
        start: str | None,
        end: str | None,
        start_inclusive: bool,
        end_inclusive: bool,
        reverse: bool,
    ) -> AsyncIterator[tuple[MemoryRef, str]]:
        self._check_open()
        self._open_listings += 1
        try:
            last: str | None = None
            while True:
                # Each step is a round-trip, as with a remote backend.
                await asyncio.sleep(0)
                self._check_open()
                node = self._find(path)
                if node is None:
                    return
                key = node.seek(
                    start, end, start_inclusive, end_inclusive, reverse, after=last
                )
                if key is None:
                    return
                last = key
                yield MemoryRef(self, path + (key,)), key
        finally:
            self._open_listings -= 1

    # ==================== Conversion ====================

    def as_dict(self) -> dict[str, Any]:
        """Convert to a plain nested dict, children in key order.

        Branch nodes become dicts; a value written on a branch node itself
        is kept under META_KEY.
        """
        def _convert(node: MemoryNode) -> Any:
            if not node.is_branch:
                return node.value
            result: dict[str, Any] = {}
            if node.value is not None:
                result[META_KEY] = node.value
            for label in node.keys():
                result[label] = _convert(node.get(label))  # type: ignore[arg-type]
            return result

        converted = _convert(self._root)
        return converted if isinstance(converted, dict) else {}


class MemoryRef(TreeRef):
    """TreeRef to a node of a MemoryStore, addressed by its path."""

    __slots__ = ('_store', '_path')

    def __init__(self, store: MemoryStore, path: tuple[str, ...]) -> None:
        self._store = store
        self._path = path

    def __repr__(self) -> str:
        return f"MemoryRef('/{'/'.join(self._path)}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemoryRef):
            return NotImplemented
        return self._store is other._store and self._path == other._path

    def __hash__(self) -> int:
        return hash((id(self._store), self._path))

    @property
    def store(self) -> MemoryStore:
        return self._store

    @property
    def path(self) -> tuple[str, ...]:
        return self._path

    @property
    def key(self) -> str | None:
        return self._path[-1] if self._path else None

    @property
    def parent(self) -> MemoryRef | None:
        if not self._path:
            return None
        return MemoryRef(self._store, self._path[:-1])

    def child(self, key: str) -> MemoryRef:
        """Return the reference to the child at key.

        Raises:
            ValueError: If key is empty or the reserved metadata key.
        """
        if not key or key == META_KEY:
            raise ValueError(f"Invalid child key: {key!r}")
        return MemoryRef(self._store, self._path + (key,))

    async def put(self, value: Any) -> None:
        await self._store._put(self._path, value)

    async def value(self) -> Any:
        return await self._store._value(self._path)

    def children(
        self,
        start: str | None = None,
        end: str | None = None,
        start_inclusive: bool = True,
        end_inclusive: bool = True,
        reverse: bool = False,
    ) -> AsyncIterator[tuple[MemoryRef, str]]:
        return self._store._iter_children(
            self._path, start, end, start_inclusive, end_inclusive, reverse
        )

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        self._store._check_open()
        return self._store._subscribe(self._path, callback)
