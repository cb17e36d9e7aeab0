# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""DateTree - data keyed by date, distributed in a tree of date components.

A DateTree stores values in a hierarchical key-value store, one tree level
per calendar unit down to a fixed resolution. With resolution 'day' the
value for 2020-08-23 lives at::

    root / '2020' / '08' / '23'

Keys are zero padded, so listing the children of any node in key order lists
them in chronological order, and a range of dates can be walked lazily
without ever building a flat, sorted index. Large collections are split into
many small nodes, which is what a synchronized or graph store wants.

Example:
    Basic usage::

        store = MemoryStore()
        tree = DateTree(store.root, 'day')
        await tree.put('2020-08-23', 'of a lifetime')

        async with tree.iterate(start='2020-08-01') as it:
            async for ref, date in it:
                print(date, await ref.value())

        ref, date = await tree.latest()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .components import (
    DateParsable,
    add_unit,
    decode_date_component,
    encode_date_component,
    get_date_components,
    get_date_with_components,
    parse_date,
    start_of,
    units_to,
)
from .exceptions import ConsistencyError, InvalidReferenceError
from .iterate import DateRangeIterator
from .store.base import TreeRef, Unsubscribe
from .watch import NearbyChangeCallback, NearbyChangeWatcher

NO_RESULT: tuple[None, None] = (None, None)


class DateTree:
    """A view of a store node as a tree of dates at a fixed resolution.

    DateTree provides:
    - get(date) / put(date, value): Leaf lookup and write
    - get_date(ref): The date of a leaf
    - iterate(start, end, ...): Leaves within a date range, lazily
    - next / previous / earliest / latest: Single leaf lookups
    - watch(date, callback): Changes next to a date's path

    Attributes:
        root: The store node holding the tree.
        resolution: The calendar unit of the leaves.
    """

    __slots__ = ('root', 'resolution', '_units')

    def __init__(self, root: TreeRef, resolution: str) -> None:
        """Initialize a DateTree.

        Args:
            root: The store node holding the tree.
            resolution: Unit of the leaves, one of ALL_DATE_UNITS.

        Raises:
            InvalidResolutionError: If resolution is not a calendar unit.
        """
        self._units = units_to(resolution)
        self.root = root
        self.resolution = resolution

    def __repr__(self) -> str:
        return f"DateTree({self.root!r}, {self.resolution!r})"

    @property
    def units(self) -> tuple[str, ...]:
        """Units addressed by the tree, from 'year' to its resolution."""
        return self._units

    # ==================== Dates ====================

    def next_date(self, date: DateParsable) -> datetime:
        """Return the start of the resolution period after date."""
        return add_unit(start_of(date, self.resolution), self.resolution)

    def previous_date(self, date: DateParsable) -> datetime:
        """Return the start of the resolution period strictly before date.

        A date inside a period gives the start of that same period.
        """
        m = parse_date(date)
        floor = start_of(m, self.resolution)
        if floor == m:
            floor = add_unit(floor, self.resolution, -1)
        return floor

    # ==================== Paths ====================

    def get_ref_chain(self, date: DateParsable) -> list[TreeRef]:
        """Return the nodes from the root to the leaf of date.

        Nodes are referenced, not written: nothing appears in the store
        until a value is put.
        """
        components = get_date_components(date, self.resolution)
        ref = self.root
        refs = [ref]
        for unit, value in components.items():
            ref = ref.child(encode_date_component(value, unit))  # type: ignore[arg-type]
            refs.append(ref)
        return refs

    def get(self, date: DateParsable) -> TreeRef:
        """Return the leaf node for date, truncated to the resolution."""
        return self.get_ref_chain(date)[-1]

    async def put(self, date: DateParsable, value: Any) -> TreeRef:
        """Write value at the leaf for date and return the leaf."""
        ref = self.get(date)
        await ref.put(value)
        return ref

    def get_date(self, ref: TreeRef) -> datetime:
        """Return the date of a leaf node.

        Raises:
            InvalidReferenceError: If walking up from ref does not reach
                the root in exactly one step per unit.
        """
        keys: list[str] = []
        current: TreeRef | None = ref
        while current is not None and len(keys) < len(self._units):
            if current == self.root:
                raise InvalidReferenceError(
                    f"Invalid node reference {ref!r}. Expected a leaf on the date tree."
                )
            keys.insert(0, current.key)  # type: ignore[arg-type]
            current = current.parent
        if current is None or current != self.root:
            raise InvalidReferenceError(
                f"Invalid node reference {ref!r}. Expected a leaf on the date tree."
            )
        try:
            values = [decode_date_component(key) for key in keys]
            return get_date_with_components(dict(zip(self._units, values)))
        except (ValueError, OverflowError) as exc:
            raise InvalidReferenceError(
                f"Invalid node reference {ref!r}. Keys {keys!r} are not a date."
            ) from exc

    # ==================== Iteration ====================

    def iterate(
        self,
        start: DateParsable | None = None,
        end: DateParsable | None = None,
        start_inclusive: bool = True,
        end_inclusive: bool = False,
        reverse: bool = False,
    ) -> DateRangeIterator:
        """Iterate over (leaf, date) pairs from start to end.

        By default start is included and end excluded. Bounds are truncated
        to the resolution.

        Example:
            >>> async with tree.iterate(start='2020-08-10', end='2020-09-01') as it:
            ...     dates = [date async for ref, date in it]
        """
        return DateRangeIterator(
            self.root,
            self.resolution,
            start=start,
            end=end,
            start_inclusive=start_inclusive,
            end_inclusive=end_inclusive,
            reverse=reverse,
        )

    async def next(
        self, date: DateParsable | None = None
    ) -> tuple[TreeRef, datetime] | tuple[None, None]:
        """Return the first leaf after date, or the first leaf of the tree.

        Raises:
            ConsistencyError: If the store lists a leaf that is not after date.
        """
        m = parse_date(date) if date is not None else None
        async with self.iterate(
            start=m, start_inclusive=False, end_inclusive=True
        ) as it:
            async for ref, ref_date in it:
                if m is not None and ref_date <= m:
                    raise ConsistencyError(f"Unexpected date {ref_date} after {m}")
                return ref, ref_date
        return NO_RESULT

    async def previous(
        self, date: DateParsable | None = None
    ) -> tuple[TreeRef, datetime] | tuple[None, None]:
        """Return the last leaf before date, or the last leaf of the tree.

        Raises:
            ConsistencyError: If the store lists a leaf that is not before date.
        """
        m = parse_date(date) if date is not None else None
        async with self.iterate(
            end=m, start_inclusive=True, end_inclusive=False, reverse=True
        ) as it:
            async for ref, ref_date in it:
                if m is not None and ref_date >= m:
                    raise ConsistencyError(f"Unexpected date {ref_date} before {m}")
                return ref, ref_date
        return NO_RESULT

    async def earliest(self) -> tuple[TreeRef, datetime] | tuple[None, None]:
        """Return the first leaf of the tree, or (None, None)."""
        return await self.next()

    async def latest(self) -> tuple[TreeRef, datetime] | tuple[None, None]:
        """Return the last leaf of the tree, or (None, None)."""
        return await self.previous()

    # ==================== Changes ====================

    def watch(self, date: DateParsable, callback: NearbyChangeCallback) -> Unsubscribe:
        """Listen to changes next to the path of date.

        Rather than subscribing to the whole tree, watch one path: whenever
        a node next to the path between the root and the leaf of date
        changes, callback receives the components identifying it. They are
        partial unless the change happened at the tree's resolution.

        A common strategy is to watch the current date, fetch new data with
        latest() or iterate() when notified, and move the watch to a later
        date as time goes on.

        Example:
            >>> off = tree.watch('2020-08-23', print)
            >>> await tree.put('2020-08-24', 'x')  # prints {'year': 2020, 'month': 8, 'day': 24}
            >>> off()

        The callback is a plain function called during the store
        notification; it may call the returned function to stop watching.

        Returns:
            A function turning every subscription off.

        Raises:
            TypeError: If callback is a coroutine function.
        """
        components = get_date_components(date, self.resolution)
        chain = self.get_ref_chain(date)
        watcher = NearbyChangeWatcher(chain, components, callback)
        watcher.start()
        return watcher.off
