# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Range iteration over the leaves of a date tree.

A range query is decomposed into per-level ordered child listings, walked
depth first with an explicit stack (one open listing per level):

    year    [2020 .. 2020]            start/end path
    month   [08 .. 09]                start/end path
    day     under 08: [10 .. ]        start path only
            under 09: [ .. 01)        end path only, exclusive at the leaf

Only the listing sitting exactly on the start or end path receives a bound
at its level; every other listing is open on that side, since its parent was
already within the range. Inner levels are listed with inclusive bounds so
the scan can descend onto a boundary's ancestors, and only the leaf level
applies the caller's inclusivity.

Nothing is buffered or sorted: memory grows with the depth of the tree, not
with the number of results.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, AsyncIterator

from .components import (
    DateComponents,
    DateParsable,
    decode_date_component,
    encode_date_component,
    get_date_component_range,
    get_date_components,
    get_date_with_components,
    units_to,
)
from .store.base import TreeRef

logger = logging.getLogger(__name__)

Listing = AsyncIterator[tuple[TreeRef, str]]


async def _close_listing(listing: Listing) -> None:
    aclose = getattr(listing, 'aclose', None)
    if aclose is not None:
        await aclose()


class DateRangeIterator:
    """Async iterator of (leaf, date) pairs within a date range.

    Leaves are yielded in ascending date order, or descending when reverse
    is set. The iterator is not restartable: once exhausted or closed it
    stays exhausted.

    Stopping early must release the listings still open in the store; use
    the iterator as an async context manager, or call aclose()::

        async with DateRangeIterator(root, 'day', start='2020-08-10') as it:
            async for ref, date in it:
                if date.month > 8:
                    break
    """

    def __init__(
        self,
        root: TreeRef,
        resolution: str,
        start: DateParsable | None = None,
        end: DateParsable | None = None,
        start_inclusive: bool = True,
        end_inclusive: bool = False,
        reverse: bool = False,
    ) -> None:
        """Initialize a DateRangeIterator.

        Args:
            root: Root of the date tree.
            resolution: Unit of the tree's leaves.
            start: Lower bound, None for no bound.
            end: Upper bound, None for no bound.
            start_inclusive: Include leaves at exactly start.
            end_inclusive: Include leaves at exactly end.
            reverse: Yield the latest leaves first.

        Raises:
            InvalidResolutionError: If resolution is not a calendar unit.
        """
        self._units = units_to(resolution)
        self._resolution = resolution
        self._start_components: DateComponents = (
            get_date_components(start, resolution) if start is not None else {}
        )
        self._end_components: DateComponents = (
            get_date_components(end, resolution) if end is not None else {}
        )
        self._start_inclusive = start_inclusive
        self._end_inclusive = end_inclusive
        self._reverse = reverse

        self._components: DateComponents = {}
        self._stack: list[Listing] = []
        self._unit_index = 0
        self._ref: TreeRef | None = root
        self._closed = False

    def __repr__(self) -> str:
        return (
            f"DateRangeIterator(start={self._start_components!r}, "
            f"end={self._end_components!r}, reverse={self._reverse!r})"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def depth(self) -> int:
        """Number of listings currently open."""
        return len(self._stack)

    def __aiter__(self) -> DateRangeIterator:
        return self

    async def __anext__(self) -> tuple[TreeRef, datetime]:
        if self._closed:
            raise StopAsyncIteration
        try:
            pair = await self._advance()
        except BaseException:
            await self.aclose()
            raise
        if pair is None:
            await self.aclose()
            raise StopAsyncIteration
        return pair

    async def __aenter__(self) -> DateRangeIterator:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close every open listing. Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        self._ref = None
        self._components.clear()
        stack, self._stack = self._stack, []
        error: Exception | None = None
        for listing in reversed(stack):
            try:
                await _close_listing(listing)
            except Exception as exc:
                if error is None:
                    error = exc
        if error is not None:
            raise error

    # ==================== Traversal ====================

    async def _advance(self) -> tuple[TreeRef, datetime] | None:
        """Walk the tree until the next leaf in range, or until the end."""
        leaf_index = len(self._units) - 1
        while self._unit_index >= 0:
            unit = self._units[self._unit_index]
            at_leaf = self._unit_index == leaf_index
            if self._ref is not None:
                self._stack.append(self._open_level(self._ref, unit, at_leaf))
                self._ref = None

            try:
                ref, key = await self._stack[-1].__anext__()
            except StopAsyncIteration:
                await self._ascend(unit)
                continue

            self._components[unit] = decode_date_component(key)
            if at_leaf:
                return ref, get_date_with_components(self._components, self._resolution)
            # Descend into ref at the next unit.
            self._ref = ref
            self._unit_index += 1
        return None

    def _open_level(self, ref: TreeRef, unit: str, at_leaf: bool) -> Listing:
        low, high = get_date_component_range(
            self._components, self._start_components, self._end_components, unit
        )
        logger.debug(
            "Listing %s under %s: %r..%r", unit, self._components, low, high
        )
        return ref.children(
            start=encode_date_component(low, unit),
            end=encode_date_component(high, unit),
            start_inclusive=self._start_inclusive or not at_leaf,
            end_inclusive=self._end_inclusive or not at_leaf,
            reverse=self._reverse,
        )

    async def _ascend(self, unit: str) -> None:
        listing = self._stack.pop()
        self._unit_index -= 1
        self._components.pop(unit, None)
        await _close_listing(listing)
