# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store capability used by DateTree.

DateTree never talks to a concrete database. It needs a hierarchical
key-value store whose nodes can be addressed by key, walked back to their
parent, and whose children can be listed in key order within a bound. A
backend provides this by implementing TreeRef, a handle to one node.

Contract:
    - child(key) is deterministic get-or-create and performs no I/O
    - parent is None only at the true root of the store
    - children() lists (ref, key) pairs ordered lexicographically by key,
      ascending or descending, honoring the bounds; a None bound is open
    - subscribe() delivers batches {key: new_value} of changed children,
      which may also carry backend metadata under META_KEY
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable

META_KEY = '_'

ChangeCallback = Callable[[dict[str, Any]], None]
Unsubscribe = Callable[[], None]


class TreeRef(ABC):
    """Handle to a node of a hierarchical ordered key-value store."""

    __slots__ = ()

    @property
    @abstractmethod
    def key(self) -> str | None:
        """The key of this node within its parent, None at the root."""

    @property
    @abstractmethod
    def parent(self) -> TreeRef | None:
        """The parent node, None at the root."""

    @abstractmethod
    def child(self, key: str) -> TreeRef:
        """Return the child at key, creating the reference if needed."""

    @abstractmethod
    async def put(self, value: Any) -> None:
        """Write value at this node."""

    @abstractmethod
    async def value(self) -> Any:
        """Read the value at this node, None if nothing was written."""

    @abstractmethod
    def children(
        self,
        start: str | None = None,
        end: str | None = None,
        start_inclusive: bool = True,
        end_inclusive: bool = True,
        reverse: bool = False,
    ) -> AsyncIterator[tuple[TreeRef, str]]:
        """List the (child, key) pairs between start and end in key order."""

    @abstractmethod
    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        """Call callback with each batch of changed children.

        Returns:
            A function turning the subscription off.
        """
