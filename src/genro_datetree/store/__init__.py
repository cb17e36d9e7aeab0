# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store package - hierarchical ordered key-value stores for DateTree.

The package is organized into:
- base: TreeRef, the node handle a backend implements
- core: MemoryStore, the in-memory reference backend, and its MemoryRef
- node: MemoryNode, the sorted node used by MemoryStore
- subscription: Path-keyed change subscriptions

Example:
    >>> from genro_datetree.store import MemoryStore
    >>> store = MemoryStore()
    >>> store.root.child('2020').child('08')
    MemoryRef('/2020/08')
"""

from .base import META_KEY, ChangeCallback, TreeRef, Unsubscribe
from .core import MemoryRef, MemoryStore
from .node import MemoryNode

__all__ = [
    "META_KEY",
    "ChangeCallback",
    "TreeRef",
    "Unsubscribe",
    "MemoryRef",
    "MemoryStore",
    "MemoryNode",
]
