# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Change subscriptions for MemoryStore.

Subscriptions are registered by node path, so a path can be watched before
anything has been written under it. Every write notifies the parent of each
node it touched with a batch of the keys that actually changed.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any

from .base import META_KEY, ChangeCallback, Unsubscribe

logger = logging.getLogger(__name__)


class SubscriptionMixin:
    """Path-keyed change subscriptions."""

    __slots__ = ()

    _subscribers: dict[tuple[str, ...], dict[int, ChangeCallback]]
    _subscriber_ids: itertools.count

    def _init_subscriptions(self) -> None:
        self._subscribers = {}
        self._subscriber_ids = itertools.count()

    def _subscribe(self, path: tuple[str, ...], callback: ChangeCallback) -> Unsubscribe:
        """Register callback for changes to the children of path.

        Returns:
            Function removing the subscription. Calling it again does nothing.
        """
        subscriber_id = next(self._subscriber_ids)
        self._subscribers.setdefault(path, {})[subscriber_id] = callback
        logger.debug("Subscribed #%d to /%s", subscriber_id, '/'.join(path))

        def off() -> None:
            callbacks = self._subscribers.get(path)
            if not callbacks or subscriber_id not in callbacks:
                return
            del callbacks[subscriber_id]
            if not callbacks:
                del self._subscribers[path]
            logger.debug("Unsubscribed #%d from /%s", subscriber_id, '/'.join(path))

        return off

    def subscriber_count(self, path: tuple[str, ...] | None = None) -> int:
        """Number of live subscriptions, at path or in the whole store."""
        if path is not None:
            return len(self._subscribers.get(path, {}))
        return sum(len(callbacks) for callbacks in self._subscribers.values())

    def _notify(self, path: tuple[str, ...], changes: dict[str, Any]) -> None:
        """Deliver a batch of changed children of path to its subscribers.

        A failing subscriber is logged and does not prevent delivery to the
        others, nor does it fail the write that triggered it.
        """
        callbacks = self._subscribers.get(path)
        if not callbacks:
            return
        batch = {META_KEY: {'#': '/'.join(path)}, **changes}
        for subscriber_id, callback in list(callbacks.items()):
            try:
                callback(dict(batch))
            except Exception:
                logger.exception(
                    "Subscriber #%d failed on /%s", subscriber_id, '/'.join(path)
                )
