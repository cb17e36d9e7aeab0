# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Notifications of changes next to a date's path in the tree."""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable

from .components import (
    DateComponents,
    decode_date_component,
    downsample_date_components,
)
from .store.base import META_KEY, TreeRef, Unsubscribe

logger = logging.getLogger(__name__)

NearbyChangeCallback = Callable[[DateComponents], None]


class NearbyChangeWatcher:
    """Subscribes to every node on the spine of a date, leaf excluded.

    The node at each unit is the one whose children are keyed by that unit,
    so a change reported there is a sibling of the watched path. The callback
    receives the components identifying the changed sibling, which are
    partial unless the change happened at the tree's resolution.

    A change whose key equals the watched path's own value is dropped. This
    also drops value updates at the watched leaf itself, which are
    indistinguishable from echoes of the path at this level.

    Example:
        >>> watcher = NearbyChangeWatcher(chain, {'year': 2020, 'month': 8}, print)
        >>> watcher.start()
        >>> ...  # a write at 2020-09 prints {'year': 2020, 'month': 9}
        >>> watcher.off()
    """

    def __init__(
        self,
        chain: list[TreeRef],
        components: DateComponents,
        callback: NearbyChangeCallback,
    ) -> None:
        """Initialize a NearbyChangeWatcher.

        Args:
            chain: Nodes from the root along the watched path; the node
                at position i lists the values of the i-th unit.
            components: Components of the watched date, in ladder order.
            callback: Called with the partial components of each change.
                It runs synchronously inside the store notification and
                must not be a coroutine function; schedule async work from
                it instead.

        Raises:
            TypeError: If callback is a coroutine function.
        """
        if inspect.iscoroutinefunction(callback):
            raise TypeError(
                f"callback must be a plain function, not coroutine function {callback!r}"
            )
        self._chain = chain
        self._components = dict(components)
        self._callback = callback
        self._unsubscribers: dict[str, Unsubscribe] = {}

    @property
    def active(self) -> bool:
        return bool(self._unsubscribers)

    def start(self) -> None:
        """Subscribe at every unit.

        If a subscription fails, the ones already made are turned off.
        """
        try:
            for unit, ref in zip(self._components, self._chain):
                self._unsubscribers[unit] = ref.subscribe(
                    functools.partial(self._on_changes, unit)
                )
        except Exception:
            self.off()
            raise
        logger.debug("Watching changes about %s", self._components)

    def off(self) -> None:
        """Turn off every subscription. Calling it again does nothing."""
        if not self._unsubscribers:
            return
        unsubscribers, self._unsubscribers = self._unsubscribers, {}
        for unsubscribe in unsubscribers.values():
            unsubscribe()
        logger.debug("Stopped watching changes about %s", self._components)

    def _on_changes(self, unit: str, changes: dict[str, Any]) -> None:
        for key in changes:
            # the callback may turn the watcher off mid batch
            if not self._unsubscribers:
                return
            if key == META_KEY:
                continue
            try:
                value = decode_date_component(key)
            except (ValueError, OverflowError):
                logger.debug("Ignoring non date key %r at %s", key, unit)
                continue
            if value == self._components[unit]:
                continue

            change_components = downsample_date_components(self._components, unit)
            change_components[unit] = value
            try:
                self._callback(change_components)
            except Exception:
                logger.exception(
                    "Uncaught error in date tree change callback for %s",
                    change_components,
                )
