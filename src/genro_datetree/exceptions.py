# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""DateTree exceptions."""

from __future__ import annotations


class DateTreeError(Exception):
    """Base exception for DateTree errors."""

    pass


class InvalidResolutionError(DateTreeError, ValueError):
    """Raised when a resolution is not one of the calendar units."""

    def __init__(self, resolution: object) -> None:
        super().__init__(f"Invalid date tree resolution: {resolution!r}")
        self.resolution = resolution


class InvalidReferenceError(DateTreeError):
    """Raised when a node reference is not a leaf of the date tree."""

    pass


class ConsistencyError(DateTreeError):
    """Raised when the store lists leaves out of the requested order."""

    pass


class StoreError(DateTreeError):
    """Base exception for failures of a store backend."""

    pass


class StoreClosedError(StoreError):
    """Raised when an operation is attempted on a closed store."""

    pass
