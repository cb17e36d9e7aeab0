# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-DateTree - Data keyed by date in a tree of date components.

Addresses, enumerates and watches data keyed by calendar time on top of a
hierarchical ordered key-value store, one tree level per calendar unit.
"""

__version__ = "0.1.0"

from .components import (
    ALL_DATE_UNITS,
    DateComponents,
    DateParsable,
    DateUnit,
    add_unit,
    bigger_unit,
    check_resolution,
    decode_date_component,
    downsample_date_components,
    encode_date_component,
    get_date_component,
    get_date_component_range,
    get_date_components,
    get_date_with_components,
    is_resolution,
    iterate_dates,
    parse_date,
    smaller_unit,
    start_of,
    units_to,
)
from .datetree import DateTree
from .exceptions import (
    ConsistencyError,
    DateTreeError,
    InvalidReferenceError,
    InvalidResolutionError,
    StoreClosedError,
    StoreError,
)
from .iterate import DateRangeIterator
from .store import MemoryRef, MemoryStore, TreeRef
from .watch import NearbyChangeWatcher

__all__ = [
    # Core classes
    "DateTree",
    "DateRangeIterator",
    "NearbyChangeWatcher",
    # Stores
    "TreeRef",
    "MemoryStore",
    "MemoryRef",
    # Date components
    "ALL_DATE_UNITS",
    "DateUnit",
    "DateParsable",
    "DateComponents",
    "parse_date",
    "start_of",
    "add_unit",
    "is_resolution",
    "check_resolution",
    "units_to",
    "bigger_unit",
    "smaller_unit",
    "get_date_component",
    "get_date_components",
    "get_date_with_components",
    "downsample_date_components",
    "encode_date_component",
    "decode_date_component",
    "get_date_component_range",
    "iterate_dates",
    # Exceptions
    "DateTreeError",
    "InvalidResolutionError",
    "InvalidReferenceError",
    "ConsistencyError",
    "StoreError",
    "StoreClosedError",
]
