# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for DateTree tests."""

import pytest

from genro_datetree import DateTree, MemoryStore


@pytest.fixture
def store():
    """An empty MemoryStore."""
    return MemoryStore()


@pytest.fixture
def day_store():
    """A MemoryStore with leaves at 2020-08-01, 2020-08-23 and 2020-09-01."""
    return MemoryStore({
        '2020': {
            '08': {'01': 'first', '23': 'of a lifetime'},
            '09': {'01': 'last'},
        },
    })


@pytest.fixture
def day_tree(day_store):
    """A day resolution DateTree over day_store."""
    return DateTree(day_store.root, 'day')
