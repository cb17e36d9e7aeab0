# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for watching changes next to a date's path."""

import logging

import pytest

from genro_datetree import DateTree, NearbyChangeWatcher, StoreClosedError


@pytest.fixture
def tree(store):
    return DateTree(store.root, 'day')


class TestWatch:
    """Tests for DateTree.watch."""

    @pytest.mark.asyncio
    async def test_sibling_leaf_change(self, tree):
        """Test a new neighbouring day is reported with full components."""
        changes = []
        tree.watch('2020-08-23', changes.append)
        await tree.put('2020-08-24', 'x')
        assert changes == [{'year': 2020, 'month': 8, 'day': 24}]

    @pytest.mark.asyncio
    async def test_own_path_filtered(self, tree):
        """Test writes at the watched date itself are not reported."""
        changes = []
        tree.watch('2020-08-23', changes.append)
        await tree.put('2020-08-23', 'x')
        await tree.put('2020-08-23', 'y')
        assert changes == []

    @pytest.mark.asyncio
    async def test_coarser_changes_are_partial(self, tree):
        """Test changes seen at coarser levels carry coarser components."""
        changes = []
        tree.watch('2020-08-23', changes.append)
        await tree.put('2020-08-23', 'x')
        await tree.put('2020-09-01', 'x')
        await tree.put('2021-01-01', 'x')
        assert changes == [
            {'year': 2020, 'month': 9},
            {'year': 2021},
        ]

    @pytest.mark.asyncio
    async def test_unrelated_branch_not_reported(self, tree):
        """Test only nodes on the watched spine are subscribed."""
        changes = []
        await tree.put('2020-09-01', 'x')
        tree.watch('2020-08-23', changes.append)
        await tree.put('2020-09-02', 'x')
        assert changes == []

    @pytest.mark.asyncio
    async def test_off(self, tree, store):
        changes = []
        off = tree.watch('2020-08-23', changes.append)
        assert store.subscriber_count() == 3
        off()
        assert store.subscriber_count() == 0
        await tree.put('2020-08-25', 'x')
        assert changes == []
        off()

    @pytest.mark.asyncio
    async def test_leaf_not_subscribed(self, tree, store):
        """Test the spine stops at the parent of the leaf."""
        tree.watch('2020-08-23', print)
        leaf = tree.get('2020-08-23')
        assert store.subscriber_count(leaf.path) == 0
        assert store.subscriber_count(leaf.parent.path) == 1

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_subscription(self, tree, caplog):
        """Test a failing callback is logged and still called afterwards."""
        calls = []

        def callback(components):
            calls.append(components)
            raise RuntimeError('boom')

        tree.watch('2020-08-23', callback)
        with caplog.at_level(logging.ERROR, logger='genro_datetree.watch'):
            await tree.put('2020-08-24', 'x')
            await tree.put('2020-08-25', 'x')
        assert len(calls) == 2
        assert 'Uncaught error' in caplog.text

    @pytest.mark.asyncio
    async def test_year_resolution(self, store):
        tree = DateTree(store.root, 'year')
        changes = []
        tree.watch('2020', changes.append)
        await tree.put('2019', 'x')
        await tree.put('2020', 'x')
        assert changes == [{'year': 2019}]

    @pytest.mark.asyncio
    async def test_move_watch_from_callback(self, tree, store):
        """Test a callback can stop its watch and watch a later date."""
        changes = []
        offs = []

        def callback(components):
            changes.append(components)
            offs.pop()()
            offs.append(tree.watch('2020-08-24', changes.append))

        offs.append(tree.watch('2020-08-23', callback))
        await tree.put('2020-08-24', 'x')
        await tree.put('2020-08-25', 'x')
        assert changes == [
            {'year': 2020, 'month': 8, 'day': 24},
            {'year': 2020, 'month': 8, 'day': 25},
        ]
        assert store.subscriber_count() == 3

    def test_closed_store_raises(self, tree, store):
        store.close()
        with pytest.raises(StoreClosedError):
            tree.watch('2020-08-23', print)


class TestNearbyChangeWatcher:
    """Tests for NearbyChangeWatcher."""

    def test_meta_and_non_date_keys_ignored(self, store):
        changes = []
        watcher = NearbyChangeWatcher([store.root], {'year': 2020}, changes.append)
        watcher._on_changes('year', {'_': {'#': ''}, 'event': 1, 'nan': 2, '2019': 3})
        assert changes == []
        watcher.start()
        watcher._on_changes('year', {'_': {'#': ''}, 'event': 1, 'nan': 2, '2019': 3})
        assert changes == [{'year': 2019}]

    def test_unpadded_keys_decoded(self, store):
        changes = []
        chain = [store.root, store.root.child('2020')]
        watcher = NearbyChangeWatcher(chain, {'year': 2020, 'month': 8}, changes.append)
        watcher.start()
        watcher._on_changes('month', {'9': 'x', '8': 'y'})
        assert changes == [{'year': 2020, 'month': 9}]

    def test_off_from_callback_stops_batch(self, store):
        """Test turning off inside the callback drops the rest of the batch."""
        changes = []

        def callback(components):
            changes.append(components)
            watcher.off()

        watcher = NearbyChangeWatcher([store.root], {'year': 2020}, callback)
        watcher.start()
        watcher._on_changes('year', {'2019': 1, '2021': 2})
        assert changes == [{'year': 2019}]
        assert watcher.active is False

    def test_coroutine_callback_raises(self, store):
        async def callback(components):
            pass

        with pytest.raises(TypeError, match='coroutine'):
            NearbyChangeWatcher([store.root], {'year': 2020}, callback)
        assert store.subscriber_count() == 0

    def test_active(self, store):
        watcher = NearbyChangeWatcher([store.root], {'year': 2020}, print)
        assert watcher.active is False
        watcher.start()
        assert watcher.active is True
        watcher.off()
        assert watcher.active is False

    def test_failed_start_releases_subscriptions(self, store):
        """Test a subscription failure turns off the ones already made."""

        class Failing:
            def subscribe(self, callback):
                raise StoreClosedError('closed')

        watcher = NearbyChangeWatcher(
            [store.root, Failing()], {'year': 2020, 'month': 8}, print
        )
        with pytest.raises(StoreClosedError):
            watcher.start()
        assert store.subscriber_count() == 0
        assert watcher.active is False
