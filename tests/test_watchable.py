"""Tests for watch registration and the async load/unload lifecycle."""
import asyncio
import logging
from unittest.mock import Mock

import pytest

from livebase import BaseDataStore, Watchable, WatchableModel, resolve_model_id
from mock_host import DESIGN_PROJECTS_ID

RECORDS = {
    'recDesign0000001': {
        'id': 'recDesign0000001',
        'cellValuesByFieldId': {'fldPrimaryName01': 'Coffee packaging'},
        'commentCount': 2,
    },
}


class Node(WatchableModel):
    """Minimal model over ``nodesById[id]``."""
    _WATCHABLE_KEYS = ('value',)

    @property
    def _data_or_none(self):
        return self._store.get(('nodesById', self._id))

    def _get_interest_paths(self, key):
        return [('nodesById', self._id, key)]


class TestWatch:

    def test_invalid_key(self):
        node = Node(BaseDataStore(), Mock(), 'n1')
        with pytest.raises(ValueError, match="Invalid key to watch for Node: 'colour'"):
            node.watch('colour', Mock())

    def test_invalid_key_in_list_registers_nothing(self):
        node = Node(BaseDataStore(), Mock(), 'n1')
        with pytest.raises(ValueError):
            node.watch(['value', 'colour'], Mock())
        assert node.watched_keys == []

    def test_watch_returns_callback(self):
        node = Node(BaseDataStore(), Mock(), 'n1')
        callback = Mock()
        assert node.watch('value', callback) is callback
        assert node.watched_keys == ['value']

    def test_unwatch_unknown_pair_is_noop(self):
        node = Node(BaseDataStore(), Mock(), 'n1')
        node.unwatch('value', Mock())
        assert node.watched_keys == []

    def test_on_change_passes_model_and_key(self):
        node = Node(BaseDataStore(), Mock(), 'n1')
        callback = Mock()
        node.watch('value', callback)

        node._on_change('value')

        callback.assert_called_once_with(node, 'value')

    def test_plain_watchable(self):
        class Counter(Watchable):
            _WATCHABLE_KEYS = ('count',)

        counter = Counter('c1')
        callback = Mock()
        counter.watch('count', callback)
        counter._on_change('count')

        callback.assert_called_once_with(counter, 'count')


def test_resolve_model_id():
    node = Node(BaseDataStore(), Mock(), 'n1')
    assert resolve_model_id(node) == 'n1'
    assert resolve_model_id('n2') == 'n2'


def test_missing_node_is_deleted():
    store = BaseDataStore({'nodesById': {'n1': {'value': 1}}})
    assert not Node(store, Mock(), 'n1').is_deleted
    assert Node(store, Mock(), 'n2').is_deleted
    assert Node(store, Mock(), 'n2')._data == {}


def gated_fetch(records=None):
    """A fetch that blocks until the returned event is set."""
    gate = asyncio.Event()

    async def fetch(table_id):
        await gate.wait()
        return {'recordsById': dict(records or RECORDS)}

    return gate, fetch


@pytest.mark.asyncio
class TestLoadDataAsync:

    async def test_loads_records(self, host, design_projects):
        host.fetch_and_subscribe_to_table_data_async.return_value = {'recordsById': RECORDS}

        await design_projects.load_data_async()

        host.fetch_and_subscribe_to_table_data_async.assert_awaited_once_with(DESIGN_PROJECTS_ID)
        assert design_projects.is_data_loaded
        assert design_projects.record_ids == ['recDesign0000001']

    async def test_already_loaded_does_not_refetch(self, host, design_projects):
        await design_projects.load_data_async()
        await design_projects.load_data_async()

        assert host.fetch_and_subscribe_to_table_data_async.call_count == 1

    async def test_concurrent_loads_share_one_fetch(self, host, design_projects):
        gate, fetch = gated_fetch()
        host.fetch_and_subscribe_to_table_data_async.side_effect = fetch

        first = asyncio.ensure_future(design_projects.load_data_async())
        second = asyncio.ensure_future(design_projects.load_data_async())
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(first, second)

        assert host.fetch_and_subscribe_to_table_data_async.call_count == 1
        assert design_projects.is_data_loaded

    async def test_fires_is_data_loaded(self, host, design_projects):
        is_data_loaded = Mock()
        design_projects.watch('isDataLoaded', is_data_loaded)

        await design_projects.load_data_async()

        is_data_loaded.assert_called_once_with(design_projects, 'isDataLoaded')

    async def test_failure_propagates_and_allows_retry(self, host, design_projects, caplog):
        host.fetch_and_subscribe_to_table_data_async.side_effect = ConnectionError("offline")

        with caplog.at_level(logging.WARNING, logger='livebase.watchable'):
            with pytest.raises(ConnectionError):
                await design_projects.load_data_async()
            await asyncio.sleep(0)

        assert not design_projects.is_data_loaded
        assert "Data load failed" in caplog.text

        host.fetch_and_subscribe_to_table_data_async.side_effect = None
        await design_projects.load_data_async()

        assert design_projects.is_data_loaded
        assert host.fetch_and_subscribe_to_table_data_async.call_count == 2

    async def test_cancelled_waiter_does_not_cancel_load(self, host, design_projects):
        gate, fetch = gated_fetch()
        host.fetch_and_subscribe_to_table_data_async.side_effect = fetch

        waiter = asyncio.ensure_future(design_projects.load_data_async())
        await asyncio.sleep(0)
        waiter.cancel()
        gate.set()
        await design_projects.load_data_async()

        assert design_projects.is_data_loaded
        assert host.fetch_and_subscribe_to_table_data_async.call_count == 1


@pytest.mark.asyncio
class TestUnloadData:

    async def test_unload_after_load(self, host, design_projects):
        await design_projects.load_data_async()
        is_data_loaded = Mock()
        design_projects.watch('isDataLoaded', is_data_loaded)

        design_projects.unload_data()

        host.unsubscribe_from_table_data.assert_called_once_with(DESIGN_PROJECTS_ID)
        is_data_loaded.assert_called_once()
        assert not design_projects.is_data_loaded
        assert design_projects.record_ids == []

    async def test_unload_when_not_loaded_is_noop(self, host, design_projects):
        is_data_loaded = Mock()
        design_projects.watch('isDataLoaded', is_data_loaded)

        design_projects.unload_data()

        host.unsubscribe_from_table_data.assert_not_called()
        is_data_loaded.assert_not_called()

    async def test_stale_result_discarded(self, host, design_projects):
        gate, fetch = gated_fetch()
        host.fetch_and_subscribe_to_table_data_async.side_effect = fetch

        pending = asyncio.ensure_future(design_projects.load_data_async())
        await asyncio.sleep(0)
        design_projects.unload_data()
        gate.set()
        await pending

        assert not design_projects.is_data_loaded
        assert design_projects.record_ids == []
        host.unsubscribe_from_table_data.assert_called_once_with(DESIGN_PROJECTS_ID)

    async def test_reload_after_unload(self, host, design_projects):
        await design_projects.load_data_async()
        design_projects.unload_data()
        await design_projects.load_data_async()

        assert design_projects.is_data_loaded
        assert host.fetch_and_subscribe_to_table_data_async.call_count == 2


@pytest.mark.asyncio
class TestRetainRelease:

    async def test_watching_load_key_starts_load(self, host, design_projects):
        design_projects.watch('records', Mock())
        await design_projects.load_data_async()

        assert host.fetch_and_subscribe_to_table_data_async.call_count == 1
        assert design_projects.is_data_loaded

    async def test_unwatching_last_load_key_unloads(self, host, design_projects):
        first = design_projects.watch('records', Mock())
        second = design_projects.watch('records', Mock())
        await design_projects.load_data_async()

        design_projects.unwatch('records', first)
        assert design_projects.is_data_loaded
        host.unsubscribe_from_table_data.assert_not_called()

        design_projects.unwatch('records', second)
        assert not design_projects.is_data_loaded
        host.unsubscribe_from_table_data.assert_called_once_with(DESIGN_PROJECTS_ID)

    async def test_non_load_keys_do_not_retain(self, host, design_projects):
        design_projects.watch('name', Mock())
        await asyncio.sleep(0)

        host.fetch_and_subscribe_to_table_data_async.assert_not_called()


def test_watch_without_event_loop_defers_load(host, design_projects, caplog):
    with caplog.at_level(logging.WARNING, logger='livebase.watchable'):
        design_projects.watch('records', Mock())

    host.fetch_and_subscribe_to_table_data_async.assert_not_called()
    assert "No running event loop" in caplog.text
