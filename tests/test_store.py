"""Tests for BaseDataStore and ModelUpdate."""
import gc
from unittest.mock import Mock

import pytest

from livebase import BaseDataStore, ModelUpdate, WatchableModel
from livebase.store import coerce_updates


class Node(WatchableModel):
    _WATCHABLE_KEYS = ('value',)

    @property
    def _data_or_none(self):
        return self._store.get(('nodesById', self._id))

    def _get_interest_paths(self, key):
        return [('nodesById', self._id, key)]


class TestModelUpdate:

    def test_create_normalizes_path(self):
        update = ModelUpdate.create(['a', 'b'], 1)
        assert update.path == ('a', 'b')
        assert update.value == 1

    def test_from_dict_without_value(self):
        update = ModelUpdate.from_dict({'path': ['a']})
        assert update == ModelUpdate(('a',), None)

    def test_to_dict(self):
        assert ModelUpdate.create(('a', 'b'), {'x': 1}).to_dict() == {'path': ['a', 'b'], 'value': {'x': 1}}

    def test_frozen(self):
        update = ModelUpdate.create(('a',), 1)
        with pytest.raises(AttributeError):
            update.value = 2

    def test_coerce_preserves_order(self):
        first = ModelUpdate.create(('a',), 1)
        updates = coerce_updates([first, {'path': ['b'], 'value': 2}])
        assert updates == [first, ModelUpdate(('b',), 2)]


class TestSnapshot:

    def test_initial_data_copied(self):
        base_data = {'name': 'Base'}
        store = BaseDataStore(base_data)
        base_data['name'] = 'changed'

        assert store.get(('name',)) == 'Base'
        assert store.version == 0

    def test_empty_store(self):
        store = BaseDataStore()
        assert store.data == {}
        assert store.get(('anything',), 'default') == 'default'

    def test_apply_updates_in_order(self):
        store = BaseDataStore()

        applied = store.apply_updates([
            {'path': ['a', 'b'], 'value': 1},
            {'path': ['a', 'b'], 'value': 2},
            {'path': ['a', 'c'], 'value': 3},
        ])

        assert store.data == {'a': {'b': 2, 'c': 3}}
        assert [u.path for u in applied] == [('a', 'b'), ('a', 'b'), ('a', 'c')]
        assert store.version == 1

    def test_earlier_snapshot_unchanged(self):
        store = BaseDataStore({'a': {'b': 1}})
        before = store.data

        store.apply_updates([ModelUpdate.create(('a', 'b'), 2)])

        assert before == {'a': {'b': 1}}
        assert store.data is not before

    def test_delete(self):
        store = BaseDataStore({'a': {'b': 1}})
        store.apply_updates([ModelUpdate.create(('a', 'b'))])
        assert store.get(('a', 'b')) is None
        assert store.get(('a',)) == {}


class TestModelRegistry:

    def test_registration_order(self):
        store = BaseDataStore()
        first = Node(store, Mock(), 'n1')
        second = Node(store, Mock(), 'n2')

        assert store.live_models() == [first, second]

    def test_unregister(self):
        store = BaseDataStore()
        node = Node(store, Mock(), 'n1')

        store.unregister_model(node)

        assert store.live_models() == []

    def test_collected_models_leave_registry(self):
        store = BaseDataStore()
        kept = Node(store, Mock(), 'n1')
        Node(store, Mock(), 'n2')
        gc.collect()

        assert store.live_models() == [kept]
        assert len(store._models) == 1
