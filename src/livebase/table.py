"""
Table model.

Schema (fields, views) is always present in the base data. Records are not:
they are fetched and subscribed on demand, by watching 'records' or by
awaiting load_data_async().

Child models are cached per id, so ``table.get_field_by_id(x)`` returns the
same Field every time and watches registered on it stay live.
"""

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from livebase.field import Field
from livebase.paths import Path
from livebase.record import Record
from livebase.store import ModelUpdate
from livebase.view import View
from livebase.watchable import WatchableModelWithAsyncData

if TYPE_CHECKING:
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore

logger = logging.getLogger(__name__)


class Table(WatchableModelWithAsyncData):
    """Table model.

    Collection keys (fields, views, records) fire when membership or order
    changes, not on every edit inside a member.
    """
    _WATCHABLE_KEYS = ('name', 'description', 'primaryField', 'fields', 'views', 'records', 'isDataLoaded')
    _LOAD_KEYS = ('records',)
    _GATED_KEY_ATTRIBUTES = {
        'fields': 'field_ids',
        'views': 'view_ids',
        'records': 'record_ids',
    }

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface', table_id: str):
        super().__init__(store, host, table_id)
        self._field_models: Dict[str, Field] = {}
        self._view_models: Dict[str, View] = {}
        self._record_models: Dict[str, Record] = {}

    @property
    def _path(self) -> Path:
        return ('tablesById', self._id)

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        return self._store.get(self._path)

    def _get_interest_paths(self, key: str) -> List[Path]:
        if key in ('name', 'description'):
            return [self._path + (key,)]
        if key == 'primaryField':
            return [self._path + ('primaryFieldId',)]
        if key == 'views':
            return [self._path + ('viewOrder',)]
        return []

    def _get_gated_paths(self, key: str) -> List[Path]:
        if key == 'fields':
            return [self._path + ('fieldsById',), self._path + ('primaryFieldId',)]
        if key == 'views':
            return [self._path + ('viewsById',)]
        if key == 'records':
            return [self._path + ('recordsById',)]
        return []

    # ========== SCHEMA ==========

    @property
    def name(self) -> Optional[str]:
        return self._data.get('name')

    @property
    def description(self) -> Optional[str]:
        return self._data.get('description')

    @property
    def field_ids(self) -> List[str]:
        """Field ids, primary field first, then in stored order."""
        field_ids = list((self._data.get('fieldsById') or {}).keys())
        primary_field_id = self._data.get('primaryFieldId')
        if primary_field_id in field_ids:
            field_ids.remove(primary_field_id)
            field_ids.insert(0, primary_field_id)
        return field_ids

    @property
    def fields(self) -> List[Field]:
        return [self._get_field_model(field_id) for field_id in self.field_ids]

    @property
    def primary_field(self) -> Optional[Field]:
        primary_field_id = self._data.get('primaryFieldId')
        if primary_field_id is None:
            return None
        return self.get_field_by_id_if_exists(primary_field_id)

    def _get_field_model(self, field_id: str) -> Field:
        if field_id not in self._field_models:
            self._field_models[field_id] = Field(self._store, self._host, self, field_id)
        return self._field_models[field_id]

    def get_field_by_id_if_exists(self, field_id: str) -> Optional[Field]:
        if field_id not in (self._data.get('fieldsById') or {}):
            return None
        return self._get_field_model(field_id)

    def get_field_by_id(self, field_id: str) -> Field:
        field = self.get_field_by_id_if_exists(field_id)
        if field is None:
            raise ValueError(f"No field with id {field_id!r} in table {self._id!r}")
        return field

    def get_field_by_name_if_exists(self, name: str) -> Optional[Field]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def get_field_by_name(self, name: str) -> Field:
        field = self.get_field_by_name_if_exists(name)
        if field is None:
            raise ValueError(f"No field named {name!r} in table {self._id!r}")
        return field

    @property
    def view_ids(self) -> List[str]:
        """View ids in viewOrder; views missing from the order follow it."""
        views_by_id = self._data.get('viewsById') or {}
        ordered = [view_id for view_id in (self._data.get('viewOrder') or []) if view_id in views_by_id]
        ordered += [view_id for view_id in views_by_id if view_id not in ordered]
        return ordered

    @property
    def views(self) -> List[View]:
        return [self._get_view_model(view_id) for view_id in self.view_ids]

    def _get_view_model(self, view_id: str) -> View:
        if view_id not in self._view_models:
            self._view_models[view_id] = View(self._store, self._host, self, view_id)
        return self._view_models[view_id]

    def get_view_by_id_if_exists(self, view_id: str) -> Optional[View]:
        if view_id not in (self._data.get('viewsById') or {}):
            return None
        return self._get_view_model(view_id)

    def get_view_by_id(self, view_id: str) -> View:
        view = self.get_view_by_id_if_exists(view_id)
        if view is None:
            raise ValueError(f"No view with id {view_id!r} in table {self._id!r}")
        return view

    # ========== RECORDS (async data) ==========

    @property
    def record_ids(self) -> List[str]:
        """Loaded record ids; empty until the table's data is loaded."""
        if not self._is_data_loaded:
            return []
        return list((self._data.get('recordsById') or {}).keys())

    @property
    def records(self) -> List[Record]:
        return [self._get_record_model(record_id) for record_id in self.record_ids]

    def _get_record_model(self, record_id: str) -> Record:
        if record_id not in self._record_models:
            self._record_models[record_id] = Record(self._store, self._host, self, record_id)
        return self._record_models[record_id]

    def get_record_by_id(self, record_id: str) -> Optional[Record]:
        """Loaded record with this id, or None (also None before loading)."""
        if record_id not in self.record_ids:
            return None
        return self._get_record_model(record_id)

    async def _fetch_data_async(self) -> Dict[str, Any]:
        return await self._host.fetch_and_subscribe_to_table_data_async(self._id)

    def _apply_loaded_data(self, data: Dict[str, Any]) -> List[str]:
        if self.is_deleted:
            logger.info(f"{self!r} was deleted while its records were loading")
            return []
        self._store.apply_updates([
            ModelUpdate.create(self._path + ('recordsById',), dict((data or {}).get('recordsById') or {})),
        ])
        return ['records']

    def _clear_loaded_data(self) -> None:
        if self.is_deleted:
            return
        self._store.apply_updates([ModelUpdate.create(self._path + ('recordsById',), None)])

    def _unsubscribe(self) -> None:
        self._host.unsubscribe_from_table_data(self._id)
