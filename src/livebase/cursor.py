"""
Cursor model: where the user is (active table/view) and what is selected.

Location setters are requests, not writes: they ask the host to move the
cursor and return immediately. The new location arrives later through the
patch channel, so a read right after set_active_table() may still return
the previous table.

Selection sets are stored as ``{id: True}`` under ``cursorData``, which is
fetched and subscribed on demand (watching a selection key, or awaiting
load_data_async()).
"""

import logging
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from livebase.paths import Path
from livebase.store import ModelUpdate
from livebase.watchable import WatchableModelWithAsyncData, resolve_model_id

if TYPE_CHECKING:
    from livebase.field import Field
    from livebase.host import HostInterface
    from livebase.record import Record
    from livebase.store import BaseDataStore
    from livebase.table import Table
    from livebase.view import View

logger = logging.getLogger(__name__)

CURSOR_MODEL_ID = 'cursor'


class Cursor(WatchableModelWithAsyncData):
    """Selection/location model.

    activeViewId is scoped to the active table: it reads the active table's
    own stored activeViewId, and fires when that value changes or when a
    table switch changes which view is active.
    """
    _WATCHABLE_KEYS = ('selectedRecordIds', 'selectedFieldIds', 'activeTableId', 'activeViewId', 'isDataLoaded')
    _LOAD_KEYS = ('selectedRecordIds', 'selectedFieldIds')
    _GATED_KEY_ATTRIBUTES = {'activeViewId': 'active_view_id'}

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface'):
        super().__init__(store, host, CURSOR_MODEL_ID)

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        return self._store.data

    @property
    def _cursor_data(self) -> Dict[str, Any]:
        return self._data.get('cursorData') or {}

    def _get_interest_paths(self, key: str) -> List[Path]:
        if key == 'selectedRecordIds':
            return [('cursorData', 'selectedRecordIdSet')]
        if key == 'selectedFieldIds':
            return [('cursorData', 'selectedFieldIdSet')]
        if key == 'activeTableId':
            return [('activeTableId',)]
        if key == 'activeViewId':
            active_table_id = self.active_table_id
            if active_table_id is None:
                return []
            return [('tablesById', active_table_id, 'activeViewId')]
        return []

    def _get_gated_paths(self, key: str) -> List[Path]:
        if key == 'activeViewId':
            return [('activeTableId',)]
        return []

    # ========== LOCATION ==========

    @property
    def active_table_id(self) -> Optional[str]:
        return self._data.get('activeTableId')

    @property
    def active_view_id(self) -> Optional[str]:
        active_table_id = self.active_table_id
        if active_table_id is None:
            return None
        return self._store.get(('tablesById', active_table_id, 'activeViewId'))

    def set_active_table(self, table_or_table_id: Union['Table', str]) -> None:
        """Ask the host to switch the active table. Does not change local state."""
        table_id = resolve_model_id(table_or_table_id)
        logger.debug(f"Requesting active table {table_id}")
        self._host.set_active_view_or_table(table_id)

    def set_active_view(self, table_or_table_id: Union['Table', str], view_or_view_id: Union['View', str]) -> None:
        """Ask the host to switch the active view. Does not change local state."""
        table_id = resolve_model_id(table_or_table_id)
        view_id = resolve_model_id(view_or_view_id)
        logger.debug(f"Requesting active view {table_id}/{view_id}")
        self._host.set_active_view_or_table(table_id, view_id)

    # ========== SELECTION ==========

    @staticmethod
    def _ids_in_set(id_set: Optional[Dict[str, bool]]) -> List[str]:
        return [entity_id for entity_id, selected in (id_set or {}).items() if selected]

    @property
    def selected_record_ids(self) -> List[str]:
        return self._ids_in_set(self._cursor_data.get('selectedRecordIdSet'))

    @property
    def selected_field_ids(self) -> List[str]:
        return self._ids_in_set(self._cursor_data.get('selectedFieldIdSet'))

    def is_record_selected(self, record_or_record_id: Union['Record', str]) -> bool:
        record_id = resolve_model_id(record_or_record_id)
        return bool((self._cursor_data.get('selectedRecordIdSet') or {}).get(record_id))

    def is_field_selected(self, field_or_field_id: Union['Field', str]) -> bool:
        field_id = resolve_model_id(field_or_field_id)
        return bool((self._cursor_data.get('selectedFieldIdSet') or {}).get(field_id))

    # ========== ASYNC DATA ==========

    async def _fetch_data_async(self) -> Dict[str, Any]:
        return await self._host.fetch_and_subscribe_to_cursor_data_async()

    def _apply_loaded_data(self, data: Dict[str, Any]) -> List[str]:
        self._store.apply_updates([ModelUpdate.create(('cursorData',), dict(data or {}))])
        return list(self._LOAD_KEYS)

    def _clear_loaded_data(self) -> None:
        self._store.apply_updates([ModelUpdate.create(('cursorData',), None)])

    def _unsubscribe(self) -> None:
        self._host.unsubscribe_from_cursor_data()
