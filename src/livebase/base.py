"""Base model: the root of the base data tree and owner of the table models."""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from livebase.paths import Path
from livebase.table import Table
from livebase.watchable import WatchableModel

if TYPE_CHECKING:
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore


class Base(WatchableModel):
    _WATCHABLE_KEYS = ('name', 'tables')
    _GATED_KEY_ATTRIBUTES = {'tables': 'table_ids'}

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface'):
        super().__init__(store, host, store.get(('id',)) or '')
        self._table_models: Dict[str, Table] = {}

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        return self._store.data

    def _get_interest_paths(self, key: str) -> List[Path]:
        if key == 'name':
            return [('name',)]
        return [('tableOrder',)]

    def _get_gated_paths(self, key: str) -> List[Path]:
        if key == 'tables':
            return [('tablesById',)]
        return []

    @property
    def name(self) -> Optional[str]:
        return self._data.get('name')

    @property
    def table_ids(self) -> List[str]:
        """Table ids in tableOrder; tables missing from the order follow it."""
        tables_by_id = self._data.get('tablesById') or {}
        ordered = [table_id for table_id in (self._data.get('tableOrder') or []) if table_id in tables_by_id]
        ordered += [table_id for table_id in tables_by_id if table_id not in ordered]
        return ordered

    @property
    def tables(self) -> List[Table]:
        return [self._get_table_model(table_id) for table_id in self.table_ids]

    def _get_table_model(self, table_id: str) -> Table:
        if table_id not in self._table_models:
            self._table_models[table_id] = Table(self._store, self._host, table_id)
        return self._table_models[table_id]

    def get_table_by_id_if_exists(self, table_id: str) -> Optional[Table]:
        if table_id not in (self._data.get('tablesById') or {}):
            return None
        return self._get_table_model(table_id)

    def get_table_by_id(self, table_id: str) -> Table:
        table = self.get_table_by_id_if_exists(table_id)
        if table is None:
            raise ValueError(f"No table with id {table_id!r}")
        return table

    def get_table_by_name_if_exists(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def get_table_by_name(self, name: str) -> Table:
        table = self.get_table_by_name_if_exists(name)
        if table is None:
            raise ValueError(f"No table named {name!r}")
        return table
