"""Record model: one row of a table, available once the table's data is loaded."""

from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from livebase.paths import Path
from livebase.watchable import WatchableModel, resolve_model_id

if TYPE_CHECKING:
    from livebase.field import Field
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore
    from livebase.table import Table


class Record(WatchableModel):
    _WATCHABLE_KEYS = ('name', 'cellValues', 'commentCount')

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface', parent_table: 'Table', record_id: str):
        super().__init__(store, host, record_id)
        self._parent_table = parent_table

    @property
    def _path(self) -> Path:
        return ('tablesById', self._parent_table.id, 'recordsById', self._id)

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        return self._store.get(self._path)

    @property
    def _primary_field_id(self) -> Optional[str]:
        return self._store.get(('tablesById', self._parent_table.id, 'primaryFieldId'))

    def _get_interest_paths(self, key: str) -> List[Path]:
        if key == 'name':
            return [
                self._path + ('cellValuesByFieldId', self._primary_field_id),
                ('tablesById', self._parent_table.id, 'primaryFieldId'),
            ]
        if key == 'cellValues':
            return [self._path + ('cellValuesByFieldId',)]
        return [self._path + (key,)]

    @property
    def parent_table(self) -> 'Table':
        return self._parent_table

    @property
    def name(self) -> Any:
        """Value of the primary field, or None."""
        primary_field_id = self._primary_field_id
        if primary_field_id is None:
            return None
        return self.get_cell_value(primary_field_id)

    @property
    def comment_count(self) -> int:
        return self._data.get('commentCount', 0)

    def get_cell_value(self, field_or_field_id: Union['Field', str]) -> Any:
        field_id = resolve_model_id(field_or_field_id)
        return (self._data.get('cellValuesByFieldId') or {}).get(field_id)
