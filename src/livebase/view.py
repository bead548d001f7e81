"""View model: a saved arrangement of a table's records."""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from livebase.paths import Path
from livebase.watchable import WatchableModel

if TYPE_CHECKING:
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore
    from livebase.table import Table


class View(WatchableModel):
    _WATCHABLE_KEYS = ('name',)

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface', parent_table: 'Table', view_id: str):
        super().__init__(store, host, view_id)
        self._parent_table = parent_table

    @property
    def _path(self) -> Path:
        return ('tablesById', self._parent_table.id, 'viewsById', self._id)

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        return self._store.get(self._path)

    def _get_interest_paths(self, key: str) -> List[Path]:
        return [self._path + (key,)]

    @property
    def parent_table(self) -> 'Table':
        return self._parent_table

    @property
    def name(self) -> Optional[str]:
        return self._data.get('name')

    @property
    def type(self) -> Optional[str]:
        return self._data.get('type')
