"""
Sdk: wires a host to a store, a dispatcher and the root models.

Ownership is explicit: one Sdk owns one BaseDataStore, and every model it
hands out is bound to that store. There is no process-wide registry, so
tests can build as many independent Sdk instances as they like.
"""

import logging
from typing import TYPE_CHECKING

from livebase.base import Base
from livebase.cursor import Cursor
from livebase.dispatcher import UpdateDispatcher
from livebase.mutations import Mutations
from livebase.store import BaseDataStore

if TYPE_CHECKING:
    from livebase.host import HostInterface

logger = logging.getLogger(__name__)


class Sdk:
    """Entry point: ``sdk = Sdk(host); sdk.base.tables; sdk.cursor.watch(...)``."""

    def __init__(self, host: 'HostInterface'):
        self._host = host
        base_data = (host.sdk_init_data or {}).get('baseData') or {}
        self._store = BaseDataStore(base_data)
        self._dispatcher = UpdateDispatcher(self._store)
        self._dispatcher.connect(host)
        self._mutations = Mutations(self._store, host)
        self._base = Base(self._store, host)
        self._cursor = Cursor(self._store, host)
        logger.debug(f"Initialized Sdk for base {self._base.id!r} with {len(self._base.table_ids)} table(s)")

    @property
    def host(self) -> 'HostInterface':
        return self._host

    @property
    def store(self) -> BaseDataStore:
        return self._store

    @property
    def dispatcher(self) -> UpdateDispatcher:
        return self._dispatcher

    @property
    def mutations(self) -> Mutations:
        return self._mutations

    @property
    def base(self) -> Base:
        return self._base

    @property
    def cursor(self) -> Cursor:
        return self._cursor
