"""
Reactive model synchronization for a remote, authoritative base.

Local model objects (Base, Table, Field, View, Record, Cursor) mirror part of
a remote data store, stay current through batched path-addressed patches,
expose keyed watch subscriptions, and send permission-checked mutations back
to the host.

Quick Start:
    >>> from livebase import Sdk
    >>> sdk = Sdk(host)
    >>> table = sdk.base.get_table_by_name('Design projects')
    >>> table.fields[1].watch('name', lambda field, key: print(field.name))
    >>> sdk.dispatcher.apply_batch([
    ...     {'path': ['tablesById', table.id, 'fieldsById', 'fld1', 'name'], 'value': 'Client'},
    ... ])

Architecture:
    host patch channel → UpdateDispatcher → BaseDataStore (new version)
                                          → affected watch keys → callbacks
    model → Mutation → permission oracle / apply_mutation_async → host

Modules:
    - paths: path normalization, prefix compatibility, copy-on-write writes
    - store: versioned base data snapshot and ModelUpdate patches
    - dispatcher: once-per-batch fan-out to watch keys
    - watchable: watch/unwatch and the async load/unload lifecycle
    - base, table, field, view, record, cursor: concrete models
    - mutations: mutation descriptors and permission results
    - field_types: FieldType and the type-provider capability table
    - host: the host collaborator contract
    - config: process-wide settings
"""

from livebase.paths import Path, are_prefix_compatible, get_in, normalize_path, set_in
from livebase.store import BaseDataStore, ModelUpdate
from livebase.dispatcher import UpdateDispatcher
from livebase.watchable import Watchable, WatchableModel, WatchableModelWithAsyncData, resolve_model_id
from livebase.mutations import FieldConfig, Mutation, Mutations, MutationType, PermissionCheckResult
from livebase.field_types import (
    CapabilityTableProvider,
    CellValueValidation,
    FieldType,
    FieldTypeBehavior,
    FieldTypeProvider,
)
from livebase.host import HostInterface
from livebase.config import (
    UPDATE_OPTIONS_HOLD_FOR_MS,
    SyncConfig,
    get_sync_config,
    set_sync_config,
    update_sync_config,
    reset_sync_config,
)
from livebase.base import Base
from livebase.table import Table
from livebase.field import Field
from livebase.view import View
from livebase.record import Record
from livebase.cursor import Cursor
from livebase.sdk import Sdk

__all__ = [
    # Paths
    'Path',
    'are_prefix_compatible',
    'get_in',
    'normalize_path',
    'set_in',
    # Store and dispatch
    'BaseDataStore',
    'ModelUpdate',
    'UpdateDispatcher',
    # Model base
    'Watchable',
    'WatchableModel',
    'WatchableModelWithAsyncData',
    'resolve_model_id',
    # Mutations
    'FieldConfig',
    'Mutation',
    'Mutations',
    'MutationType',
    'PermissionCheckResult',
    # Field types
    'CapabilityTableProvider',
    'CellValueValidation',
    'FieldType',
    'FieldTypeBehavior',
    'FieldTypeProvider',
    # Host
    'HostInterface',
    # Configuration
    'UPDATE_OPTIONS_HOLD_FOR_MS',
    'SyncConfig',
    'get_sync_config',
    'set_sync_config',
    'update_sync_config',
    'reset_sync_config',
    # Models
    'Base',
    'Table',
    'Field',
    'View',
    'Record',
    'Cursor',
    'Sdk',
]

__version__ = '1.0.0'
