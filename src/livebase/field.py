"""
Field model: one column of a table's schema.

Every property reads the field's raw node from the store at call time:
    {'id', 'name', 'type', 'typeOptions', 'description'}

Nothing is cached, so ``type``/``is_computed``/``options`` are correct
immediately after a patch that changes the raw type or options.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union, TYPE_CHECKING

from livebase.config import LEGACY_PRECEDENCE, get_sync_config
from livebase.field_types import FieldType
from livebase.mutations import Mutation, Mutations, PermissionCheckResult
from livebase.paths import Path
from livebase.watchable import WatchableModel

if TYPE_CHECKING:
    from livebase.field_types import FieldTypeProvider
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore
    from livebase.table import Table

logger = logging.getLogger(__name__)


class Field(WatchableModel):
    """Schema attribute of a table.

    Watch keys and the raw properties behind them:
        name        -> name
        type        -> type
        options     -> typeOptions
        isComputed  -> type (and typeOptions, only if is_computed flips)
        description -> description
    """
    _WATCHABLE_KEYS = ('name', 'type', 'options', 'isComputed', 'description')
    _GATED_KEY_ATTRIBUTES = {'isComputed': 'is_computed'}

    _KEY_PATHS = {
        'name': ('name',),
        'type': ('type',),
        'options': ('typeOptions',),
        'isComputed': ('type',),
        'description': ('description',),
    }

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface', parent_table: 'Table', field_id: str):
        super().__init__(store, host, field_id)
        self._parent_table = parent_table
        self._mutations = Mutations(store, host)

    @property
    def _path(self) -> Path:
        return ('tablesById', self._parent_table.id, 'fieldsById', self._id)

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        return self._store.get(self._path)

    def _get_interest_paths(self, key: str) -> List[Path]:
        return [self._path + self._KEY_PATHS[key]]

    def _get_gated_paths(self, key: str) -> List[Path]:
        if key == 'isComputed':
            return [self._path + ('typeOptions',)]
        return []

    @property
    def _type_provider(self) -> 'FieldTypeProvider':
        return self._host.field_type_provider

    @property
    def _raw_options(self) -> Optional[Mapping[str, Any]]:
        return self._data.get('typeOptions')

    # ========== READS ==========

    @property
    def parent_table(self) -> 'Table':
        return self._parent_table

    @property
    def name(self) -> Optional[str]:
        return self._data.get('name')

    @property
    def description(self) -> Optional[str]:
        return self._data.get('description')

    @property
    def type(self) -> Union[FieldType, str, None]:
        """Logical field type.

        Legacy raw tags (e.g. 'lookup') are remapped through the configured
        remap table. The provider may also declare a logical type for the
        raw tag; which of the two wins is SyncConfig.provider_type_precedence.
        """
        raw_type = self._data.get('type')
        if raw_type is None:
            return None

        config = get_sync_config()
        legacy = config.legacy_type_remaps.get(raw_type)
        override = self._type_provider.get_logical_type(raw_type, self._raw_options)

        if legacy is not None and config.provider_type_precedence == LEGACY_PRECEDENCE:
            resolved = legacy
        else:
            resolved = override or legacy or raw_type
        return FieldType.coerce(resolved)

    @property
    def is_computed(self) -> bool:
        if self.is_deleted:
            return False
        return bool(self._type_provider.is_computed(self.type, self._raw_options))

    @property
    def options(self) -> Optional[Mapping[str, Any]]:
        """Raw type options, or None if this type has no configurable options.

        Ids inside the options (e.g. a linked table id) are returned as-is.
        """
        if self.is_deleted or not self._type_provider.has_configurable_options(self.type):
            return None
        return self._raw_options

    @property
    def is_primary_field(self) -> bool:
        primary_field_id = self._store.get(('tablesById', self._parent_table.id, 'primaryFieldId'))
        return primary_field_id is not None and primary_field_id == self._id

    # ========== MUTATIONS ==========

    def _build_update_options_mutation(self, options: Optional[Mapping[str, Any]]) -> Mutation:
        return Mutation.update_single_field_config(
            table_id=self._parent_table.id,
            field_id=self._id,
            field_type=self.type,
            options=options,
        )

    def check_permissions_for_update_options(self, options: Optional[Mapping[str, Any]] = None) -> PermissionCheckResult:
        """Check (without executing) whether update_options_async would be allowed.

        Args:
            options: The options that would be written; None checks the
                general ability to update this field's options.

        Returns:
            The host oracle's PermissionCheckResult, unchanged.
        """
        return self._mutations.check_permissions_for_mutation(self._build_update_options_mutation(options))

    def has_permission_to_update_options(self, options: Optional[Mapping[str, Any]] = None) -> bool:
        return self.check_permissions_for_update_options(options).has_permission

    async def update_options_async(self, options: Optional[Mapping[str, Any]]) -> Any:
        """Replace this field's options, keeping its current type.

        Local state is not changed; the new options arrive through the
        patch channel once the host commits them.

        Returns:
            The host's outcome, unchanged.
        """
        mutation = self._build_update_options_mutation(options)
        return await self._mutations.apply_mutation_async(
            mutation, hold_for_ms=get_sync_config().update_options_hold_for_ms,
        )

    # ========== CELL VALUES ==========

    def convert_string_to_cell_value(self, raw: str) -> Any:
        """Parse a string into a cell value for this field.

        Computed fields return the parsed value without validation. Other
        fields return it only if it validates against the current options.
        Never raises: a provider error while parsing or validating counts as
        "not representable".

        Returns:
            The cell value, or None if the string is not representable.
        """
        provider = self._type_provider
        context = self._host.app_context
        try:
            value = provider.convert_string_to_cell_value(context, raw, self._data)
            if self.is_computed:
                return value
            validation = provider.validate_cell_value_for_update(context, value, None, self._data)
        except Exception as e:
            logger.debug(f"Could not convert {raw!r} for {self!r}: {e}", exc_info=True)
            return None

        if not validation.is_valid:
            logger.debug(f"Rejected {value!r} for {self!r}: {validation.reason}")
            return None
        return value
