"""
Mutation descriptors and the permission/execution layer.

A Mutation is an immutable description of one intended remote change. The
same instance is handed to the host's permission oracle and, separately, to
the host's execution call; the execution path never re-derives permission.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore

logger = logging.getLogger(__name__)


class MutationType(str, Enum):
    UPDATE_SINGLE_FIELD_CONFIG = 'updateSingleFieldConfig'


@dataclass(frozen=True)
class FieldConfig:
    """Target field configuration: logical type plus raw options."""
    type: str
    options: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Mutation:
    """Tagged mutation descriptor: {type, table_id, id, config}."""
    type: MutationType
    table_id: str
    id: str
    config: FieldConfig

    @classmethod
    def update_single_field_config(cls, table_id: str, field_id: str, field_type: str,
                                   options: Optional[Dict[str, Any]]) -> 'Mutation':
        return cls(
            type=MutationType.UPDATE_SINGLE_FIELD_CONFIG,
            table_id=table_id,
            id=field_id,
            config=FieldConfig(type=field_type, options=options),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export to a plain dict for hosts that forward descriptors as JSON."""
        return {
            'type': self.type.value,
            'tableId': self.table_id,
            'id': self.id,
            'config': {'type': self.config.type, 'options': self.config.options},
        }


@dataclass(frozen=True)
class PermissionCheckResult:
    """Outcome of a permission check. A value, never raised."""
    has_permission: bool
    reason_display_string: Optional[str] = None

    @classmethod
    def allowed(cls) -> 'PermissionCheckResult':
        return cls(has_permission=True)

    @classmethod
    def denied(cls, reason_display_string: Optional[str] = None) -> 'PermissionCheckResult':
        return cls(has_permission=False, reason_display_string=reason_display_string)


class Mutations:
    """Forwards mutation descriptors to the host.

    Permission checks are synchronous and side-effect-free; execution is
    asynchronous and returns the host's outcome unmodified.
    """

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface'):
        self._store = store
        self._host = host

    def check_permissions_for_mutation(self, mutation: Mutation) -> PermissionCheckResult:
        """Ask the host's oracle about ``mutation`` against the current snapshot."""
        return self._host.check_permissions_for_mutation(mutation, self._store.data)

    async def apply_mutation_async(self, mutation: Mutation, hold_for_ms: Optional[int] = None) -> Any:
        """Execute ``mutation`` on the host.

        Args:
            mutation: The descriptor to apply.
            hold_for_ms: Minimum commit delay hint passed through to the host.

        Returns:
            The host's outcome, unchanged.

        Raises:
            Whatever the host raised (transport failures); no retry.
        """
        logger.debug(f"Applying mutation {mutation.type.value} on {mutation.table_id}/{mutation.id}")
        if hold_for_ms is None:
            return await self._host.apply_mutation_async(mutation)
        return await self._host.apply_mutation_async(mutation, hold_for_ms=hold_for_ms)
