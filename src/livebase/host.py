"""
Host boundary: everything livebase consumes from the embedding application.

The host owns transport, persistence and the authoritative data. livebase
only calls the methods below; wire formats stay on the host side.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from livebase.field_types import FieldTypeProvider
    from livebase.mutations import Mutation, PermissionCheckResult

ModelUpdatesCallback = Callable[[List[Mapping[str, Any]]], Any]


class HostInterface(ABC):
    """Collaborator contract between livebase models and the host.

    Async methods return the host's result unchanged and raise on transport
    failure; livebase never retries.
    """

    @property
    @abstractmethod
    def sdk_init_data(self) -> Dict[str, Any]:
        """Initial data, ``{'baseData': {...}}``."""

    @property
    @abstractmethod
    def field_type_provider(self) -> 'FieldTypeProvider':
        ...

    @property
    def app_context(self) -> Any:
        """Opaque context passed through to the field type provider."""
        return None

    @abstractmethod
    def subscribe_to_model_updates(self, callback: ModelUpdatesCallback) -> None:
        """Register the patch channel callback; the host calls it with ordered batches."""

    @abstractmethod
    async def fetch_and_subscribe_to_cursor_data_async(self) -> Dict[str, Any]:
        """Fetch ``cursorData`` and subscribe to its changes."""

    @abstractmethod
    def unsubscribe_from_cursor_data(self) -> None:
        ...

    @abstractmethod
    async def fetch_and_subscribe_to_table_data_async(self, table_id: str) -> Dict[str, Any]:
        """Fetch ``{'recordsById': {...}}`` for a table and subscribe to its changes."""

    @abstractmethod
    def unsubscribe_from_table_data(self, table_id: str) -> None:
        ...

    @abstractmethod
    async def apply_mutation_async(self, mutation: 'Mutation', hold_for_ms: Optional[int] = None) -> Any:
        ...

    @abstractmethod
    def check_permissions_for_mutation(self, mutation: 'Mutation',
                                       base_data: Mapping[str, Any]) -> 'PermissionCheckResult':
        """Synchronous, side-effect-free permission oracle."""

    @abstractmethod
    def set_active_view_or_table(self, table_id: str, view_id: Optional[str] = None) -> None:
        """Fire-and-forget request to change the active table/view."""
