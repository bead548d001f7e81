"""
Base data store: the owned, versioned snapshot of one base.

The store is the single owner of the base data tree. Models hold a reference
to the store plus their own id and read through it on every access, so a
read is always a projection of the latest version.

Design:
- ModelUpdate is an immutable {path, value} patch (frozen dataclass)
- apply_updates() is the only way to produce a new version
- Writes are copy-on-write, so a snapshot handed out earlier never changes
- A monotonically increasing version token identifies each snapshot
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union, TYPE_CHECKING
import weakref

from livebase.paths import Path, PathKey, get_in, normalize_path, set_in

if TYPE_CHECKING:
    from livebase.watchable import WatchableModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelUpdate:
    """Immutable patch: write ``value`` at ``path`` (``None`` deletes)."""
    path: Path
    value: Any = None

    @classmethod
    def create(cls, path: Union[Sequence[PathKey], PathKey], value: Any = None) -> 'ModelUpdate':
        """Create an update, normalizing the path to a tuple."""
        return cls(path=normalize_path(path), value=value)

    @classmethod
    def from_dict(cls, data: Mapping) -> 'ModelUpdate':
        """Import from the host's ``{'path': [...], 'value': ...}`` shape."""
        return cls.create(data['path'], data.get('value'))

    def to_dict(self) -> Dict:
        """Export to the host's dict shape."""
        return {'path': list(self.path), 'value': self.value}


UpdateLike = Union[ModelUpdate, Mapping]


def coerce_updates(updates: Iterable[UpdateLike]) -> List[ModelUpdate]:
    """Accept ModelUpdate instances or host dicts, preserving order."""
    return [u if isinstance(u, ModelUpdate) else ModelUpdate.from_dict(u) for u in updates]


class BaseDataStore:
    """Owner of the base data tree.

    Thread safety: Not thread-safe (all operations expected on the event loop thread).
    """

    def __init__(self, base_data: Optional[Mapping] = None):
        self._data: Dict[str, Any] = dict(base_data) if base_data else {}
        self._version: int = 0
        # Weak so that dropped models leave dispatch without explicit unregistration
        self._models: Dict[int, 'weakref.ref[WatchableModel]'] = {}

    # ========== MODEL REGISTRY ==========

    def register_model(self, model: 'WatchableModel') -> None:
        """Track a model for dispatch. Registration order is dispatch order."""
        key = id(model)
        self._models[key] = weakref.ref(model, lambda _ref, key=key: self._models.pop(key, None))

    def unregister_model(self, model: 'WatchableModel') -> None:
        self._models.pop(id(model), None)

    def live_models(self) -> List['WatchableModel']:
        """All registered models still alive, in registration order."""
        models = []
        for ref in list(self._models.values()):
            model = ref()
            if model is not None:
                models.append(model)
        return models

    # ========== SNAPSHOT ==========

    @property
    def data(self) -> Dict[str, Any]:
        """Current snapshot. Treat as read-only; it is replaced, never edited."""
        return self._data

    @property
    def version(self) -> int:
        """Version token, incremented once per applied batch."""
        return self._version

    def get(self, path: Sequence[PathKey], default: Any = None) -> Any:
        """Read the node at ``path`` in the current snapshot."""
        return get_in(self._data, path, default)

    def apply_updates(self, updates: Iterable[UpdateLike]) -> List[ModelUpdate]:
        """Apply an ordered batch of updates and bump the version.

        Args:
            updates: ModelUpdate instances or ``{'path', 'value'}`` dicts.

        Returns:
            The normalized updates, in application order.
        """
        normalized = coerce_updates(updates)
        data = self._data
        for update in normalized:
            data = set_in(data, update.path, update.value)
        self._data = data
        self._version += 1
        logger.debug(f"Applied {len(normalized)} update(s), store version={self._version}")
        return normalized
