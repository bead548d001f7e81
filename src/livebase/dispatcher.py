"""
Update dispatcher: applies host patch batches and notifies watchers.

Each batch is processed to completion:
1. every live model records the values of its gated keys
2. the store applies the whole batch (one new version)
3. every live model reports which of its watched keys the batch touched
4. each affected key fires once, models in registration order

Paths that no model declared interest in are dropped silently, so the host
can send fields this package does not know about yet.
"""

import logging
from typing import Iterable, List, Tuple, TYPE_CHECKING

from livebase.store import BaseDataStore, UpdateLike, coerce_updates

if TYPE_CHECKING:
    from livebase.host import HostInterface
    from livebase.watchable import WatchableModel

logger = logging.getLogger(__name__)


class UpdateDispatcher:
    """Routes ordered ``{path, value}`` batches to interested watch keys.

    Thread safety: Not thread-safe. Batches must be delivered one at a time.
    """

    def __init__(self, store: BaseDataStore):
        self._store = store
        self._batch_count = 0

    @property
    def store(self) -> BaseDataStore:
        return self._store

    def connect(self, host: 'HostInterface') -> None:
        """Register apply_batch as the host's patch channel callback."""
        host.subscribe_to_model_updates(self.apply_batch)
        logger.debug(f"Connected dispatcher to host patch channel: {type(host).__name__}")

    def apply_batch(self, updates: Iterable[UpdateLike]) -> List[Tuple['WatchableModel', List[str]]]:
        """Apply a batch of updates and fire affected watch keys once each.

        Args:
            updates: Ordered ModelUpdate instances or ``{'path', 'value'}`` dicts.

        Returns:
            (model, fired keys) pairs for every model with at least one
            affected key, in dispatch order.
        """
        normalized = coerce_updates(updates)
        models = self._store.live_models()

        for model in models:
            model._capture_before_batch()

        self._store.apply_updates(normalized)
        self._batch_count += 1
        changed_paths = [u.path for u in normalized]

        # Decide every affected key before firing, so callbacks that watch,
        # unwatch or create models cannot change this batch's fan-out.
        notifications: List[Tuple['WatchableModel', List[str]]] = []
        for model in models:
            keys = model._get_affected_keys(changed_paths)
            if keys:
                notifications.append((model, keys))

        if not notifications:
            logger.debug(f"Batch #{self._batch_count}: {len(changed_paths)} path(s) matched no watched key")
            return notifications

        for model, keys in notifications:
            logger.debug(f"Batch #{self._batch_count}: {model!r} -> {keys}")
            for key in keys:
                model._on_change(key)
        return notifications
