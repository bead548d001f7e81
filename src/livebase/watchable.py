"""
Watchable model base classes.

Watchable: keyed callback registry (watch/unwatch/_on_change).
WatchableModel: a Watchable bound to (store, host, id) that tells the
    dispatcher which paths back which watch keys.
WatchableModelWithAsyncData: adds the lazy fetch-and-subscribe lifecycle.

Getters on models are never cached: every read goes to the store's current
snapshot, so a getter read inside a watch callback always agrees with the
batch that triggered it.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from livebase.paths import Path, affects_any

if TYPE_CHECKING:
    from livebase.host import HostInterface
    from livebase.store import BaseDataStore

logger = logging.getLogger(__name__)

WatchCallback = Callable[[Any, str], None]
WatchKeys = Union[str, Sequence[str]]


def _normalize_keys(keys: WatchKeys) -> List[str]:
    return [keys] if isinstance(keys, str) else list(keys)


def resolve_model_id(model_or_id: Union['Watchable', str]) -> str:
    """Normalize an entity handle or a raw id string to the id."""
    if isinstance(model_or_id, str):
        return model_or_id
    return model_or_id.id


class Watchable:
    """Keyed callback registry.

    Callbacks are invoked as ``callback(model, key)``. Registrations are kept
    in order per key, and keys in the order they were first watched.
    """
    _WATCHABLE_KEYS: Tuple[str, ...] = ()

    def __init__(self, watchable_id: str):
        self._id = watchable_id
        self._watchers: Dict[str, List[WatchCallback]] = {}

    @classmethod
    def _is_watchable_key(cls, key: str) -> bool:
        return key in cls._WATCHABLE_KEYS

    @property
    def id(self) -> str:
        return self._id

    def watch(self, keys: WatchKeys, callback: WatchCallback) -> WatchCallback:
        """Subscribe ``callback`` to one or more keys.

        Args:
            keys: A watch key or a list of watch keys.
            callback: Called as ``callback(model, key)`` when a key changes.

        Returns:
            The callback, so it can be passed back to unwatch().

        Raises:
            ValueError: If any key is not watchable on this model.
        """
        key_list = _normalize_keys(keys)
        for key in key_list:
            if not self._is_watchable_key(key):
                raise ValueError(f"Invalid key to watch for {type(self).__name__}: {key!r}")

        for key in key_list:
            callbacks = self._watchers.setdefault(key, [])
            if callback in callbacks:
                continue
            callbacks.append(callback)
            self._on_watched(key)
        return callback

    def unwatch(self, keys: WatchKeys, callback: WatchCallback) -> None:
        """Remove the exact (key, callback) pair. No-op if not registered."""
        for key in _normalize_keys(keys):
            callbacks = self._watchers.get(key)
            if not callbacks or callback not in callbacks:
                continue
            callbacks.remove(callback)
            if not callbacks:
                del self._watchers[key]
            self._on_unwatched(key)

    @property
    def watched_keys(self) -> List[str]:
        """Keys with at least one callback, in first-watch order."""
        return list(self._watchers.keys())

    def _on_watched(self, key: str) -> None:
        """Hook: a new (key, callback) pair was registered."""

    def _on_unwatched(self, key: str) -> None:
        """Hook: a (key, callback) pair was removed."""

    def _on_change(self, key: str) -> None:
        """Invoke every callback registered for ``key``.

        Iterates over a copy so callbacks may unwatch themselves or others.
        A raising callback is logged and does not stop the rest.
        """
        for callback in list(self._watchers.get(key, ())):
            try:
                callback(self, key)
            except Exception as e:
                logger.warning(f"Error in watch callback for {type(self).__name__}.{key}: {e}", exc_info=True)


class WatchableModel(Watchable):
    """A Watchable entity projected from the base data store.

    Subclasses declare:
    - _get_interest_paths(key): paths whose change fires ``key``
    - _GATED_KEY_ATTRIBUTES / _get_gated_paths(key): paths that fire ``key``
      only if the attribute's value differs from its value before the batch
    - _data_or_none: the entity's raw node, or None if deleted
    """
    _GATED_KEY_ATTRIBUTES: Dict[str, str] = {}

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface', model_id: str):
        super().__init__(model_id)
        self._store = store
        self._host = host
        self._values_before_batch: Dict[str, Any] = {}
        store.register_model(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._id!r})"

    @property
    def _data_or_none(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    @property
    def _data(self) -> Dict[str, Any]:
        """Raw node for this entity; an empty dict once deleted."""
        data = self._data_or_none
        return data if data is not None else {}

    @property
    def is_deleted(self) -> bool:
        return self._data_or_none is None

    def _get_interest_paths(self, key: str) -> List[Path]:
        raise NotImplementedError

    def _get_gated_paths(self, key: str) -> List[Path]:
        return []

    # ========== DISPATCH PROTOCOL (called by UpdateDispatcher) ==========

    def _capture_before_batch(self) -> None:
        """Record the current value of every watched gated key."""
        self._values_before_batch = {
            key: getattr(self, attr)
            for key, attr in self._GATED_KEY_ATTRIBUTES.items()
            if key in self._watchers
        }

    def _get_affected_keys(self, changed_paths: Iterable[Path]) -> List[str]:
        """Watched keys affected by ``changed_paths``, each listed once."""
        paths = list(changed_paths)
        before = self._values_before_batch
        self._values_before_batch = {}

        affected = []
        for key in self.watched_keys:
            if any(affects_any(p, self._get_interest_paths(key)) for p in paths):
                affected.append(key)
                continue
            if key not in before:
                continue
            gated = self._get_gated_paths(key)
            if any(affects_any(p, gated) for p in paths):
                if getattr(self, self._GATED_KEY_ATTRIBUTES[key]) != before[key]:
                    affected.append(key)
        return affected


class WatchableModelWithAsyncData(WatchableModel):
    """WatchableModel whose backing data is fetched and subscribed lazily.

    Lifecycle:
    - Watching any key in _LOAD_KEYS retains the data and starts a load
    - Concurrent loads share one in-flight task
    - Unwatching the last load key (or calling unload_data) tears down
    - A fetch that completes after unload is discarded and unsubscribed

    Subclasses implement _fetch_data_async, _apply_loaded_data,
    _clear_loaded_data and _unsubscribe.
    """
    _LOAD_KEYS: Tuple[str, ...] = ()
    IS_DATA_LOADED_KEY = 'isDataLoaded'

    def __init__(self, store: 'BaseDataStore', host: 'HostInterface', model_id: str):
        super().__init__(store, host, model_id)
        self._is_data_loaded = False
        self._load_task: Optional['asyncio.Task'] = None
        self._load_generation = 0
        self._retain_count = 0

    @property
    def is_data_loaded(self) -> bool:
        return self._is_data_loaded

    async def _fetch_data_async(self) -> Any:
        raise NotImplementedError

    def _apply_loaded_data(self, data: Any) -> List[str]:
        """Merge fetched data into the store; return the keys it changed."""
        raise NotImplementedError

    def _clear_loaded_data(self) -> None:
        raise NotImplementedError

    def _unsubscribe(self) -> None:
        raise NotImplementedError

    def _on_watched(self, key: str) -> None:
        if key not in self._LOAD_KEYS:
            return
        self._retain_count += 1
        self._start_background_load()

    def _on_unwatched(self, key: str) -> None:
        if key not in self._LOAD_KEYS or self._retain_count == 0:
            return
        self._retain_count -= 1
        if self._retain_count == 0:
            self.unload_data()

    def _start_background_load(self) -> None:
        if self._is_data_loaded or self._load_task is not None:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop: {self!r} data will load on the next load_data_async()")
            return
        self._ensure_load_task()

    def _ensure_load_task(self) -> 'asyncio.Task':
        if self._load_task is None:
            loop = asyncio.get_running_loop()
            self._load_task = loop.create_task(self._run_load(self._load_generation))
            self._load_task.add_done_callback(self._on_load_task_done)
        return self._load_task

    async def load_data_async(self) -> None:
        """Load (or wait for the in-flight load of) this model's data.

        Raises:
            Whatever the host's fetch raised; no retry is attempted.
        """
        if self._is_data_loaded:
            return
        await asyncio.shield(self._ensure_load_task())

    async def _run_load(self, generation: int) -> None:
        try:
            data = await self._fetch_data_async()
        except BaseException:
            if generation == self._load_generation:
                self._load_task = None
            raise

        if generation != self._load_generation:
            logger.info(f"Discarding stale data load for {self!r} (unloaded while in flight)")
            self._unsubscribe()
            return

        self._load_task = None
        changed_keys = self._apply_loaded_data(data)
        self._is_data_loaded = True
        logger.info(f"Loaded data for {self!r}")
        for key in changed_keys:
            self._on_change(key)
        self._on_change(self.IS_DATA_LOADED_KEY)

    def _on_load_task_done(self, task: 'asyncio.Task') -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Data load failed for {self!r}: {error}")

    def unload_data(self) -> None:
        """Tear down the subscription and mark the data unloaded.

        Cancels logical ownership of any in-flight load; its result will be
        discarded. Fires ``isDataLoaded`` if the data was loaded.
        """
        self._retain_count = 0
        self._load_generation += 1
        self._load_task = None
        if not self._is_data_loaded:
            return

        self._is_data_loaded = False
        self._unsubscribe()
        self._clear_loaded_data()
        logger.info(f"Unloaded data for {self!r}")
        self._on_change(self.IS_DATA_LOADED_KEY)
