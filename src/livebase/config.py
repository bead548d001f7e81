"""
Framework configuration for livebase.

Holds the tunables that are decisions rather than data:
- the commit delay passed with field option updates
- how legacy raw field type tags are remapped
- whether a provider-declared logical type wins over a legacy remap

Module-global, like the rest of the process-wide state here: set once at
startup (or per test) via set_sync_config().
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional

# Fixed minimum commit delay for field option updates. Rapid successive
# updates to the same field race on the host without it.
UPDATE_OPTIONS_HOLD_FOR_MS = 100

PROVIDER_PRECEDENCE = 'provider'
LEGACY_PRECEDENCE = 'legacy'


def _default_legacy_type_remaps() -> Dict[str, str]:
    return {
        'lookup': 'multipleLookupValues',
        'foreignKey': 'multipleRecordLinks',
    }


@dataclass(frozen=True)
class SyncConfig:
    """Process-wide livebase settings."""
    update_options_hold_for_ms: int = UPDATE_OPTIONS_HOLD_FOR_MS
    # 'provider': provider.get_logical_type() overrides the legacy remap
    # 'legacy': the legacy remap table is authoritative for tags it lists
    provider_type_precedence: str = PROVIDER_PRECEDENCE
    legacy_type_remaps: Dict[str, str] = field(default_factory=_default_legacy_type_remaps)

    def __post_init__(self):
        if self.provider_type_precedence not in (PROVIDER_PRECEDENCE, LEGACY_PRECEDENCE):
            raise ValueError(
                f"provider_type_precedence must be '{PROVIDER_PRECEDENCE}' or "
                f"'{LEGACY_PRECEDENCE}', got {self.provider_type_precedence!r}"
            )


_sync_config: Optional[SyncConfig] = None


def get_sync_config() -> SyncConfig:
    """Get the active config, creating the default on first use."""
    global _sync_config
    if _sync_config is None:
        _sync_config = SyncConfig()
    return _sync_config


def set_sync_config(config: SyncConfig) -> None:
    global _sync_config
    _sync_config = config


def update_sync_config(**changes) -> SyncConfig:
    """Replace selected settings on the active config and return it."""
    config = replace(get_sync_config(), **changes)
    set_sync_config(config)
    return config


def reset_sync_config() -> None:
    """Restore defaults. For testing."""
    global _sync_config
    _sync_config = None
