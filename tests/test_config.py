"""Tests for process-wide settings and their effect on field models."""
import pytest

from livebase import (
    UPDATE_OPTIONS_HOLD_FOR_MS,
    FieldType,
    SyncConfig,
    get_sync_config,
    reset_sync_config,
    set_sync_config,
    update_sync_config,
)
from livebase.config import LEGACY_PRECEDENCE, PROVIDER_PRECEDENCE


class TestSyncConfig:

    def test_defaults(self):
        config = get_sync_config()
        assert config.update_options_hold_for_ms == UPDATE_OPTIONS_HOLD_FOR_MS == 100
        assert config.provider_type_precedence == PROVIDER_PRECEDENCE
        assert config.legacy_type_remaps == {
            'lookup': 'multipleLookupValues',
            'foreignKey': 'multipleRecordLinks',
        }

    def test_default_is_created_once(self):
        assert get_sync_config() is get_sync_config()

    def test_invalid_precedence(self):
        with pytest.raises(ValueError, match="provider_type_precedence"):
            SyncConfig(provider_type_precedence='newest')

    def test_update(self):
        config = update_sync_config(update_options_hold_for_ms=250)

        assert config.update_options_hold_for_ms == 250
        assert get_sync_config() is config
        assert config.provider_type_precedence == PROVIDER_PRECEDENCE

    def test_set_and_reset(self):
        custom = SyncConfig(provider_type_precedence=LEGACY_PRECEDENCE)
        set_sync_config(custom)
        assert get_sync_config() is custom

        reset_sync_config()
        assert get_sync_config() == SyncConfig()


class TestTypePrecedence:

    def test_provider_wins_by_default(self, host, client_field):
        host.provider.get_logical_type.return_value = 'multipleSelects'
        assert client_field.type == FieldType.MULTIPLE_SELECTS

    def test_legacy_wins_when_configured(self, host, client_field):
        update_sync_config(provider_type_precedence=LEGACY_PRECEDENCE)
        host.provider.get_logical_type.return_value = 'multipleSelects'

        assert client_field.type == FieldType.MULTIPLE_RECORD_LINKS

    def test_provider_applies_to_unmapped_tags_under_legacy(self, host, design_projects):
        update_sync_config(provider_type_precedence=LEGACY_PRECEDENCE)
        host.provider.get_logical_type.return_value = 'multilineText'

        assert design_projects.fields[0].type == FieldType.MULTILINE_TEXT

    def test_custom_remap_table(self, design_projects):
        update_sync_config(legacy_type_remaps={'singleLineText': 'email'})
        assert design_projects.fields[0].type == FieldType.EMAIL


@pytest.mark.asyncio
async def test_configured_hold_for_ms(host, client_field):
    update_sync_config(update_options_hold_for_ms=0)

    await client_field.update_options_async({})

    assert host.apply_mutation_async.call_args.kwargs == {'hold_for_ms': 0}
