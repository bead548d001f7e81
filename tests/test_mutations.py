"""Tests for mutation descriptors and the Mutations forwarding layer."""
from dataclasses import FrozenInstanceError

import pytest

from livebase import FieldConfig, FieldType, Mutation, Mutations, MutationType, PermissionCheckResult


@pytest.fixture
def mutation():
    return Mutation.update_single_field_config('tbl1', 'fld1', FieldType.SINGLE_SELECT, {'choices': []})


class TestMutation:

    def test_factory(self, mutation):
        assert mutation == Mutation(
            type=MutationType.UPDATE_SINGLE_FIELD_CONFIG,
            table_id='tbl1',
            id='fld1',
            config=FieldConfig(type=FieldType.SINGLE_SELECT, options={'choices': []}),
        )

    def test_to_dict(self, mutation):
        assert mutation.to_dict() == {
            'type': 'updateSingleFieldConfig',
            'tableId': 'tbl1',
            'id': 'fld1',
            'config': {'type': 'singleSelect', 'options': {'choices': []}},
        }

    def test_frozen(self, mutation):
        with pytest.raises(FrozenInstanceError):
            mutation.id = 'fld2'


class TestPermissionCheckResult:

    def test_allowed(self):
        result = PermissionCheckResult.allowed()
        assert result.has_permission
        assert result.reason_display_string is None

    def test_denied(self):
        result = PermissionCheckResult.denied("You need editor access")
        assert not result.has_permission
        assert result.reason_display_string == "You need editor access"


class TestMutations:

    def test_check_forwards_snapshot_and_result(self, host, sdk, mutation):
        denied = PermissionCheckResult.denied("Read-only")
        host.check_permissions_for_mutation.return_value = denied

        result = sdk.mutations.check_permissions_for_mutation(mutation)

        assert result is denied
        host.check_permissions_for_mutation.assert_called_once_with(mutation, sdk.store.data)
        host.apply_mutation_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_apply_without_delay(self, host, sdk, mutation):
        await sdk.mutations.apply_mutation_async(mutation)

        host.apply_mutation_async.assert_awaited_once_with(mutation)

    @pytest.mark.asyncio
    async def test_apply_with_delay(self, host, sdk, mutation):
        await sdk.mutations.apply_mutation_async(mutation, hold_for_ms=250)

        host.apply_mutation_async.assert_awaited_once_with(mutation, hold_for_ms=250)

    @pytest.mark.asyncio
    async def test_apply_does_not_check_permissions(self, host, mutation):
        mutations = Mutations(store=None, host=host)

        await mutations.apply_mutation_async(mutation)

        host.check_permissions_for_mutation.assert_not_called()
