"""Unit tests for tenancy value objects."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import SecretStr

from tenancy.domain.value_objects import (
    BootstrapReport,
    FailureKind,
    IdentityClaim,
    ProvisioningFailure,
    TenantId,
    TenantRecord,
)


class TestTenantId:
    def test_generate_produces_ulid(self):
        tenant_id = TenantId.generate()

        assert len(tenant_id.value) == 26
        assert TenantId.from_string(tenant_id.value) == tenant_id

    def test_from_string_normalises_case(self):
        tenant_id = TenantId.generate()

        assert TenantId.from_string(tenant_id.value.lower()) == tenant_id

    @pytest.mark.parametrize("value", ["", "not-a-ulid", "0" * 27])
    def test_from_string_rejects_invalid(self, value):
        with pytest.raises(ValueError, match="Invalid TenantId"):
            TenantId.from_string(value)

    def test_is_hashable_registry_key(self):
        tenant_id = TenantId.generate()

        assert {tenant_id: 1}[TenantId(value=tenant_id.value)] == 1


class TestTenantRecord:
    def test_connection_string_never_rendered(self):
        record = TenantRecord(
            internal_id=1,
            public_id=TenantId.generate(),
            name="acme",
            connection_string=SecretStr("postgresql://acme:hunter2@db/acme"),
        )

        assert "hunter2" not in repr(record)
        assert "hunter2" not in str(record)

    def test_soft_deleted_record_is_not_active(self):
        record = TenantRecord(
            internal_id=1,
            public_id=TenantId.generate(),
            name="acme",
            connection_string=SecretStr("postgresql://db/acme"),
            soft_deleted_at=datetime.now(UTC),
        )

        assert record.is_active is False


class TestIdentityClaim:
    def test_claim_without_tenant_is_not_tenant_scoped(self):
        assert IdentityClaim(subject="admin").is_tenant_scoped is False

    def test_claim_with_tenant_is_tenant_scoped(self):
        claim = IdentityClaim(subject="u1", tenant_public_id=TenantId.generate())

        assert claim.is_tenant_scoped is True


class TestProvisioningFailure:
    def test_only_connect_failures_are_retryable(self):
        tenant_id = TenantId.generate()

        assert ProvisioningFailure(tenant_id, FailureKind.CONNECT, "x").retryable
        assert not ProvisioningFailure(tenant_id, FailureKind.MIGRATION, "x").retryable
        assert not ProvisioningFailure(tenant_id, FailureKind.SEED, "x").retryable


class TestBootstrapReport:
    def test_empty_report_is_complete(self):
        assert BootstrapReport().is_complete

    def test_partial_failure_lists_failed_ids(self):
        ok, bad = TenantId.generate(), TenantId.generate()
        report = BootstrapReport(
            provisioned=(ok,),
            failed={
                bad: ProvisioningFailure(
                    bad, FailureKind.MIGRATION, "boom", at_version="d15b8e4c6f70"
                )
            },
        )

        assert report.partial_failure == [bad]
        assert not report.is_complete

    def test_pending_tenants_make_report_incomplete(self):
        report = BootstrapReport(pending=(TenantId.generate(),))

        assert not report.is_complete

    def test_as_dict_summarises_without_messages(self):
        bad = TenantId.generate()
        report = BootstrapReport(
            failed={
                bad: ProvisioningFailure(
                    bad, FailureKind.MIGRATION, "boom", at_version="d15b8e4c6f70"
                )
            },
        )

        assert report.as_dict() == {
            "provisioned": 0,
            "failed": {
                bad.value: {"kind": "migration", "at_version": "d15b8e4c6f70"}
            },
            "pending": [],
        }
