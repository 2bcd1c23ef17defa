"""Tests for the audit logger."""

from uuid import UUID

import pytest

from spendwise.audit import AuditLogger, create_correlation_id
from spendwise.models.audit import AuditEvent, AuditEventType


class TestAuditLogger:
    @pytest.mark.asyncio
    async def test_log_returns_true(self):
        event = AuditEvent(event_type=AuditEventType.INSIGHTS_GENERATED, description="ok")
        assert await AuditLogger().log(event) is True

    @pytest.mark.asyncio
    async def test_log_never_raises(self):
        class UnserializableEvent(AuditEvent):
            def to_log_dict(self):
                raise RuntimeError("serializer broke")

        event = UnserializableEvent(event_type=AuditEventType.SYSTEM_ERROR, description="boom")
        assert await AuditLogger().log(event) is False

    @pytest.mark.asyncio
    async def test_helpers_do_not_raise(self):
        audit = AuditLogger()
        correlation_id = create_correlation_id()
        await audit.log_auth_rejected("missing_token", correlation_id)
        await audit.log_insights_fallback(
            user_id="u1",
            transaction_count=2,
            error_message="Gemini request failed: TimeoutError",
            correlation_id=correlation_id,
        )
        await audit.log_error(error_type="RuntimeError", error_message="x")
        await audit.log_external_service_error(
            service="supabase_auth",
            error_message="ConnectError",
            correlation_id=correlation_id,
        )


def test_correlation_id_is_uuid():
    assert isinstance(create_correlation_id(), UUID)
