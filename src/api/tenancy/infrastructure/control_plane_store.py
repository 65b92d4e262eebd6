"""PostgreSQL implementation of IControlPlaneStore.

Reads tenant rows from the shared control-plane database. The store is
long-lived (it is used at startup and on the request path), so it opens a
short session per call from a session factory instead of holding one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import SecretStr
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from tenancy.domain.value_objects import TenantId, TenantRecord
from tenancy.infrastructure.models import TenantModel
from tenancy.infrastructure.observability import (
    ControlPlaneStoreProbe,
    DefaultControlPlaneStoreProbe,
)
from tenancy.ports.exceptions import ControlPlaneUnreachableError
from tenancy.ports.repositories import IControlPlaneStore

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class ControlPlaneStore(IControlPlaneStore):
    """Read-only access to control-plane tenant rows."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        probe: ControlPlaneStoreProbe | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory for control-plane sessions
            probe: Optional domain probe for observability
        """
        self._session_factory = session_factory
        self._probe = probe or DefaultControlPlaneStoreProbe()

    async def list_active_tenants(self) -> list[TenantRecord]:
        """Fetch all tenants whose ``deleted_at`` is NULL.

        Raises:
            ControlPlaneUnreachableError: If the query fails
        """
        stmt = (
            select(TenantModel)
            .where(TenantModel.deleted_at.is_(None))
            .order_by(TenantModel.id)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                models = result.scalars().all()
        except (SQLAlchemyError, OSError) as e:
            self._probe.store_query_failed("list_active_tenants", e)
            raise ControlPlaneUnreachableError(
                f"Failed to list tenants from the control plane: {type(e).__name__}"
            ) from e

        records = []
        for model in models:
            try:
                records.append(_to_record(model))
            except ValueError as e:
                self._probe.malformed_tenant_row(model.id, e)
        self._probe.active_tenants_listed(len(records))
        return records

    async def get_by_public_id(self, public_id: TenantId) -> TenantRecord | None:
        """Fetch a tenant by public id, soft-deleted rows included.

        Raises:
            ControlPlaneUnreachableError: If the query fails
        """
        stmt = select(TenantModel).where(
            func.upper(func.trim(TenantModel.public_id)) == public_id.value
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                model = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            self._probe.store_query_failed("get_by_public_id", e)
            raise ControlPlaneUnreachableError(
                f"Failed to read tenant {public_id} from the control plane: "
                f"{type(e).__name__}"
            ) from e

        if model is None:
            self._probe.tenant_not_found(public_id.value)
            return None

        record = _to_record(model)
        self._probe.tenant_retrieved(record.public_id.value, active=record.is_active)
        return record


def _to_record(model: TenantModel) -> TenantRecord:
    """Reconstitute a TenantRecord from its ORM row.

    Raises:
        ValueError: If the stored public id is not a ULID
    """
    return TenantRecord(
        internal_id=model.id,
        public_id=TenantId.from_string(model.public_id),
        name=model.name,
        connection_string=SecretStr(model.connection_string),
        soft_deleted_at=model.deleted_at,
    )
