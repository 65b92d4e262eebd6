"""SQLAlchemy ORM model for the control-plane tenants table."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, SoftDeleteMixin, TimestampMixin


class TenantModel(Base, TimestampMixin, SoftDeleteMixin):
    """ORM model for tenants table.

    Each row points at the tenant's own database through
    ``connection_string``. Rows are soft-deleted via ``deleted_at``.
    """

    __tablename__ = "tenants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(String(26), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    connection_string: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        """Return string representation (never includes the connection string)."""
        return f"<TenantModel(id={self.id}, public_id={self.public_id}, slug={self.slug})>"
