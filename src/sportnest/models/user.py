"""User model for registered members."""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from sportnest.models.base import Base, TimestampMixin, UUIDMixin, generate_repr


class User(Base, UUIDMixin, TimestampMixin):
    """A user/member registered in the system.

    Attributes:
        id: Primary key UUID (immutable once assigned)
        display_name: Name shown to other members, searchable
        email: Contact email, unique when present
        phone_number: Contact phone number, unique when present
        created_at: Record creation timestamp
        updated_at: Record last update timestamp
    """

    __tablename__ = "users"

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)

    __table_args__ = (Index("ix_users_display_name", "display_name"),)

    __repr__ = generate_repr("id", "display_name", "email")
