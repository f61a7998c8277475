"""Base model classes and mixins for SQLAlchemy models."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column, validates

from sportnest.repositories.errors import InvalidArgumentError

# Constraint names stay stable across dialects so migrations can address them
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    """Timezone-aware current timestamp used for tracked-entity columns."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base of the users bounded context.

    Every model mapped by this base is owned by the users database context.
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns.

    Values are generated client-side so they are available on the instance
    right after a flush; the server defaults cover rows written outside the ORM.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        """Timestamp when the record was created."""
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        """Timestamp when the record was last updated."""
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            server_default=func.now(),
            onupdate=utcnow,
        )


class ImmutableIdentityMixin:
    """Rejects changing an ``id`` once the instance has one."""

    @validates("id")
    def _validate_identity(self, key: str, value: Any) -> Any:
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise InvalidArgumentError(
                f"Identity of {type(self).__name__} is immutable "
                f"(attempted change from {current!r} to {value!r})"
            )
        return value


class UUIDMixin(ImmutableIdentityMixin):
    """Mixin that adds an immutable UUID primary key."""

    @declared_attr
    def id(cls) -> Mapped[uuid.UUID]:
        """Primary key UUID."""
        return mapped_column(
            primary_key=True,
            default=uuid.uuid4,
        )


def generate_repr(*attrs: str) -> Any:
    """Generate a __repr__ method for model classes.

    Args:
        *attrs: Attribute names to include in the repr string.

    Returns:
        A __repr__ method that displays the specified attributes.

    Example:
        __repr__ = generate_repr("id", "display_name", "email")
    """

    def __repr__(self: Any) -> str:
        class_name = self.__class__.__name__
        attr_strs = [f"{attr}={getattr(self, attr)!r}" for attr in attrs]
        return f"{class_name}({', '.join(attr_strs)})"

    return __repr__
