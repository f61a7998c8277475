"""Entities of the employee-db test context."""

from sqlalchemy import MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from sportnest.models.base import NAMING_CONVENTION, UUIDMixin


class EmployeeDbBase(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Employee(EmployeeDbBase, UUIDMixin):
    __tablename__ = "employees"


class User(EmployeeDbBase, UUIDMixin):
    __tablename__ = "users"

    firstname: Mapped[str] = mapped_column(String(100), nullable=False)
    lastname: Mapped[str] = mapped_column(String(100), nullable=False)
