"""User request/response schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sportnest.repositories.pagination import Page


class RegisterUserRequest(BaseModel):
    """Body of ``POST /api/users/register``.

    A display name is required, and so is at least one way to reach the
    user: an email address or a phone number.
    """

    display_name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=50)

    @field_validator("display_name")
    @classmethod
    def display_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Display name must not be empty")
        return value.strip()

    @field_validator("email", "phone_number")
    @classmethod
    def empty_as_missing(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def contact_required(self) -> "RegisterUserRequest":
        if not self.email and not self.phone_number:
            raise ValueError("Email or PhoneNumber must be provided.")
        return self


class UserResponse(BaseModel):
    """Public representation of a user."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    display_name: str
    email: str | None = None
    phone_number: str | None = None
    created_at: datetime
    updated_at: datetime


class UserPageResponse(BaseModel):
    """One page of user search results."""

    current_page: int
    next_page: int
    total_pages: int
    page_size: int
    total_items: int
    items: list[UserResponse]

    @classmethod
    def from_page(cls, page: Page[Any]) -> "UserPageResponse":
        return cls(
            current_page=page.current_page,
            next_page=page.next_page,
            total_pages=page.total_pages,
            page_size=page.page_size,
            total_items=page.total_items,
            items=[UserResponse.model_validate(user) for user in page.items],
        )
