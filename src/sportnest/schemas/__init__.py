"""Pydantic request and response schemas."""

from sportnest.schemas.user import RegisterUserRequest, UserPageResponse, UserResponse

__all__ = [
    "RegisterUserRequest",
    "UserPageResponse",
    "UserResponse",
]
