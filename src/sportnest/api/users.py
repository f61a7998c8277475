"""User endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status

from sportnest.api.deps import get_mediator
from sportnest.core.config import settings
from sportnest.handlers.pipeline import Mediator
from sportnest.handlers.users import GetUserByIdQuery, RegisterUserCommand, SearchUsersByNameQuery
from sportnest.schemas.user import RegisterUserRequest, UserPageResponse, UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_409_CONFLICT: {"description": "Email or phone number in use"}},
)
async def register_user(
    body: RegisterUserRequest,
    mediator: Mediator = Depends(get_mediator),
) -> UserResponse:
    """Register a new user."""
    user = await mediator.send(
        RegisterUserCommand(
            display_name=body.display_name,
            email=body.email,
            phone_number=body.phone_number,
        )
    )
    return UserResponse.model_validate(user)


@router.get("/search", response_model=UserPageResponse)
async def search_users(
    name: str = Query(min_length=1, pattern=r"\S", description="Display name search terms"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    mediator: Mediator = Depends(get_mediator),
) -> UserPageResponse:
    """Search users by display name, one page at a time."""
    result = await mediator.send(SearchUsersByNameQuery(name=name, page=page, page_size=page_size))
    return UserPageResponse.from_page(result)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={status.HTTP_404_NOT_FOUND: {"description": "User not found"}},
)
async def get_user(
    user_id: uuid.UUID,
    mediator: Mediator = Depends(get_mediator),
) -> UserResponse:
    """Get a user by id."""
    response: UserResponse = await mediator.send(GetUserByIdQuery(user_id=user_id))
    return response
