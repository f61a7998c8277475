"""User feature: register, get by id, search by name."""

import uuid
from dataclasses import dataclass
from typing import Optional

from sportnest.core.cache import cache_get, cache_set
from sportnest.core.config import settings
from sportnest.core.logging import get_logger
from sportnest.handlers.pipeline import Command, HandlerFactory, Query, Request, RequestHandler
from sportnest.models.user import User
from sportnest.repositories.errors import ConflictError
from sportnest.repositories.pagination import Page
from sportnest.schemas.user import UserResponse
from sportnest.specifications.users import SearchUsersSpecification

logger = get_logger(__name__)


def user_cache_key(user_id: uuid.UUID) -> str:
    return f"user:{user_id}"


# ============================================================================
# REGISTER USER
# ============================================================================


@dataclass(frozen=True)
class RegisterUserCommand(Command):
    display_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None


class RegisterUserHandler(RequestHandler[RegisterUserCommand]):
    """Registers a user after checking email and phone number are unused.

    Raises:
        ConflictError: If the email or phone number is already in use
    """

    async def handle(self, request: RegisterUserCommand) -> User:
        repo = self.resolver.repository(User)

        if request.email is not None and await repo.exist(User.email == request.email):
            raise ConflictError("Email already in use.")

        if request.phone_number is not None and await repo.exist(
            User.phone_number == request.phone_number
        ):
            raise ConflictError("PhoneNumber already in use.")

        user = User(
            display_name=request.display_name,
            email=request.email,
            phone_number=request.phone_number,
        )
        repo.add(user)
        await repo.save_changes()

        logger.info("User registered", user_id=str(user.id))
        return user


# ============================================================================
# GET USER BY ID
# ============================================================================


@dataclass(frozen=True)
class GetUserByIdQuery(Query):
    user_id: uuid.UUID


class GetUserByIdHandler(RequestHandler[GetUserByIdQuery]):
    """Looks a user up by id, reading through the cache when one is configured.

    Raises:
        NotFoundError: If no user has the id
    """

    async def handle(self, request: GetUserByIdQuery) -> UserResponse:
        cache = self.mediator.cache
        key = user_cache_key(request.user_id)

        if cache is not None:
            cached = await cache_get(cache, key)
            if cached is not None:
                return UserResponse.model_validate_json(cached)

        user = await self.resolver.repository(User).get_by_id_or_404(request.user_id)
        response = UserResponse.model_validate(user)

        if cache is not None:
            await cache_set(cache, key, response.model_dump_json(), settings.user_cache_ttl_seconds)

        return response


# ============================================================================
# SEARCH USERS BY NAME
# ============================================================================


@dataclass(frozen=True)
class SearchUsersByNameQuery(Query):
    name: str
    page: int = 1
    page_size: int = 50


class SearchUsersByNameHandler(RequestHandler[SearchUsersByNameQuery]):
    """Returns one page of users whose display name matches the search."""

    async def handle(self, request: SearchUsersByNameQuery) -> Page[User]:
        spec = SearchUsersSpecification(self.resolver.repository(User)).by_name(request.name)
        return await spec.execute_paged(page=request.page, page_size=request.page_size)


USER_HANDLERS: dict[type[Request], HandlerFactory] = {
    RegisterUserCommand: RegisterUserHandler,
    GetUserByIdQuery: GetUserByIdHandler,
    SearchUsersByNameQuery: SearchUsersByNameHandler,
}
