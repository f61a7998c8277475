"""Feature specifications built on the repository specification pattern."""

from sportnest.specifications.users import GetUserSpecification, SearchUsersSpecification

__all__ = [
    "GetUserSpecification",
    "SearchUsersSpecification",
]
