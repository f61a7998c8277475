"""Repository layer for database operations.

This package provides the generic repository, the specification pattern and
the database context resolver. Feature code obtains a ``Repository[T]`` from a
``DatabaseContextResolver`` and never touches engines directly.
"""

from sportnest.repositories.base import AMBIENT_TRANSACTION_KEY, Repository
from sportnest.repositories.context import (
    DatabaseContextFactory,
    DatabaseContextRegistry,
    DatabaseContextResolver,
)
from sportnest.repositories.errors import (
    ConfigurationError,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    RepositoryError,
)
from sportnest.repositories.pagination import Page, PageRequest
from sportnest.repositories.specification import (
    RepositorySpecification,
    Specification,
    SpecificationEvaluator,
)

__all__ = [
    "AMBIENT_TRANSACTION_KEY",
    "ConfigurationError",
    "ConflictError",
    "DatabaseContextFactory",
    "DatabaseContextRegistry",
    "DatabaseContextResolver",
    "InvalidArgumentError",
    "NotFoundError",
    "Page",
    "PageRequest",
    "Repository",
    "RepositoryError",
    "RepositorySpecification",
    "Specification",
    "SpecificationEvaluator",
]
