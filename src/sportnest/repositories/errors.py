"""Repository exception hierarchy.

These exceptions provide fine-grained error handling for data access.
Applications catch them to build the matching error responses; the API layer
maps each class to an HTTP status code.
"""


class RepositoryError(Exception):
    """Base exception for all repository operations.

    Raised when database operations fail. The more specific exceptions below
    inherit from this for targeted error handling.

    Example:
        try:
            await repo.save_changes()
        except RepositoryError as e:
            logger.error("Database operation failed", error=str(e))
    """


class InvalidArgumentError(RepositoryError, ValueError):
    """Raised when a call violates an argument contract.

    Covers ``None`` entities, predicates and set-values passed to mutation
    APIs, page parameters below 1 and attempts to change an entity identity.
    Raised before anything is staged.
    """


class NotFoundError(RepositoryError):
    """Raised when a requested entity is not found.

    Example:
        try:
            user = await repo.get_by_id_or_404(user_id)
        except NotFoundError:
            raise HTTPException(status_code=404, detail="User not found")
    """


class ConflictError(RepositoryError):
    """Raised when staged changes conflict with existing data.

    Uniqueness and identity violations are only detectable by the database,
    so this surfaces at flush/commit time and fails the whole batch.
    """


class ConfigurationError(RepositoryError):
    """Raised when the data layer is wired incorrectly.

    Typically no registered database context owns the requested entity type.
    Signals a setup defect rather than a runtime data issue.
    """
