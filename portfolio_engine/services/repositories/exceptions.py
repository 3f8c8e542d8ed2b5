"""Repository-specific exceptions.

These exceptions provide semantic meaning for data access errors,
separating them from general database and filesystem errors.
"""


class RepositoryError(Exception):
    """Base exception for repository operations."""


class NotFoundError(RepositoryError):
    """Entity not found in the store."""

    def __init__(self, entity_type: str, identifier: str | int):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(f"{entity_type} not found: {identifier}")


class StoreWriteError(RepositoryError):
    """A write to the underlying store failed."""

    def __init__(self, operation: str, identifier: str | int, reason: str):
        self.operation = operation
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"{operation} failed for {identifier}: {reason}")
