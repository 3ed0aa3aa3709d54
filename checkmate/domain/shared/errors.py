"""Domain error taxonomy.

Every rule violation in the domain raises one of these before any state is
touched. The application layer converts them into ``Err`` results; the domain
itself never logs, retries or corrects them.
"""


class DomainError(Exception):
    """Base class for all domain rule violations."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DomainValidationError(DomainError, ValueError):
    """A supplied value is not acceptable (empty title, bad points, ...)."""


class InvalidStateError(DomainError):
    """The aggregate is in a state that forbids the requested operation."""


class NotFoundError(DomainError):
    """A referenced entity does not exist."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(f"{resource} not found: {resource_id}")
        self.resource = resource
        self.resource_id = resource_id
