"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ImportFormatError(DomainException):
    """A backup payload could not be parsed or has the wrong shape."""


class StorageError(Exception):
    """The underlying blob store failed to read or write."""
