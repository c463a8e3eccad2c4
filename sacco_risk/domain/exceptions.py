"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is missing, malformed or not allowed in the current state"""

    pass


class NotFoundError(DomainException):
    """Referenced client, loan or score does not exist"""

    pass


class StoreError(DomainException):
    """Record store failed (connection, timeout, constraint)"""

    pass


class ConcurrentUpdateError(StoreError):
    """Record changed between read and write"""

    pass


class ComputationError(DomainException):
    """Scoring produced a non-finite value"""

    pass
