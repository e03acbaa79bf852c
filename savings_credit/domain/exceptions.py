"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class BadRequestError(DomainException):
    """Operation is invalid for the current amount or state"""

    status_code = 400

    def __init__(self, message: str = "Bad request"):
        super().__init__(message)


class NotFoundError(DomainException):
    """Resource is missing or not owned by the caller"""

    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(DomainException):
    """Resource already exists"""

    status_code = 409

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class PersistenceError(DomainException):
    """Storage layer failed to commit a unit of work"""

    status_code = 500

    def __init__(self, message: str = "Failed to persist changes"):
        super().__init__(message)


class ReferenceGenerationError(PersistenceError):
    """No free reference number found within the attempt budget"""

    def __init__(self, message: str = "Could not allocate a unique reference number"):
        super().__init__(message)
