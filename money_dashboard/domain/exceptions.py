"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BankAPIError(DomainException):
    """Bank aggregator API returned an error or is unavailable"""

    pass


class BankNotConnectedError(DomainException):
    """User has not linked a bank account yet"""

    pass


class LLMAPIError(DomainException):
    """LLM API returned an error or an unusable response"""

    pass


class NotFoundError(DomainException):
    """Requested record does not exist for this user"""

    pass


class AuthenticationError(DomainException):
    """Missing, expired, or invalid credentials"""

    pass


class DuplicateUserError(DomainException):
    """A user with this email already exists"""

    pass


class InvalidAnalysisRangeError(DomainException):
    """Requested analysis date range is malformed or too long"""

    pass
