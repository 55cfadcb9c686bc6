"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ComplianceServiceError(DomainException):
    """Compliance backend is unreachable or rejected the submission"""

    pass


class SessionNotFoundError(DomainException):
    """No onboarding session is registered under the given id"""

    pass
