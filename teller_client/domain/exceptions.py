"""Domain-specific exceptions"""

from teller_client.domain.models import ClassifiedError, ErrorKind


class BankingError(Exception):
    """Base exception for the client"""

    pass


class BankAPIError(BankingError):
    """A backend call failed; carries the classified form of the failure"""

    def __init__(self, error: ClassifiedError):
        super().__init__(str(error))
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


class InvalidCredentialsError(BankAPIError):
    """Backend rejected a username/password pair at login"""

    pass


class ValidationError(BankingError):
    """Input failed a local structural check before any network call"""

    def __init__(self, message: str):
        self.error = ClassifiedError(kind=ErrorKind.VALIDATION, message=message)
        super().__init__(str(self.error))


class InvalidStateError(BankingError):
    """Executor operation is not allowed in the current state"""

    pass


class NotAuthenticatedError(BankingError):
    """Operation needs a session but none is active"""

    pass
