"""Error taxonomy for the subscribe-and-confirm workflows.

Every failure the service can report derives from ``NewsletterError``. Each
class carries the HTTP status it maps to, and the underlying exception is
kept as ``__cause__`` (``raise ... from exc``) so it can be inspected through
``cause`` or rendered with ``error_chain()`` for the operator log. Callers
only ever see the status code.
"""

from typing import List, Optional


class NewsletterError(Exception):
    """Base class for caller-visible failures."""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    @property
    def cause(self) -> Optional[BaseException]:
        """The exception this error wraps, if any."""
        return self.__cause__

    def causes(self) -> List[BaseException]:
        """Walk the cause chain, nearest cause first."""
        chain = []
        current = self.__cause__ or self.__context__
        while current is not None and current not in chain:
            chain.append(current)
            current = current.__cause__ or current.__context__
        return chain

    def error_chain(self) -> str:
        lines = [f"{type(self).__name__}: {self}"]
        for cause in self.causes():
            lines.append(f"Caused by:\n\t{type(cause).__name__}: {cause}")
        return "\n".join(lines)


class SubscriptionValidationError(NewsletterError):
    status_code = 400
    default_message = "Invalid subscriber data"


class DatabaseError(NewsletterError):
    default_message = "Database error"


class StoreUnavailable(DatabaseError):
    default_message = "Could not obtain a database connection"


class ConstraintViolation(DatabaseError):
    default_message = "Database constraint violated"


class NotFound(DatabaseError):
    default_message = "Record not found"


class MailError(NewsletterError):
    default_message = "Mail transport failed"


class SendEmailError(NewsletterError):
    default_message = "Failed to send confirmation email"


class UnknownTokenError(NewsletterError):
    status_code = 401
    default_message = "Unknown subscription token"
