"""Exceptions shared by every messenger component.

All failures surface as MessageError. The subclasses only exist so callers
can narrow on a cause when they care; catching MessageError is always enough.
"""


class MessageError(Exception):
    """Base exception for every messenger failure.

    Carries a human-readable message and nothing else. Platform error codes,
    transport errors and decode failures are all folded into the message.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidCredentialError(MessageError):
    """Raised when the app key or app secret is empty."""

    def __init__(self, message: str = "invalid app key or app secret") -> None:
        super().__init__(message)


class AuthError(MessageError):
    """Raised when the platform answers with a non-zero errcode.

    The message is the platform's errmsg, passed through verbatim. The errcode
    itself is only logged.
    """

