"""Domain errors raised by the services and turned into JSON responses in main.py."""


class YouVoteError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIdentifier(YouVoteError):
    status_code = 400


class ValidationError(YouVoteError):
    status_code = 400


class AuthenticationError(YouVoteError):
    status_code = 401


class PermissionDenied(YouVoteError):
    status_code = 403


class NotFound(YouVoteError):
    status_code = 404


class Conflict(YouVoteError):
    status_code = 409


class StatusUndetermined(YouVoteError):
    """Election dates are missing, unparseable or out of order."""
    status_code = 422


class MailDeliveryError(YouVoteError):
    status_code = 502
