"""Error taxonomy shared by the squares services.

Each error carries a user-facing message and the HTTP status the API layer
answers with. Services raise them; ``squares.api.games`` turns them into
``{'error': message}`` responses.
"""


class SquaresError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidArgument(SquaresError):
    status_code = 400


class NotFound(SquaresError):
    status_code = 404


class Forbidden(SquaresError):
    status_code = 403


class InvalidState(SquaresError):
    status_code = 400


class Conflict(SquaresError):
    status_code = 409


class CapacityExceeded(SquaresError):
    status_code = 400


class PreconditionFailed(SquaresError):
    status_code = 400
