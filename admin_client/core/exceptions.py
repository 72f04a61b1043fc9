from admin_client.core.constants import UNAUTHORIZED_MESSAGE


class ClientValidationError(ValueError):
    """A local precondition failed; the request never reaches the network."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthorizationError(PermissionError):
    def __init__(self, message: str = UNAUTHORIZED_MESSAGE):
        super().__init__(message)
        self.message = message
