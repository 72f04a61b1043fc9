from dataclasses import dataclass
from typing import Any


@dataclass
class ApiResponse:
    status: int
    data: Any


class ApiRequestError(Exception):
    """Raised by the API client.

    ``response`` is set when the server answered with a failure status and is
    ``None`` for transport failures (connection refused, DNS, timeout).
    """

    def __init__(self, message: str, *, response: ApiResponse | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.response = response
        self.code = code

    @property
    def status(self) -> int | None:
        return self.response.status if self.response else None


@dataclass
class TokenStore:
    access: str | None = None
    refresh: str | None = None

    def set(self, access: str, refresh: str | None = None) -> None:
        self.access = access
        if refresh is not None:
            self.refresh = refresh

    def clear(self) -> None:
        self.access = None
        self.refresh = None
