from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from admin_client.core.constants import ERROR_MESSAGE_SEPARATOR

T = TypeVar("T")


class CurrentUser(BaseModel):
    user_id: int | str | None = None
    username: str | None = None
    email: str | None = None
    role: str | None = None


class NormalizedError(BaseModel):
    status: int | None = None
    code: str | None = None
    message: str
    messages: list[str] = Field(default_factory=list)
    isNetworkError: bool = False
    isAuthError: bool = False
    raw: Any = None

    @classmethod
    def local(cls, message: str) -> "NormalizedError":
        return cls(message=message, messages=[message])

    @property
    def banner(self) -> str:
        return ERROR_MESSAGE_SEPARATOR.join(self.messages) if self.messages else self.message


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T
    ok: bool = True


@dataclass(frozen=True)
class Err:
    error: NormalizedError
    ok: bool = False


Result = Ok[T] | Err

