from collections.abc import Awaitable, Callable, Hashable
from typing import TypeVar

from admin_client.core.constants import FORBIDDEN_REDIRECT
from admin_client.core.exceptions import ClientValidationError
from admin_client.core.security import is_admin
from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.common import CurrentUser, NormalizedError
from admin_client.services.mutation_service import EntityStore, MutationController, ViewContext

K = TypeVar("K", bound=Hashable)
E = TypeVar("E")

ConfirmGate = Callable[[], bool | Awaitable[bool]] | None


class AdminScreen:
    admin_only = True

    def __init__(self, client: ApiClient, user: CurrentUser | None, flash_ttl: float | None = None):
        self.client = client
        self.user = user
        self.view = ViewContext(flash_ttl=flash_ttl)
        self.loading = False

    def mount(self) -> None:
        self.view.mount()
        if not self.is_authorized():
            self.view.deny()

    def unmount(self) -> None:
        self.view.unmount()

    def is_authorized(self) -> bool:
        if not self.admin_only:
            return self.user is not None
        return is_admin(self.user)

    @property
    def error(self) -> NormalizedError | None:
        return self.view.error

    @property
    def message(self) -> str | None:
        return self.view.message

    @property
    def redirect_to(self) -> str | None:
        return FORBIDDEN_REDIRECT if self.view.forbidden else None

    def controller(self, store: EntityStore[K, E], name: str) -> MutationController[K, E]:
        return MutationController(store, self.view, name=name, authorize=self.is_authorized)

    def reject(self, exc: ClientValidationError) -> None:
        self.view.fail(NormalizedError.local(exc.message))

    def guard(self) -> bool:
        if self.is_authorized():
            return True
        self.view.deny()
        return False
