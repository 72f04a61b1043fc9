from collections.abc import Callable
from typing import TypeVar

import httpx
import structlog

from admin_client.core.config import get_settings
from admin_client.core.logging import configure_logging
from admin_client.core.security import current_user_from_token, require_admin
from admin_client.integrations.http.base import TokenStore
from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.common import CurrentUser
from admin_client.services.challenge_admin_service import ChallengeAdminService
from admin_client.services.group_admin_service import GroupAdminService
from admin_client.services.my_group_service import MyGroupService
from admin_client.services.report_screen_service import ReportScreen
from admin_client.services.screen_service import AdminScreen
from admin_client.services.submission_admin_service import SubmissionAdminService
from admin_client.services.user_admin_service import UserAdminService

logger = structlog.get_logger()

S = TypeVar("S", bound=AdminScreen)


class AdminConsole:
    """Wires the HTTP client, session and screens together.

    Screens are created already mounted; call ``close`` (or use ``async with``)
    to unmount them and release the connection pool.
    """

    def __init__(
        self,
        access_token: str | None = None,
        refresh_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        configure_logging()
        self.settings = get_settings()
        self.tokens = TokenStore(access=access_token, refresh=refresh_token)
        self.client = ApiClient(tokens=self.tokens, transport=transport)
        self._screens: list[AdminScreen] = []
        logger.info("console_started", env=self.settings.app_env, base_url=self.settings.normalized_base_url)

    async def __aenter__(self) -> "AdminConsole":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def user(self) -> CurrentUser | None:
        return current_user_from_token(self.tokens.access)

    def require_admin(self) -> CurrentUser:
        return require_admin(self.user)

    def sign_in(self, access_token: str, refresh_token: str | None = None) -> CurrentUser | None:
        self.tokens.set(access_token, refresh_token)
        user = self.user
        logger.info("session_started", user_id=user.user_id if user else None)
        return user

    def sign_out(self) -> None:
        self.tokens.clear()
        for screen in self._screens:
            screen.unmount()
        self._screens.clear()
        logger.info("session_ended")

    def _open(self, factory: Callable[[ApiClient, CurrentUser | None], S]) -> S:
        screen = factory(self.client, self.user)
        screen.mount()
        self._screens.append(screen)
        return screen

    def reports(self) -> ReportScreen:
        return self._open(ReportScreen)

    def users(self) -> UserAdminService:
        return self._open(UserAdminService)

    def groups(self) -> GroupAdminService:
        return self._open(GroupAdminService)

    def my_group(self) -> MyGroupService:
        return self._open(MyGroupService)

    def challenges(self) -> ChallengeAdminService:
        return self._open(ChallengeAdminService)

    def submissions(self) -> SubmissionAdminService:
        return self._open(SubmissionAdminService)

    def close_screen(self, screen: AdminScreen) -> None:
        screen.unmount()
        if screen in self._screens:
            self._screens.remove(screen)

    async def close(self) -> None:
        for screen in self._screens:
            screen.unmount()
        self._screens.clear()
        await self.client.aclose()
        logger.info("console_closed")
