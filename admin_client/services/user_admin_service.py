from typing import Any

import structlog

from admin_client.core.constants import MutationOutcome, UserRoleFilter, UserStatusFilter
from admin_client.core.exceptions import ClientValidationError
from admin_client.integrations.http.client import ApiClient
from admin_client.repositories.user_repository import UserRepository
from admin_client.schemas.common import CurrentUser, NormalizedError
from admin_client.schemas.users import AdminInviteRequest, AdminUser, UserPatchRequest
from admin_client.services.error_service import (
    extract_success_message,
    safe_api,
    semantic_error_from_ok_response,
)
from admin_client.services.mutation_service import (
    EntityStore,
    MutationRequest,
    remove_entity,
    update_entity,
)
from admin_client.services.screen_service import AdminScreen, ConfirmGate
from admin_client.utils.validation import validate_admin_invite

logger = structlog.get_logger()


def _parse_user(body: Any) -> AdminUser | None:
    return AdminUser.model_validate(body) if isinstance(body, dict) and "id" in body else None


def _matches_role(user: AdminUser, role: UserRoleFilter) -> bool:
    role_name = (user.role_name or "").lower()
    if role == UserRoleFilter.ADMIN:
        return role_name == "admin"
    if role == UserRoleFilter.STUDENT:
        return role_name == "student"
    if role == UserRoleFilter.UNKNOWN:
        return not role_name
    return True


class UserAdminService(AdminScreen):
    def __init__(self, client: ApiClient, user: CurrentUser | None):
        super().__init__(client, user)
        self.repo = UserRepository(client)
        self.users: EntityStore[int, AdminUser] = EntityStore(lambda u: u.id)
        self.status_controller = self.controller(self.users, "users.status")
        self.delete_controller = self.controller(self.users, "users.delete")
        self.invite_loading = False
        self._invite_busy = False

    async def load(self) -> None:
        if not self.guard():
            return
        self.loading = True
        self.view.error = None
        result = await safe_api(self.repo.list_users, "Failed to load users. Please try again.")
        if not self.view.alive:
            return
        self.loading = False
        if not result.ok:
            self.view.fail(result.error)
            return
        self.users.replace_all(result.data)

    def filtered(
        self,
        search: str = "",
        role: UserRoleFilter = UserRoleFilter.ALL,
        status: UserStatusFilter = UserStatusFilter.ALL,
    ) -> list[AdminUser]:
        needle = search.strip().lower()
        out = []
        for u in self.users.values():
            if not _matches_role(u, role):
                continue
            if status == UserStatusFilter.ACTIVE and not u.is_active:
                continue
            if status == UserStatusFilter.PENDING and u.is_active:
                continue
            if needle and not any(
                needle in field for field in (u.username.lower(), u.email.lower(), (u.role_name or "").lower())
            ):
                continue
            out.append(u)
        return out

    async def toggle_active(self, target: AdminUser, confirm: ConfirmGate = None) -> MutationOutcome:
        desired = not target.is_active

        def success(body: Any) -> str:
            current = _parse_user(body) or self.users.get(target.id)
            state = "activated" if current is None or current.is_active else "deactivated"
            return f"User {target.username} has been {state}."

        return await self.status_controller.run(
            MutationRequest(
                label="toggle_active",
                confirm=confirm,
                apply=lambda items: update_entity(
                    items, target.id, lambda u: u.model_copy(update={"is_active": desired})
                ),
                commit=lambda: self.repo.update(target.id, UserPatchRequest(is_active=desired)),
                to_entity=_parse_user,
                success_message=success,
                failure_message="Failed to update user status. Please try again.",
            )
        )

    async def delete(self, target: AdminUser, confirm: ConfirmGate = None) -> MutationOutcome:
        return await self.delete_controller.run(
            MutationRequest(
                label="delete",
                confirm=confirm,
                apply=lambda items: remove_entity(items, target.id),
                commit=lambda: self.repo.delete(target.id),
                success_message=f"User {target.username} has been deleted.",
                failure_message="Failed to delete user. Please try again.",
            )
        )

    async def invite_admin(self, email: str, username: str) -> bool:
        self.view.reset_messages()
        if not self.guard():
            return False
        try:
            email, username = validate_admin_invite(email, username)
        except ClientValidationError as exc:
            self.reject(exc)
            return False
        if self._invite_busy:
            return False

        self._invite_busy = True
        self.invite_loading = True
        try:
            result = await safe_api(
                lambda: self.repo.invite_admin(AdminInviteRequest(email=email, username=username)),
                "Failed to send admin invite. Please check the email and try again.",
            )
        finally:
            self._invite_busy = False

        if not self.view.alive:
            return False
        self.invite_loading = False
        if not result.ok:
            self.view.fail(result.error)
            return False
        semantic = semantic_error_from_ok_response(result.data, keys=("error",))
        if semantic:
            self.view.fail(NormalizedError.local(semantic))
            return False
        self.view.flash.show(extract_success_message(result.data) or "Admin invite sent successfully.")
        logger.info("admin_invite_sent", username=username)
        return True
