from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from pydantic import ValidationError

from admin_client.core.config import get_settings
from admin_client.core.constants import MutationOutcome
from admin_client.core.exceptions import ClientValidationError
from admin_client.integrations.http.client import ApiClient
from admin_client.repositories.group_repository import MyGroupRepository, parse_dashboard, parse_incoming
from admin_client.schemas.common import CurrentUser, NormalizedError
from admin_client.schemas.groups import (
    GroupCreateRequest,
    GroupInvite,
    GroupMember,
    GroupSummary,
    IncomingInvite,
    UserSearchResult,
)
from admin_client.services.error_service import (
    extract_success_message,
    normalize_api_error,
    safe_api,
    semantic_error_from_ok_response,
)
from admin_client.services.mutation_service import EntityStore, MutationRequest, confirmed, remove_entity
from admin_client.services.screen_service import AdminScreen, ConfirmGate
from admin_client.utils.validation import validate_group_bounds

logger = structlog.get_logger()


class MyGroupService(AdminScreen):
    """The signed-in user's own group page (members, invitations)."""

    admin_only = False

    def __init__(self, client: ApiClient, user: CurrentUser | None):
        super().__init__(client, user)
        self.settings = get_settings()
        self.repo = MyGroupRepository(client)
        self.group: GroupSummary | None = None
        self.members: EntityStore[int, GroupMember] = EntityStore(lambda m: m.id)
        self.pending_invites: list[GroupInvite] = []
        self.incoming: EntityStore[int, IncomingInvite] = EntityStore(lambda i: i.id)
        self.search_results: list[UserSearchResult] = []
        self.incoming_loading = False
        self.search_loading = False
        self.member_controller = self.controller(self.members, "my_group.remove_member")
        self.decline_controller = self.controller(self.incoming, "my_group.decline_invite")
        # Action kinds with a request in flight; a second trigger is dropped.
        self._busy: set[str] = set()

    @property
    def admin_member(self) -> GroupMember | None:
        return next((m for m in self.members.values() if m.is_admin), None)

    def _claim(self, action: str) -> bool:
        if action in self._busy:
            logger.debug("my_group_action_dropped", action=action)
            return False
        self._busy.add(action)
        return True

    async def _request(self, fn: Callable[[], Awaitable[Any]], fallback: str) -> tuple[bool, Any]:
        self.loading = True
        result = await safe_api(fn, fallback)
        if not self.view.alive:
            return False, None
        self.loading = False
        if not result.ok:
            self.view.fail(result.error)
            return False, None
        semantic = semantic_error_from_ok_response(result.data)
        if semantic:
            self.view.fail(NormalizedError(message=semantic, messages=[semantic], raw=result.data))
            return False, None
        return True, result.data

    async def load(self) -> bool:
        """Fetch the dashboard, then incoming invitations.

        Returns False when the dashboard failed or the view went away meanwhile.
        """
        if not self.guard():
            return False
        self.view.reset_messages()
        ok, body = await self._request(
            self.repo.dashboard, "Failed to load group information. Please try again."
        )
        if not ok:
            return False
        try:
            dashboard = parse_dashboard(body)
        except ValidationError as exc:
            self.view.fail(normalize_api_error(exc, "Failed to load group information. Please try again."))
            return False
        self.group = dashboard.group
        self.members.replace_all(dashboard.members)
        self.pending_invites = list(dashboard.pending_invites)
        await self.load_incoming()
        return self.view.alive

    async def load_incoming(self) -> None:
        self.incoming_loading = True
        result = await safe_api(self.repo.incoming_invites, "Failed to load incoming invitations.")
        if not self.view.alive:
            return
        self.incoming_loading = False
        # Incoming invitations are secondary; failures are logged, not shown.
        if not result.ok:
            logger.warning("incoming_invites_failed", error=result.error.message)
            return
        semantic = semantic_error_from_ok_response(result.data)
        if semantic:
            logger.warning("incoming_invites_semantic_error", error=semantic)
            return
        try:
            self.incoming.replace_all(parse_incoming(result.data))
        except ValidationError:
            logger.warning("incoming_invites_invalid_payload")

    async def _reload_then_flash(self, message: str) -> bool:
        await self.load()
        if not self.view.alive:
            return False
        self.view.flash.show(message)
        return True

    async def create_group(self, name: str, min_members: str | int, max_members: str | int) -> bool:
        if not self._claim("create"):
            return False
        try:
            self.view.reset_messages()
            try:
                name = name.strip()
                if not name:
                    raise ClientValidationError("Group name is required.")
                lower, upper = validate_group_bounds(
                    min_members, max_members, self.settings.group_min_members, self.settings.group_max_members
                )
            except ClientValidationError as exc:
                self.reject(exc)
                return False

            payload = GroupCreateRequest(name=name, min_members=lower, max_members=upper)
            ok, body = await self._request(
                lambda: self.repo.create(payload), "Failed to create group. Please try again."
            )
            if not ok:
                return False
            return await self._reload_then_flash(extract_success_message(body) or "Group created successfully.")
        finally:
            self._busy.discard("create")

    async def delete_group(self, confirm: ConfirmGate = None) -> bool:
        group = self.group
        if group is None or not self._claim("delete"):
            return False
        try:
            if not await confirmed(confirm) or not self.view.alive:
                return False
            self.view.reset_messages()
            ok, body = await self._request(
                lambda: self.repo.delete(group.id), "Failed to delete group. Please try again."
            )
            if not ok:
                return False
            self.group = None
            self.members.replace_all([])
            self.pending_invites = []
            self.view.flash.show(extract_success_message(body) or "Group deleted.")
            return True
        finally:
            self._busy.discard("delete")

    async def remove_member(self, member: GroupMember, confirm: ConfirmGate = None) -> MutationOutcome:
        group = self.group
        if group is None:
            return MutationOutcome.DECLINED

        def success(body: Any) -> str:
            return extract_success_message(body) or f"Member {member.username} has been removed from the group."

        return await self.member_controller.run(
            MutationRequest(
                label="remove_member",
                confirm=confirm,
                apply=lambda items: remove_entity(items, member.id),
                commit=lambda: self.repo.remove_member(group.id, member.id),
                success_message=success,
                failure_message="Failed to remove member. Please try again.",
            )
        )

    async def set_admin(self, member: GroupMember, confirm: ConfirmGate = None) -> bool:
        group = self.group
        if group is None or not self._claim("set_admin"):
            return False
        try:
            if not await confirmed(confirm) or not self.view.alive:
                return False
            self.view.reset_messages()
            ok, body = await self._request(
                lambda: self.repo.set_admin(group.id, member.id),
                "Failed to update group admin. Please try again.",
            )
            if not ok:
                return False
            try:
                self.group = GroupSummary.model_validate(body)
            except ValidationError:
                logger.info("set_admin_without_group_payload")
            return await self._reload_then_flash(
                extract_success_message(body) or f'"{member.username}" is now the group admin.'
            )
        finally:
            self._busy.discard("set_admin")

    async def search_users(self, query: str) -> list[UserSearchResult]:
        self.search_results = []
        cleaned = query.strip()
        if self.group is None or not cleaned:
            return []
        self.search_loading = True
        result = await safe_api(lambda: self.repo.search_users(cleaned), "Failed to search users.")
        if not self.view.alive:
            return []
        self.search_loading = False
        if not result.ok:
            logger.warning("user_search_failed", error=result.error.message)
            return []
        self.search_results = list(result.data)
        return self.search_results

    async def send_invite(self, user_id: int) -> bool:
        group = self.group
        if group is None or not self._claim("invite"):
            return False
        try:
            target = next((u for u in self.search_results if u.id == user_id), None)
            name = target.username if target is not None else f"user #{user_id}"
            self.view.reset_messages()
            ok, body = await self._request(
                lambda: self.repo.send_invite(group.id, user_id),
                "Failed to send invitation. Please try again.",
            )
            if not ok:
                return False
            return await self._reload_then_flash(extract_success_message(body) or f"Invitation sent to {name}.")
        finally:
            self._busy.discard("invite")

    async def accept_invite(self, invite_id: int) -> bool:
        if not self._claim("accept"):
            return False
        try:
            self.view.reset_messages()
            ok, body = await self._request(
                lambda: self.repo.accept_invite(invite_id), "Failed to accept invitation."
            )
            if not ok:
                return False
            return await self._reload_then_flash(
                extract_success_message(body) or "Invitation accepted. You joined the group."
            )
        finally:
            self._busy.discard("accept")

    async def decline_invite(self, invite_id: int) -> MutationOutcome:
        return await self.decline_controller.run(
            MutationRequest(
                label="decline_invite",
                apply=lambda items: remove_entity(items, invite_id),
                commit=lambda: self.repo.decline_invite(invite_id),
                success_message=lambda body: extract_success_message(body) or "Invitation declined.",
                failure_message="Failed to decline invitation.",
            )
        )
