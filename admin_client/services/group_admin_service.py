from typing import Any

from admin_client.core.constants import MutationOutcome
from admin_client.integrations.http.client import ApiClient
from admin_client.repositories.group_repository import GroupRepository
from admin_client.schemas.common import CurrentUser
from admin_client.schemas.groups import AdminGroup
from admin_client.services.error_service import extract_success_message, safe_api
from admin_client.services.mutation_service import (
    EntityStore,
    MutationRequest,
    remove_entity,
    update_entity,
)
from admin_client.services.screen_service import AdminScreen, ConfirmGate

# remove-member acknowledges success with {"detail": "..."}
ACK_SEMANTIC_KEYS = ("error",)


def _without_member(group: AdminGroup, user_id: int) -> AdminGroup:
    members = [m for m in group.members if m.user_id != user_id]
    return group.model_copy(
        update={"members": members, "members_count": max(0, group.members_count - 1)}
    )


class GroupAdminService(AdminScreen):
    def __init__(self, client: ApiClient, user: CurrentUser | None):
        super().__init__(client, user)
        self.repo = GroupRepository(client)
        self.groups: EntityStore[int, AdminGroup] = EntityStore(lambda g: g.id)
        self.delete_controller = self.controller(self.groups, "groups.delete")
        self.member_controller = self.controller(self.groups, "groups.remove_member")

    async def load(self) -> None:
        if not self.guard():
            return
        self.loading = True
        self.view.error = None
        result = await safe_api(self.repo.list_groups, "Failed to load groups. Please try again.")
        if not self.view.alive:
            return
        self.loading = False
        if not result.ok:
            self.view.fail(result.error)
            return
        self.groups.replace_all(result.data)

    def filtered(self, search: str = "", only_non_empty: bool = False) -> list[AdminGroup]:
        needle = search.strip().lower()
        out = []
        for g in self.groups.values():
            if only_non_empty and (g.members_count or 0) <= 0:
                continue
            if needle:
                name_match = needle in g.name.lower()
                id_match = needle in str(g.id)
                member_match = any(needle in m.username.lower() for m in g.members)
                if not (name_match or id_match or member_match):
                    continue
            out.append(g)
        return out

    async def delete_group(self, group: AdminGroup, confirm: ConfirmGate = None) -> MutationOutcome:
        return await self.delete_controller.run(
            MutationRequest(
                label="delete_group",
                confirm=confirm,
                apply=lambda items: remove_entity(items, group.id),
                commit=lambda: self.repo.delete(group.id),
                success_message=f'Group "{group.name}" has been deleted.',
                failure_message="Failed to delete group. Please try again.",
                semantic_keys=ACK_SEMANTIC_KEYS,
            )
        )

    async def remove_member(
        self, group: AdminGroup, user_id: int, username: str, confirm: ConfirmGate = None
    ) -> MutationOutcome:
        def success(body: Any) -> str:
            return extract_success_message(body) or f"Removed {username} from {group.name}."

        return await self.member_controller.run(
            MutationRequest(
                label="remove_member",
                confirm=confirm,
                apply=lambda items: update_entity(items, group.id, lambda g: _without_member(g, user_id)),
                commit=lambda: self.repo.remove_member(group.id, user_id),
                success_message=success,
                failure_message="Failed to remove member. Please try again.",
                semantic_keys=ACK_SEMANTIC_KEYS,
            )
        )
