from typing import Any

from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.groups import (
    AdminGroup,
    GroupCreateRequest,
    GroupDashboard,
    IncomingInvite,
    UserSearchResult,
)

ADMIN_GROUPS_BASE = "users/groups/"
MY_GROUPS_BASE = "api/users/groups/"


class GroupRepository:
    """Admin-wide group endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def list_groups(self) -> list[AdminGroup]:
        res = await self.client.get(ADMIN_GROUPS_BASE)
        rows = res.data if isinstance(res.data, list) else []
        return [AdminGroup.model_validate(row) for row in rows]

    async def delete(self, group_id: int) -> Any:
        res = await self.client.delete(f"{ADMIN_GROUPS_BASE}{group_id}/")
        return res.data

    async def remove_member(self, group_id: int, user_id: int) -> Any:
        res = await self.client.post(f"{ADMIN_GROUPS_BASE}{group_id}/remove-member/", json={"user_id": user_id})
        return res.data


class MyGroupRepository:
    """Endpoints acting on the signed-in user's own group."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def dashboard(self) -> Any:
        res = await self.client.get(f"{MY_GROUPS_BASE}me/dashboard/")
        return res.data

    async def incoming_invites(self) -> Any:
        res = await self.client.get(f"{MY_GROUPS_BASE}me/invitations/")
        return res.data

    async def create(self, payload: GroupCreateRequest) -> Any:
        res = await self.client.post(MY_GROUPS_BASE, json=payload.model_dump())
        return res.data

    async def delete(self, group_id: int) -> Any:
        res = await self.client.delete(f"{MY_GROUPS_BASE}{group_id}/")
        return res.data

    async def search_users(self, query: str) -> list[UserSearchResult]:
        if not query.strip():
            return []
        res = await self.client.get(f"{MY_GROUPS_BASE}search-users/", params={"q": query})
        rows = res.data if isinstance(res.data, list) else []
        return [UserSearchResult.model_validate(row) for row in rows]

    async def send_invite(self, group_id: int, user_id: int) -> Any:
        res = await self.client.post(f"{MY_GROUPS_BASE}{group_id}/invitations/", json={"user_id": user_id})
        return res.data

    async def remove_member(self, group_id: int, user_id: int) -> Any:
        res = await self.client.post(f"{MY_GROUPS_BASE}{group_id}/remove-member/", json={"user_id": user_id})
        return res.data

    async def set_admin(self, group_id: int, user_id: int) -> Any:
        res = await self.client.post(f"{MY_GROUPS_BASE}{group_id}/set-admin/", json={"user_id": user_id})
        return res.data

    async def accept_invite(self, invite_id: int) -> Any:
        res = await self.client.post(f"{MY_GROUPS_BASE}invitations/{invite_id}/accept/")
        return res.data

    async def decline_invite(self, invite_id: int) -> Any:
        res = await self.client.post(f"{MY_GROUPS_BASE}invitations/{invite_id}/decline/")
        return res.data


def parse_dashboard(body: Any) -> GroupDashboard:
    return GroupDashboard.model_validate(body or {})


def parse_incoming(body: Any) -> list[IncomingInvite]:
    rows = body if isinstance(body, list) else []
    return [IncomingInvite.model_validate(row) for row in rows]
