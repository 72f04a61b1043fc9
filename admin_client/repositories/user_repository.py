from typing import Any

from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.users import AdminInviteRequest, AdminUser, UserPatchRequest

USER_BASE = "api/users/"
ADMIN_INVITE_BASE = "api/users/admin-invite"


class UserRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list_users(self) -> list[AdminUser]:
        res = await self.client.get(USER_BASE)
        rows = res.data if isinstance(res.data, list) else []
        return [AdminUser.model_validate(row) for row in rows]

    async def update(self, user_id: int, payload: UserPatchRequest) -> Any:
        res = await self.client.patch(f"{USER_BASE}{user_id}/", json=payload.model_dump(exclude_none=True))
        return res.data

    async def delete(self, user_id: int) -> Any:
        res = await self.client.delete(f"{USER_BASE}{user_id}/")
        return res.data

    async def invite_admin(self, payload: AdminInviteRequest) -> Any:
        res = await self.client.post(f"{ADMIN_INVITE_BASE}/generate/", json=payload.model_dump())
        return res.data
