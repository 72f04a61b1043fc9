from typing import Literal

from pydantic import BaseModel, Field


class AdminGroupMember(BaseModel):
    user_id: int
    username: str
    joined_date: str | None = None
    is_admin: bool = False


class AdminGroup(BaseModel):
    id: int
    name: str
    members_count: int = 0
    members: list[AdminGroupMember] = Field(default_factory=list)


class GroupSummary(BaseModel):
    id: int
    name: str
    min_members: int
    max_members: int
    is_admin: bool = False


class GroupMember(BaseModel):
    id: int
    username: str
    email: str = ""
    is_admin: bool = False


class InvitedUser(BaseModel):
    id: int
    username: str
    email: str = ""


class GroupInvite(BaseModel):
    id: int
    user: InvitedUser
    status: Literal["pending", "accepted", "declined", "expired"]


class GroupDashboard(BaseModel):
    group: GroupSummary | None = None
    members: list[GroupMember] = Field(default_factory=list)
    pending_invites: list[GroupInvite] = Field(default_factory=list)


class InviteGroupRef(BaseModel):
    id: int
    name: str


class InviteSender(BaseModel):
    id: int
    username: str


class IncomingInvite(BaseModel):
    id: int
    status: str
    group: InviteGroupRef
    invited_by: InviteSender | None = None


class UserSearchResult(BaseModel):
    id: int
    username: str
    email: str = ""


class GroupCreateRequest(BaseModel):
    name: str
    min_members: int
    max_members: int
