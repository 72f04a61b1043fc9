from pydantic import BaseModel


class AdminUser(BaseModel):
    id: int
    username: str
    email: str = ""
    role_name: str | None = None
    is_active: bool = True
    date_joined: str | None = None
    last_login: str | None = None


class UserPatchRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    is_active: bool | None = None


class AdminInviteRequest(BaseModel):
    email: str
    username: str
