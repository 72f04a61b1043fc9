import asyncio
import time
from collections.abc import Callable
from typing import Any

import httpx
import jwt
import pytest

from admin_client.integrations.http.base import TokenStore
from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.common import CurrentUser

SIGNING_KEY = "local-test-signing-key-0123456789abcdef"


class FakeBackend:
    """httpx mock handler: routes by (method, path) and records every call."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json: Any = None, text: str | None = None) -> None:
        if text is not None:
            self.routes[(method, path)] = lambda request: httpx.Response(status, text=text)
        else:
            self.routes[(method, path)] = lambda request: httpx.Response(status, json=json)

    def handle(self, method: str, path: str, fn: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = fn

    def paths(self, method: str | None = None) -> list[str]:
        return [r.url.path for r in self.calls if method is None or r.method == method]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        await asyncio.sleep(self.delay)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        return route(request)


def make_token(role: str = "admin", user_id: int = 1, username: str = "admin", expires_in: int = 3600) -> str:
    payload = {
        "user_id": user_id,
        "username": username,
        "email": f"{username}@example.com",
        "role": role,
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(payload, SIGNING_KEY, algorithm="HS256")


def make_row(
    row_id: str,
    entity_type: str = "user",
    name: str = "alice",
    solution_type: str = "flag",
    total: float = 0,
    flag_best: float = 0,
    proc_best: float = 0,
    flag_status: str | None = None,
    proc_status: str | None = None,
) -> dict[str, Any]:
    entity = {"id": 1, "username": name} if entity_type == "user" else {"id": 1, "name": name}
    return {
        "row_id": row_id,
        "entity_type": entity_type,
        "entity": entity,
        "solution_type": solution_type,
        "summary": {
            "flag": {"best_score": flag_best, "latest_status": flag_status, "latest_submitted_at": None},
            "procedure": {"best_score": proc_best, "latest_status": proc_status, "latest_submitted_at": None},
            "total_score": total,
            "date": "2024-03-01",
        },
        "see_more": {"correct_solution": None, "attempts": {"flag": [], "procedure": []}},
    }


def make_report(rows: list[dict[str, Any]], challenge_id: int = 7) -> dict[str, Any]:
    return {
        "challenge": {"id": challenge_id, "title": "Buffer Overflow 101", "solution_type": "flag", "group_only": False},
        "count": len(rows),
        "rows": rows,
    }


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client_for() -> Callable[..., ApiClient]:
    def build(backend: FakeBackend, tokens: TokenStore | None = None) -> ApiClient:
        return ApiClient(tokens=tokens, transport=httpx.MockTransport(backend))

    return build


@pytest.fixture
def admin_user() -> CurrentUser:
    return CurrentUser(user_id=1, username="admin", email="admin@example.com", role="admin")


@pytest.fixture
def student_user() -> CurrentUser:
    return CurrentUser(user_id=2, username="student", email="student@example.com", role="student")
