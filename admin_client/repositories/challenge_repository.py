from typing import Any

from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.challenges import Challenge, ChallengePatchRequest

CHALLENGES_BASE = "api/challenges/challenges"


class ChallengeRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list_challenges(self, category: str | None = None, difficulty: str | None = None) -> list[Challenge]:
        params = {key: value for key, value in {"category": category, "difficulty": difficulty}.items() if value}
        res = await self.client.get(CHALLENGES_BASE, params=params or None)
        rows = res.data if isinstance(res.data, list) else []
        return [Challenge.model_validate(row) for row in rows]

    async def update(self, challenge_id: int, payload: ChallengePatchRequest) -> Any:
        res = await self.client.patch(f"{CHALLENGES_BASE}/{challenge_id}/", json=payload.changes())
        return res.data

    async def delete(self, challenge_id: int) -> Any:
        res = await self.client.delete(f"api/challenges/{challenge_id}/")
        return res.data
