from typing import Any

from admin_client.core.constants import MutationOutcome
from admin_client.integrations.http.client import ApiClient
from admin_client.repositories.challenge_repository import ChallengeRepository
from admin_client.schemas.challenges import Challenge, ChallengePatchRequest
from admin_client.schemas.common import CurrentUser
from admin_client.services.error_service import safe_api
from admin_client.services.mutation_service import (
    EntityStore,
    MutationRequest,
    remove_entity,
    update_entity,
)
from admin_client.services.screen_service import AdminScreen, ConfirmGate
from admin_client.utils.pagination import page_count, paginate

PAGE_SIZE = 10


def _parse_challenge(body: Any) -> Challenge | None:
    return Challenge.model_validate(body) if isinstance(body, dict) and "id" in body else None


class ChallengeAdminService(AdminScreen):
    def __init__(self, client: ApiClient, user: CurrentUser | None, page_size: int = PAGE_SIZE):
        super().__init__(client, user)
        self.repo = ChallengeRepository(client)
        self.page_size = page_size
        self.challenges: EntityStore[int, Challenge] = EntityStore(lambda c: c.id)
        self.delete_controller = self.controller(self.challenges, "challenges.delete")
        self.update_controller = self.controller(self.challenges, "challenges.update")

    async def load(self, category: str | None = None, difficulty: str | None = None) -> None:
        if not self.guard():
            return
        self.loading = True
        self.view.error = None
        result = await safe_api(
            lambda: self.repo.list_challenges(category, difficulty),
            "Failed to load practice challenges. Please try again.",
        )
        if not self.view.alive:
            return
        self.loading = False
        if not result.ok:
            self.view.fail(result.error)
            return
        self.challenges.replace_all(result.data)

    def filtered(self, search: str = "", category: str = "", difficulty: str = "") -> list[Challenge]:
        needle = search.strip().lower()
        out = []
        for c in self.challenges.values():
            if category and c.category_name != category:
                continue
            if difficulty and c.difficulty_level != difficulty:
                continue
            if needle and not any(
                needle in text.lower() for text in (c.title, c.description or "", c.category_name)
            ):
                continue
            out.append(c)
        return out

    def page(self, page: int = 1, **filters: str) -> tuple[list[Challenge], int]:
        rows = self.filtered(**filters)
        return paginate(rows, page, self.page_size), page_count(len(rows), self.page_size)

    async def delete(self, challenge: Challenge, confirm: ConfirmGate = None) -> MutationOutcome:
        return await self.delete_controller.run(
            MutationRequest(
                label="delete",
                confirm=confirm,
                apply=lambda items: remove_entity(items, challenge.id),
                commit=lambda: self.repo.delete(challenge.id),
                success_message="Challenge deleted.",
                failure_message="Failed to delete challenge. Please try again.",
            )
        )

    async def update(self, challenge_id: int, changes: ChallengePatchRequest) -> MutationOutcome:
        patch = changes.changes()

        def apply(items):
            return update_entity(items, challenge_id, lambda c: c.model_copy(update=_local_fields(patch)))

        return await self.update_controller.run(
            MutationRequest(
                label="update",
                apply=apply,
                commit=lambda: self.repo.update(challenge_id, changes),
                to_entity=_parse_challenge,
                success_message="Challenge updated.",
                failure_message="Failed to update challenge. Please try again.",
            )
        )


def _local_fields(patch: dict[str, Any]) -> dict[str, Any]:
    # category/difficulty travel as ids; the nested refs come back with the canonical entity.
    return {k: v for k, v in patch.items() if k not in ("category", "difficulty")}
