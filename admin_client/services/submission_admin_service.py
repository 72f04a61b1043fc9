import asyncio

from admin_client.core.constants import MutationOutcome, SubmissionKind
from admin_client.integrations.http.client import ApiClient
from admin_client.repositories.submission_repository import SubmissionRepository
from admin_client.schemas.common import CurrentUser
from admin_client.schemas.submissions import AdminSubmission
from admin_client.services.error_service import safe_api
from admin_client.services.mutation_service import EntityStore, MutationRequest, remove_entity
from admin_client.services.screen_service import AdminScreen, ConfirmGate


class SubmissionAdminService(AdminScreen):
    def __init__(self, client: ApiClient, user: CurrentUser | None):
        super().__init__(client, user)
        self.repo = SubmissionRepository(client)
        self.submissions: EntityStore[tuple[str, int], AdminSubmission] = EntityStore(lambda s: s.key)
        self.delete_controller = self.controller(self.submissions, "submissions.delete")

    async def _fetch_all(self) -> list[AdminSubmission]:
        flags, texts = await asyncio.gather(
            self.repo.list_for_kind(SubmissionKind.FLAG),
            self.repo.list_for_kind(SubmissionKind.TEXT),
        )
        return [*flags, *texts]

    async def load(self) -> None:
        if not self.guard():
            return
        self.loading = True
        self.view.error = None
        result = await safe_api(self._fetch_all, "Failed to load submissions.")
        if not self.view.alive:
            return
        self.loading = False
        if not result.ok:
            self.view.fail(result.error)
            return
        self.submissions.replace_all(result.data)

    def statuses(self) -> list[str]:
        return sorted({s.status.status for s in self.submissions.values()})

    def filtered(
        self,
        search: str = "",
        kind: SubmissionKind | None = None,
        status: str | None = None,
    ) -> list[AdminSubmission]:
        needle = search.strip().lower()
        out = []
        for s in self.submissions.values():
            if kind is not None and s.type != kind:
                continue
            if status and status != "ALL" and s.status.status != status:
                continue
            if needle and not any(
                needle in text.lower() for text in (s.user.username, s.user.email, s.challenge.title)
            ):
                continue
            out.append(s)
        return out

    async def delete(self, submission: AdminSubmission, confirm: ConfirmGate = None) -> MutationOutcome:
        return await self.delete_controller.run(
            MutationRequest(
                label="delete",
                confirm=confirm,
                apply=lambda items: remove_entity(items, submission.key),
                commit=lambda: self.repo.delete(submission.id, submission.type),
                success_message="Deleted.",
                failure_message="Failed to delete submission. Please try again.",
            )
        )
