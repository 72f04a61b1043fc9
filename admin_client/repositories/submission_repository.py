from typing import Any

from admin_client.core.constants import SubmissionKind
from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.submissions import AdminSubmission

SUBMISSION_PATHS = {
    SubmissionKind.FLAG: "submissions/flag-submissions",
    SubmissionKind.TEXT: "submissions/text-submissions",
}


class SubmissionRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def list_for_kind(self, kind: SubmissionKind) -> list[AdminSubmission]:
        res = await self.client.get(SUBMISSION_PATHS[kind])
        rows = res.data if isinstance(res.data, list) else []
        return [AdminSubmission.model_validate({**row, "type": kind}) for row in rows]

    async def delete(self, submission_id: int, kind: SubmissionKind) -> Any:
        res = await self.client.delete(f"{SUBMISSION_PATHS[kind]}/{submission_id}/")
        return res.data
