from admin_client.integrations.http.client import ApiClient
from admin_client.schemas.reports import ReportGenerateRequest, SubmissionReport

REPORT_PATH = "api/challenges/report/"


class ReportRepository:
    def __init__(self, client: ApiClient):
        self.client = client

    async def generate(self, request: ReportGenerateRequest) -> SubmissionReport:
        res = await self.client.post(REPORT_PATH, json=request.model_dump(by_alias=True, exclude_none=True))
        return SubmissionReport.model_validate(res.data)
