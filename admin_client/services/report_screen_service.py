from datetime import UTC, date, datetime
from typing import Any

import structlog

from admin_client.core.config import get_settings
from admin_client.core.constants import ReportState
from admin_client.core.exceptions import ClientValidationError
from admin_client.integrations.http.client import ApiClient
from admin_client.repositories.report_repository import ReportRepository
from admin_client.schemas.common import CurrentUser
from admin_client.schemas.reports import ReportCriteria, ReportGenerateRequest, ReportViewModel
from admin_client.services.error_service import safe_api
from admin_client.services.report_service import DetailSelector, ReportModel, aggregate_rows, filter_rows
from admin_client.services.screen_service import AdminScreen
from admin_client.utils.dates import day_end_iso, day_start_iso
from admin_client.utils.validation import parse_challenge_id, parse_date_range

logger = structlog.get_logger()


class ReportScreen(AdminScreen):
    """Generate-report page.

    States: IDLE (no report) -> GENERATING -> READY. A failed generate falls
    back to IDLE only when no report was shown before; otherwise the previous
    report stays on screen with the error over it.
    """

    def __init__(self, client: ApiClient, user: CurrentUser | None):
        settings = get_settings()
        super().__init__(client, user, flash_ttl=settings.report_flash_ttl_seconds)
        self.settings = settings
        self.repo = ReportRepository(client)
        self.model: ReportModel | None = None
        self.criteria = ReportCriteria()
        self.selector = DetailSelector()
        self.state = ReportState.IDLE
        self.generated_at: datetime | None = None
        self._busy = False

    async def generate(
        self,
        challenge_id: int | str | None,
        date_from: str | date | None = None,
        date_to: str | date | None = None,
    ) -> bool:
        if not self.guard():
            return False
        if self._busy:
            return False
        self.view.reset_messages()
        try:
            parsed_id = parse_challenge_id(challenge_id)
            start, end = parse_date_range(date_from, date_to)
        except ClientValidationError as exc:
            self.reject(exc)
            return False

        self._busy = True

        request = ReportGenerateRequest(
            challenge_id=parsed_id,
            date_from=day_start_iso(start),
            date_to=day_end_iso(end),
        )
        self.state = ReportState.GENERATING
        self.view.flash.show("Generating report…", ttl=self.settings.report_progress_ttl_seconds)
        try:
            result = await safe_api(lambda: self.repo.generate(request), "Failed to generate report.")
        finally:
            self._busy = False

        if not self.view.alive:
            return False
        if not result.ok:
            self.state = ReportState.READY if self.model is not None else ReportState.IDLE
            self.view.fail(result.error)
            return False

        self.model = ReportModel(result.data)
        self.generated_at = datetime.now(UTC)
        self.state = ReportState.READY
        self.view.flash.show("Report generated.")
        logger.info("report_generated", challenge_id=parsed_id, rows=len(self.model))
        return True

    def set_filter(self, criteria: ReportCriteria | None = None, **changes: Any) -> ReportCriteria:
        base = criteria if criteria is not None else self.criteria
        if changes:
            base = ReportCriteria.model_validate({**base.model_dump(), **changes})
        self.criteria = base
        return self.criteria

    def clear_filters(self) -> None:
        self.criteria = ReportCriteria()

    def select(self, row_id: str | None) -> None:
        self.selector.select(row_id)

    def close_detail(self) -> None:
        self.selector.clear()

    @property
    def is_loading(self) -> bool:
        return self.state == ReportState.GENERATING

    def view_model(self) -> ReportViewModel:
        rows = filter_rows(self.model.rows, self.criteria) if self.model else []
        return ReportViewModel(
            state=self.state,
            challenge=self.model.challenge if self.model else None,
            rows=rows,
            total=len(rows),
            aggregates=aggregate_rows(rows),
            uniqueStatuses=list(self.model.unique_statuses) if self.model else [],
            selectedRowDetail=self.selector.resolve(self.model),
            isLoading=self.is_loading,
            error=self.view.error,
            message=self.view.message,
            generatedAt=self.generated_at,
        )
