import math
from collections.abc import Sequence

from admin_client.schemas.reports import (
    ReportAggregates,
    ReportChallenge,
    ReportCriteria,
    ReportRow,
    SubmissionReport,
)


class ReportModel:
    """Index over one report snapshot."""

    def __init__(self, report: SubmissionReport):
        self.report = report
        self._by_id = {row.row_id: row for row in report.rows}
        self.unique_statuses = unique_statuses(report.rows)

    @property
    def challenge(self) -> ReportChallenge:
        return self.report.challenge

    @property
    def rows(self) -> list[ReportRow]:
        return self.report.rows

    @property
    def count(self) -> int:
        return self.report.count

    def get(self, row_id: str) -> ReportRow | None:
        return self._by_id.get(row_id)

    def __len__(self) -> int:
        return len(self._by_id)


def unique_statuses(rows: Sequence[ReportRow]) -> list[str]:
    seen: set[str] = set()
    for row in rows:
        for status in (row.summary.flag.latest_status, row.summary.procedure.latest_status):
            if status:
                seen.add(status)
    return sorted(seen)


def _row_matches(row: ReportRow, criteria: ReportCriteria, needle: str) -> bool:
    if criteria.entity_type is not None and row.entity_type != criteria.entity_type:
        return False
    if criteria.solution_type is not None and row.solution_type != criteria.solution_type:
        return False
    if criteria.status is not None:
        statuses = (row.summary.flag.latest_status, row.summary.procedure.latest_status)
        if criteria.status not in statuses:
            return False
    if needle and needle not in row.display_name.lower():
        return False
    return True


def filter_rows(rows: Sequence[ReportRow], criteria: ReportCriteria | None = None) -> list[ReportRow]:
    criteria = criteria or ReportCriteria()
    needle = (criteria.search_text or "").strip().lower()
    return [row for row in rows if _row_matches(row, criteria, needle)]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(values: list[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def aggregate_rows(rows: Sequence[ReportRow]) -> ReportAggregates:
    return ReportAggregates(
        count=len(rows),
        avgTotal=_mean([row.summary.total_score for row in rows]),
        flagAvg=_mean([row.summary.flag.best_score for row in rows]),
        procAvg=_mean([row.summary.procedure.best_score for row in rows]),
    )


class DetailSelector:
    def __init__(self) -> None:
        self.selected_id: str | None = None

    def select(self, row_id: str | None) -> None:
        self.selected_id = row_id or None

    def clear(self) -> None:
        self.selected_id = None

    def resolve(self, model: ReportModel | None) -> ReportRow | None:
        if self.selected_id is None or model is None:
            return None
        return model.get(self.selected_id)
