from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from admin_client.core.constants import AttemptType, EntityType, ReportState, SolutionType
from admin_client.schemas.common import NormalizedError


class ReportChallenge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str = ""
    solution_type: str | None = None
    group_only: bool = False


class UserEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    id: int | None = None
    username: str = ""

    @property
    def display_name(self) -> str:
        return self.username


class GroupEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["group"] = "group"
    id: int | None = None
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name


ReportEntity = Annotated[UserEntity | GroupEntity, Field(discriminator="kind")]


class ScoreSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    best_score: float = 0
    latest_status: str | None = None
    latest_submitted_at: str | None = None


class RowSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    flag: ScoreSummary = Field(default_factory=ScoreSummary)
    procedure: ScoreSummary = Field(default_factory=ScoreSummary)
    total_score: float = 0
    date: str | None = None


class SubmittedBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    username: str | None = None


class Attempt(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: AttemptType
    submitted_at: str | None = None
    status: str | None = None
    score: float = 0
    submitted_value: str | None = None
    submitted_content: str | None = None
    submitted_by: SubmittedBy | None = None


class RowAttempts(BaseModel):
    model_config = ConfigDict(frozen=True)

    flag: list[Attempt] = Field(default_factory=list)
    procedure: list[Attempt] = Field(default_factory=list)


class RowDetail(BaseModel):
    model_config = ConfigDict(frozen=True)

    correct_solution: Any = None
    attempts: RowAttempts = Field(default_factory=RowAttempts)


class ReportRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    row_id: str
    entity_type: EntityType
    entity: ReportEntity
    solution_type: SolutionType
    summary: RowSummary = Field(default_factory=RowSummary)
    see_more: RowDetail = Field(default_factory=RowDetail)

    @model_validator(mode="before")
    @classmethod
    def tag_entity(cls, data: Any) -> Any:
        # The server only tags the entity through its sibling entity_type.
        if isinstance(data, dict) and isinstance(data.get("entity"), dict):
            entity = dict(data["entity"])
            entity["kind"] = str(data.get("entity_type", ""))
            data = {**data, "entity": entity}
        return data

    @model_validator(mode="after")
    def entity_matches_type(self) -> "ReportRow":
        if self.entity.kind != self.entity_type.value:
            raise ValueError(f"entity kind {self.entity.kind!r} does not match entity_type")
        return self

    @property
    def display_name(self) -> str:
        return self.entity.display_name


class SubmissionReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    challenge: ReportChallenge
    count: int = 0
    rows: list[ReportRow] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_row_ids(self) -> "SubmissionReport":
        seen: set[str] = set()
        for row in self.rows:
            if row.row_id in seen:
                raise ValueError(f"duplicate row_id {row.row_id!r} in report")
            seen.add(row.row_id)
        return self


class ReportGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    challenge_id: int = Field(gt=0)
    date_from: str | None = Field(default=None, alias="from")
    date_to: str | None = Field(default=None, alias="to")


class ReportCriteria(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_type: EntityType | None = None
    solution_type: SolutionType | None = None
    status: str | None = None
    search_text: str | None = None

    @field_validator("entity_type", "solution_type", "status", mode="before")
    @classmethod
    def all_means_unset(cls, value: Any) -> Any:
        if value in ("", "ALL"):
            return None
        return value


class ReportAggregates(BaseModel):
    count: int = 0
    avgTotal: int = 0
    flagAvg: int = 0
    procAvg: int = 0


class ReportViewModel(BaseModel):
    state: ReportState
    challenge: ReportChallenge | None
    rows: list[ReportRow]
    total: int
    aggregates: ReportAggregates
    uniqueStatuses: list[str]
    selectedRowDetail: ReportRow | None
    isLoading: bool
    error: NormalizedError | None
    message: str | None
    generatedAt: datetime | None
