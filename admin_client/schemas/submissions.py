from pydantic import BaseModel

from admin_client.core.constants import SubmissionKind


class SubmissionUser(BaseModel):
    id: int
    username: str
    email: str = ""


class SubmissionChallenge(BaseModel):
    id: int
    title: str


class SubmissionContest(BaseModel):
    id: int
    name: str


class SubmissionStatusOut(BaseModel):
    status: str
    description: str = ""


class AdminSubmission(BaseModel):
    id: int
    type: SubmissionKind
    user: SubmissionUser
    challenge: SubmissionChallenge
    contest: SubmissionContest | None = None
    status: SubmissionStatusOut
    submitted_at: str
    value: str | None = None
    content: str | None = None

    @property
    def key(self) -> tuple[str, int]:
        # Flag and text submissions share an id space on the list screen.
        return (self.type.value, self.id)
