from typing import Any

from pydantic import BaseModel, ConfigDict


class CategoryRef(BaseModel):
    id: int | None = None
    name: str = ""


class DifficultyRef(BaseModel):
    id: int | None = None
    level: str = ""


class Challenge(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    title: str
    description: str | None = None
    category: CategoryRef | None = None
    difficulty: DifficultyRef | None = None
    solution_type: str | None = None
    group_only: bool = False

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else ""

    @property
    def difficulty_level(self) -> str:
        return self.difficulty.level if self.difficulty else ""


class ChallengePatchRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    category: int | None = None
    difficulty: int | None = None
    solution_type: str | None = None
    group_only: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
