from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


IssueType = Literal["task", "bug", "story"]
IssueStatus = Literal["backlog", "selected", "inprogress", "done"]
ProjectCategory = Literal["software", "marketing", "business"]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    avatar_url: str | None
    project_id: int | None


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    body: str
    user_id: int
    issue_id: int
    created_at: datetime
    updated_at: datetime
    user: UserOut


class CommentCreate(BaseModel):
    issue_id: int
    body: str


class CommentPatch(BaseModel):
    body: str


class IssueBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    type: str
    status: str
    priority: int
    list_position: float
    reporter_id: int
    project_id: int
    user_ids: list[int]
    created_at: datetime
    updated_at: datetime


class IssueOut(IssueBrief):
    description: str | None
    description_text: str | None
    estimate: int | None
    time_spent: int | None
    time_remaining: int | None
    users: list[UserOut]
    comments: list[CommentOut]


class IssueCreate(BaseModel):
    title: str
    type: IssueType = "task"
    status: IssueStatus = "backlog"
    priority: int = 3
    description: str | None = None
    estimate: int | None = None
    time_spent: int | None = None
    time_remaining: int | None = None
    reporter_id: int | None = None
    user_ids: list[int] = Field(default_factory=list)


class IssuePatch(BaseModel):
    title: str | None = None
    type: IssueType | None = None
    status: IssueStatus | None = None
    priority: int | None = None
    list_position: float | None = None
    description: str | None = None
    estimate: int | None = None
    time_spent: int | None = None
    time_remaining: int | None = None
    reporter_id: int | None = None
    user_ids: list[int] | None = None


class IssueReorder(BaseModel):
    status: IssueStatus
    destination_index: int


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    url: str | None
    description: str | None
    category: str
    created_at: datetime
    updated_at: datetime


class ProjectDetail(ProjectOut):
    users: list[UserOut]
    issues: list[IssueBrief]


class ProjectPatch(BaseModel):
    name: str | None = None
    url: str | None = None
    description: str | None = None
    category: ProjectCategory | None = None


class BoardOut(BaseModel):
    project_id: int
    columns: dict[str, list[IssueBrief]]
