from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from .common import ORMModel
from ..models.task import TaskPriority, TaskStatus
class Reward(BaseModel):
    stars: int = Field(default=0, ge=0)
    money: float = Field(default=0, ge=0)
    screen_time: int = Field(default=0, ge=0)  # minutes
class TaskCreate(BaseModel):
    title: str = Field(max_length=200)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to_id: str
    due_date: datetime | None = None
    reward: Reward = Reward()

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v
class TaskUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    reward: Reward | None = None
class RejectIn(BaseModel):
    reason: str
class UserBrief(ORMModel):
    id: str
    email: str
    role: str
class TaskOut(ORMModel):
    id: str
    family_id: str
    title: str
    description: str | None = None
    priority: TaskPriority
    status: TaskStatus
    assigned_to_id: str
    assigned_by_id: str | None = None
    reward: Reward
    due_date: datetime | None = None
    proof_url: str | None = None
    rejection_reason: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    confirmed_at: datetime | None = None
    created_at: datetime
class TaskDetailOut(TaskOut):
    assigned_to: UserBrief | None = None
    assigned_by: UserBrief | None = None
    family_name: str | None = None
class HistoryOut(ORMModel):
    id: str
    task_id: str
    actor_id: str | None = None
    from_status: TaskStatus | None = None
    to_status: TaskStatus
    note: str | None = None
    created_at: datetime
