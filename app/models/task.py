from typing import TYPE_CHECKING, Optional
from enum import StrEnum
from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import uuid4

from ..db.base_class import Base
from . import utcnow

if TYPE_CHECKING:
    from .family import Family
    from .user import User
    from .balance import TaskHistory

class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"      # waiting for a parent's review
    CONFIRMED = "confirmed"
    REJECTED = "rejected"

class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

# status -> statuses it may move to
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED}),
    TaskStatus.COMPLETED: frozenset({TaskStatus.CONFIRMED, TaskStatus.REJECTED}),
    TaskStatus.CONFIRMED: frozenset(),
    TaskStatus.REJECTED: frozenset({TaskStatus.IN_PROGRESS}),
}

class Task(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    family_id: Mapped[str] = mapped_column(String(12), ForeignKey("family.family_id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    priority: Mapped[TaskPriority] = mapped_column(default=TaskPriority.MEDIUM, nullable=False)
    status: Mapped[TaskStatus] = mapped_column(default=TaskStatus.PENDING, index=True, nullable=False)
    assigned_to_id: Mapped[str] = mapped_column(String(36), ForeignKey("user.id", ondelete="CASCADE"), index=True)
    assigned_by_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("user.id", ondelete="SET NULL"))

    reward_stars: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reward_money: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    reward_screen_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    due_date: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True))
    proof_url: Mapped[str | None] = mapped_column(String(512))
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    started_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True))
    confirmed_at: Mapped["DateTime | None"] = mapped_column(DateTime(timezone=True))
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    family: Mapped["Family"] = relationship(back_populates="tasks")
    assigned_to: Mapped["User"] = relationship(foreign_keys=[assigned_to_id])
    assigned_by: Mapped[Optional["User"]] = relationship(foreign_keys=[assigned_by_id])
    history: Mapped[list["TaskHistory"]] = relationship(
        back_populates="task", cascade="all,delete-orphan", order_by="TaskHistory.created_at"
    )

    @property
    def reward(self) -> dict:
        return {
            "stars": self.reward_stars,
            "money": self.reward_money,
            "screen_time": self.reward_screen_time,
        }

    @property
    def family_name(self) -> str | None:
        return self.family.family_name if self.family else None

    def can_move_to(self, target: TaskStatus) -> bool:
        return target in TRANSITIONS[self.status]
