from typing import TYPE_CHECKING
from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import uuid4

from .task import TaskStatus
from ..db.base_class import Base
from . import utcnow

if TYPE_CHECKING:
    from .user import User
    from .task import Task

class UserBalance(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("user.id", ondelete="CASCADE"), unique=True, index=True)
    stars: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    money: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0, nullable=False)
    screen_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    user: Mapped["User"] = relationship(back_populates="balance")

class TaskHistory(Base):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id: Mapped[str] = mapped_column(String(36), ForeignKey("task.id", ondelete="CASCADE"), index=True)
    actor_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("user.id", ondelete="SET NULL"))
    from_status: Mapped[TaskStatus | None] = mapped_column()
    to_status: Mapped[TaskStatus] = mapped_column(nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    task: Mapped["Task"] = relationship(back_populates="history")
