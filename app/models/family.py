from typing import TYPE_CHECKING
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db.base_class import Base
from . import utcnow

if TYPE_CHECKING:
    from .user import User
    from .task import Task

class Family(Base):
    # family_id doubles as the join code handed out to relatives
    family_id: Mapped[str] = mapped_column(String(12), primary_key=True)
    family_name: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    members: Mapped[list["User"]] = relationship(back_populates="family", order_by="User.created_at")
    tasks: Mapped[list["Task"]] = relationship(back_populates="family", cascade="all,delete-orphan")
