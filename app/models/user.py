from typing import TYPE_CHECKING, Optional
from enum import StrEnum
from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from uuid import uuid4
from ..db.base_class import Base
from . import utcnow

if TYPE_CHECKING:
    from .family import Family
    from .auth import RefreshToken
    from .balance import UserBalance

class UserRole(StrEnum):
    PARENT = "parent"
    CHILD = "child"
    # kinship variants offered at signup
    GUARDIAN = "guardian"
    UNCLE = "uncle"
    AUNT = "aunt"
    BROTHER = "brother"
    SISTER = "sister"

class User(Base):
    __tablename__ = "user"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(default=UserRole.PARENT, nullable=False)
    family_id: Mapped[Optional[str]] = mapped_column(String(12), ForeignKey("family.family_id", ondelete="SET NULL"), index=True)
    requested_family_code: Mapped[Optional[str]] = mapped_column(String(12))
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped["DateTime"] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    family: Mapped[Optional["Family"]] = relationship(back_populates="members")
    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(back_populates="user", cascade="all,delete-orphan")
    balance: Mapped[Optional["UserBalance"]] = relationship(back_populates="user", uselist=False, cascade="all,delete-orphan")

    @property
    def is_parent(self) -> bool:
        return self.role == UserRole.PARENT
