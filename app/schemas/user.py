from datetime import datetime
from pydantic import BaseModel, EmailStr
from typing import Optional
from .common import ORMModel


class BalanceOut(ORMModel):
    stars: int = 0
    money: float = 0
    screen_time: int = 0


class UserOut(ORMModel):
    id: str
    email: EmailStr
    phone: Optional[str] = None
    role: str
    family_id: Optional[str] = None
    verified: bool
    is_active: bool
    created_at: datetime


class UserUpdate(BaseModel):
    phone: Optional[str] = None


class MeOut(UserOut):
    family_name: Optional[str] = None
    balance: Optional[BalanceOut] = None
