from datetime import datetime
from .common import ORMModel
from .user import BalanceOut
class MemberOut(ORMModel):
    id: str
    email: str
    phone: str | None = None
    role: str
    created_at: datetime
    balance: BalanceOut | None = None  # stars, money and screen time earned so far
