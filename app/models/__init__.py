from datetime import datetime, timezone
def utcnow():
    return datetime.now(timezone.utc)
from .user import User
from .family import Family
from .task import Task
from .balance import UserBalance, TaskHistory
from .auth import RefreshToken
