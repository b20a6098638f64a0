from ..models.user import User, UserRole
from ..models.family import Family
from ..models.task import Task, TaskStatus, TaskPriority
from ..models.balance import UserBalance, TaskHistory
from ..models.auth import RefreshToken
from ..db.base_class import Base
