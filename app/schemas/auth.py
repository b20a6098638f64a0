from pydantic import BaseModel, EmailStr, Field
from ..models.user import UserRole

class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    phone: str | None = None
    role: UserRole = UserRole.PARENT
    family_code: str | None = None  # join an existing family instead of creating one
class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: str | None = None
