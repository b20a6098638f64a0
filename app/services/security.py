from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
import jwt
from ..core.config import settings
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"

def _bcrypt_safe(p: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return p.encode("utf-8")[:72].decode("utf-8", errors="ignore")

def hash_password(p: str) -> str:
    return pwd_context.hash(_bcrypt_safe(p))



def verify_password(p: str, hashed: str) -> bool:
    return pwd_context.verify(_bcrypt_safe(p), hashed)

def create_access_token(sub: str, minutes: int | None = None) -> str:
    exp_min = minutes if minutes is not None else settings.ACCESS_TOKEN_MIN
    expire = datetime.now(timezone.utc) + timedelta(minutes=exp_min)
    payload = {"sub": sub, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)

def decode_access_token(token: str) -> dict:
    """Raises jwt.PyJWTError when the token is invalid or expired."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
