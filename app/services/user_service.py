from sqlalchemy.orm import Session
from sqlalchemy import select
import logging
from ..models.user import User, UserRole
from ..models.balance import UserBalance
from .security import hash_password, verify_password

logger = logging.getLogger(__name__)

def create_user(
    db: Session, *,
    email: str,
    password: str,
    phone: str | None = None,
    role: UserRole = UserRole.PARENT,
    requested_family_code: str | None = None,
) -> User:
    try:
        logger.info(f"Creating user: email={email}, role={role}, family_code={requested_family_code}")
        user = User(
            email=email,
            phone=phone,
            role=role,
            requested_family_code=requested_family_code,
            hashed_password=hash_password(password),
        )
        user.balance = UserBalance()
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"User created successfully: id={user.id}, email={user.email}, role={user.role}")
        return user
    except Exception as e:
        logger.error(f"Error creating user with email {email}: {str(e)}", exc_info=True)
        db.rollback()
        raise

def get_by_email(db: Session, email: str) -> User | None:
    return db.execute(select(User).where(User.email == email)).scalar_one_or_none()

def authenticate(db: Session, email: str, password: str) -> User | None:
    user = get_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user

def update_profile(db: Session, user: User, *, phone: str | None = None) -> User:
    if phone is not None:
        user.phone = phone.strip() or None
    db.commit()
    db.refresh(user)
    return user
