import logging
import secrets
from sqlalchemy.orm import Session
from sqlalchemy import select
from ..models.family import Family
from ..models.user import User, UserRole
from .realtime import broker

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 8


class FamilyNotFoundError(ValueError):
    pass


class AlreadyMemberError(ValueError):
    pass


def _code(n=CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(n))

def normalize_code(code: str) -> str:
    # forgiving about whitespace and case
    return code.strip().upper()

def default_family_name(email: str) -> str:
    return f"Family {email.split('@')[0]}"

def _new_family(db: Session, name: str) -> Family:
    code = _code()
    while db.get(Family, code) is not None:
        code = _code()
    fam = Family(family_id=code, family_name=name)
    db.add(fam)
    db.flush()
    return fam

def get_family(db: Session, family_id: str) -> Family | None:
    return db.get(Family, normalize_code(family_id))

def ensure_profile(db: Session, user: User) -> Family:
    """Make sure ``user`` belongs to a family.

    Users without a family join the one whose code they gave at signup, or get
    a brand new family when there is no code or it matches nothing. Calling it
    again once the user has a family changes nothing.
    """
    if user.family_id:
        return user.family

    target = None
    if user.requested_family_code:
        target = get_family(db, user.requested_family_code)
        if not target:
            logger.info(f"Requested family {user.requested_family_code} not found for {user.email}, creating a new one")
    if target is None:
        target = _new_family(db, default_family_name(user.email))
        logger.info(f"Created family {target.family_id} for {user.email}")

    user.family_id = target.family_id
    user.verified = True
    db.commit()
    db.refresh(user)
    broker.member_moved(user)
    return target

def join_family(db: Session, user: User, code: str) -> Family:
    fam = get_family(db, code)
    if not fam:
        raise FamilyNotFoundError("Family not found")
    if user.family_id == fam.family_id:
        raise AlreadyMemberError("Already a member of this family")
    logger.info(f"User {user.id} moves from family {user.family_id} to {fam.family_id}")
    user.family_id = fam.family_id
    db.commit()
    db.refresh(user)
    broker.member_moved(user)
    return fam

def start_new_family(db: Session, user: User, name: str | None = None) -> Family:
    """Move ``user`` into a freshly created family; the old one keeps its other members."""
    fam = _new_family(db, (name or "").strip() or default_family_name(user.email))
    logger.info(f"User {user.id} leaves family {user.family_id} for new family {fam.family_id}")
    user.family_id = fam.family_id
    db.commit()
    db.refresh(user)
    broker.member_moved(user)
    return fam

def list_members(db: Session, *, family_id: str) -> list[User]:
    q = select(User).where(User.family_id == family_id).order_by(User.created_at)
    return list(db.execute(q).scalars())

def list_children(db: Session, *, family_id: str) -> list[User]:
    q = (
        select(User)
        .where(User.family_id == family_id, User.role == UserRole.CHILD)
        .order_by(User.created_at)
    )
    return list(db.execute(q).scalars())
