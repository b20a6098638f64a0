from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from ...schemas.user import UserOut, UserUpdate, MeOut, BalanceOut
from ...models.user import User
from ...services.user_service import update_profile
from ..deps import get_db, get_current_user

router = APIRouter()


def _build_me_out(db: Session, user: User) -> MeOut:
    """Profile plus the family name and the balance earned so far."""
    user = (
        db.query(User)
        .options(joinedload(User.family), joinedload(User.balance))
        .filter(User.id == user.id)
        .first()
    )
    user_out = UserOut.model_validate(user)
    return MeOut(
        **user_out.model_dump(),
        family_name=user.family.family_name if user.family else None,
        balance=BalanceOut.model_validate(user.balance) if user.balance else BalanceOut(),
    )


@router.get("/me", response_model=MeOut)
def me(
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    return _build_me_out(db, current)


@router.patch("/me", response_model=MeOut)
def update_me(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current: User = Depends(get_current_user),
):
    update_profile(db, current, phone=payload.phone)
    return _build_me_out(db, current)
