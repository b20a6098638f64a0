from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ...schemas.family import FamilyCreate, FamilyOut
from ...schemas.member import MemberOut
from ...services.family_service import (
    ensure_profile,
    get_family,
    join_family,
    start_new_family,
    list_members,
    list_children,
    FamilyNotFoundError,
    AlreadyMemberError,
)
from ...models.family import Family
from ...models.user import User
from ..deps import get_db, get_current_user, get_current_parent
router = APIRouter()

def _family_out(db: Session, fam: Family) -> FamilyOut:
    members = list_members(db, family_id=fam.family_id)
    return FamilyOut(
        family_id=fam.family_id,
        family_name=fam.family_name,
        members=[MemberOut.model_validate(m) for m in members],
    )

@router.get("/me", response_model=FamilyOut)
def my_family(db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    fam = ensure_profile(db, current)
    return _family_out(db, fam)

@router.post("/", response_model=FamilyOut)
def create(payload: FamilyCreate, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    fam = start_new_family(db, current, name=payload.family_name)
    return _family_out(db, fam)

@router.post("/join/{code}", response_model=FamilyOut)
def join(code: str, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    try:
        fam = join_family(db, current, code)
    except FamilyNotFoundError as e:
        raise HTTPException(404, str(e))
    except AlreadyMemberError as e:
        raise HTTPException(409, str(e))
    return _family_out(db, fam)

@router.post("/leave", response_model=FamilyOut)
def leave(db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    # leaving always lands the user in a new family of their own
    fam = start_new_family(db, current)
    return _family_out(db, fam)

@router.get("/me/children", response_model=list[MemberOut])
def my_children(db: Session = Depends(get_db), current: User = Depends(get_current_parent)):
    return list_children(db, family_id=current.family_id)

@router.get("/{family_id}", response_model=FamilyOut)
def get_one(family_id: str, db: Session = Depends(get_db), current: User = Depends(get_current_user)):
    fam = get_family(db, family_id)
    if not fam:
        raise HTTPException(404, "Family not found")
    if current.family_id != fam.family_id:
        raise HTTPException(403, "Not a member of this family")
    return _family_out(db, fam)
