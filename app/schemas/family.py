from typing import List
from pydantic import BaseModel, Field
from .common import ORMModel
from .member import MemberOut
class FamilyCreate(BaseModel):
    family_name: str | None = Field(default=None, max_length=128)
class FamilyOut(ORMModel):
    family_id: str
    family_name: str
    members: List[MemberOut] = []
