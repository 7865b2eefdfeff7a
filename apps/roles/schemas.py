from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from constants.acl import RESOURCES


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class RoleOut(BaseModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RulesPayload(BaseModel):
    """
    Full resource set for a role; saving replaces the previous set.
    """
    resources: List[str]

    @field_validator("resources")
    def _known_resources(cls, v):
        unknown = sorted(set(v) - set(RESOURCES))
        if unknown:
            raise ValueError(f"Unknown ACL resources: {', '.join(unknown)}")
        return sorted(set(v))


class RulesOut(BaseModel):
    role_id: int
    resources: List[str]
