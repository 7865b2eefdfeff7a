from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.roles.schemas import RoleCreate, RoleOut, RulesOut, RulesPayload
from apps.roles.service import RoleService
from constants.acl import ACL_ROLES
from models.base import get_db
from security.auth_backend import require_resources


router = APIRouter(prefix="/api/roles", tags=["Roles"], dependencies=[Depends(require_resources(ACL_ROLES))])


@router.post("", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
async def create_role(payload: RoleCreate, db: AsyncSession = Depends(get_db)):
    return await RoleService.create_role(db, payload)


@router.get("", response_model=List[RoleOut])
async def list_roles(db: AsyncSession = Depends(get_db)):
    return await RoleService.list_roles(db)


@router.get("/{role_id}/rules", response_model=RulesOut)
async def get_rules(role_id: int, db: AsyncSession = Depends(get_db)):
    return RulesOut(role_id=role_id, resources=await RoleService.get_resources(db, role_id))


@router.put("/{role_id}/rules", response_model=RulesOut)
async def save_rules(role_id: int, payload: RulesPayload, db: AsyncSession = Depends(get_db)):
    """
    Body: { "resources": ["categories", "edit_category_design"] }
    """
    resources = await RoleService.save_rules(db, role_id, payload.resources)
    return RulesOut(role_id=role_id, resources=resources)
