import logging
from typing import Iterable, List

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.roles.schemas import RoleCreate
from common.exceptions import ConflictException, NoSuchEntityException
from models.user import AuthorizationRule, Role

logger = logging.getLogger(__name__)


class RoleService:
    @staticmethod
    async def create_role(db: AsyncSession, payload: RoleCreate) -> Role:
        existing = await db.execute(select(Role).where(func.lower(Role.name) == func.lower(payload.name)))
        if existing.scalar_one_or_none():
            raise ConflictException('Role name "%roleName" is already in use.', {"roleName": payload.name})
        role = Role(name=payload.name.strip())
        db.add(role)
        await db.commit()
        await db.refresh(role)
        return role

    @staticmethod
    async def list_roles(db: AsyncSession) -> List[Role]:
        res = await db.execute(select(Role).order_by(Role.id))
        return list(res.scalars().all())

    @staticmethod
    async def get_role(db: AsyncSession, role_id: int) -> Role:
        role = await db.get(Role, role_id)
        if not role:
            raise NoSuchEntityException("roleId", role_id)
        return role

    @staticmethod
    async def get_resources(db: AsyncSession, role_id: int) -> List[str]:
        await RoleService.get_role(db, role_id)
        res = await db.execute(
            select(AuthorizationRule.resource_id)
            .where(AuthorizationRule.role_id == role_id)
            .order_by(AuthorizationRule.resource_id)
        )
        return list(res.scalars().all())

    @staticmethod
    async def save_rules(db: AsyncSession, role_id: int, resources: Iterable[str]) -> List[str]:
        """
        Replace the role's granted resources in one transaction.
        """
        await RoleService.get_role(db, role_id)
        granted = sorted(set(resources))
        await db.execute(delete(AuthorizationRule).where(AuthorizationRule.role_id == role_id))
        db.add_all([AuthorizationRule(role_id=role_id, resource_id=r) for r in granted])
        await db.commit()
        logger.info("Saved rules for role %s: %s", role_id, ",".join(granted) or "<none>")
        return granted
