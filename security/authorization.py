import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from constants.acl import ALL
from constants.catalog import ATTRIBUTE_GROUPS
from models.user import AuthorizationRule

logger = logging.getLogger(__name__)


def is_allowed(granted: Iterable[str], required: Iterable[str]) -> bool:
    """
    True iff every required resource is granted. The "all" resource grants everything.
    """
    granted = set(granted)
    if ALL in granted:
        return True
    return set(required).issubset(granted)


class AuthorizationGate:
    """
    Resolves the ACL resources granted to a role and gates writes to
    protected attribute groups.

    Rules are read from the database on every check so that rule changes
    take effect for tokens that were issued earlier.
    """

    def __init__(self, db: AsyncSession, groups: Optional[Mapping[str, Tuple[FrozenSet[str], FrozenSet[str]]]] = None):
        self.db = db
        self.groups = ATTRIBUTE_GROUPS if groups is None else groups

    async def granted_resources(self, role_id: Optional[int]) -> Set[str]:
        if role_id is None:
            return set()
        res = await self.db.execute(select(AuthorizationRule.resource_id).where(AuthorizationRule.role_id == role_id))
        return set(res.scalars().all())

    async def check(self, role_id: Optional[int], required: Iterable[str]) -> bool:
        return is_allowed(await self.granted_resources(role_id), required)

    async def filter_attribute_writes(
        self,
        role_id: Optional[int],
        incoming: Dict[str, Optional[str]],
        current: Mapping[str, Optional[str]],
    ) -> Tuple[Dict[str, Optional[str]], List[str]]:
        """
        Drop incoming attribute changes the role may not make.

        Only codes whose value actually changes are gated, so echoing back a
        category read earlier never trips the check. Returns the permitted
        writes and the denied attribute codes.
        """
        permitted = dict(incoming)
        denied: List[str] = []
        granted: Optional[Set[str]] = None
        for group_name, (codes, required) in self.groups.items():
            # "" and None both mean "no value"
            changed = [c for c in incoming if c in codes and (incoming[c] or None) != (current.get(c) or None)]
            if not changed:
                continue
            if granted is None:
                granted = await self.granted_resources(role_id)
            if is_allowed(granted, required):
                continue
            for code in changed:
                permitted.pop(code, None)
                denied.append(code)
            logger.warning(
                "Role %s lacks %s; ignoring changes to %s attributes %s",
                role_id,
                ",".join(sorted(required)),
                group_name,
                ",".join(changed),
            )
        return permitted, denied
