from dataclasses import dataclass
from math import ceil
from typing import Any, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


@dataclass
class PaginationParams:
    """
    Reusable pagination parameters.
    """
    page: int = 1
    size: int = 20


async def paginate_select(db: AsyncSession, base_stmt, params: PaginationParams) -> Tuple[List[Any], int, int, int, int]:
    """
    Apply LIMIT/OFFSET pagination to a 2.0-style select and return items with paging info.
    Returns: (items, total, page, size, total_pages)
    """
    page = max(1, params.page or 1)
    size = max(1, min(params.size or 20, 100))
    count_stmt = select(func.count()).select_from(base_stmt.order_by(None).subquery())
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    items_res = await db.execute(base_stmt.limit(size).offset((page - 1) * size))
    items = list(items_res.scalars().all())
    total_pages = ceil(total / size) if total else 0
    return items, total, page, size, total_pages
