from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from apps.url_rewrites.schemas import UrlRewriteResponse
from apps.url_rewrites.service import UrlRewriteService
from constants.acl import URL_REWRITES
from constants.catalog import URL_REWRITE_ENTITY_TYPE
from models.base import get_db
from security.auth_backend import require_resources


router = APIRouter(prefix="/api/url-rewrites", tags=["URL Rewrites"], dependencies=[Depends(require_resources(URL_REWRITES))])


@router.get("", response_model=Optional[UrlRewriteResponse])
async def find_url_rewrite(
    entity_id: int = Query(...),
    entity_type: str = Query(URL_REWRITE_ENTITY_TYPE),
    store_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Return the first rewrite stored for the entity, or null when there is none.
    """
    return await UrlRewriteService.find_one_by_data(db, entity_id, entity_type, store_id)
