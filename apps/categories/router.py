from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.categories.schemas import CategoryCreateRequest, CategoryResponse, CategoryUpdateRequest
from apps.categories.service import CategoryService
from common.pagination import PaginationParams
from common.responses import paginated_response
from constants.acl import CATEGORIES
from models.base import get_db
from models.user import User
from security.auth_backend import require_resources


router = APIRouter(prefix="/api/categories", tags=["Categories"])


@router.get("")
async def list_categories(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    name: Optional[str] = Query(None),
    parent_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_resources(CATEGORIES)),
):
    """
    Paginated categories ordered by tree path, optionally filtered by name or parent.
    """
    items, total, page, size, total_pages = await CategoryService.list_categories(
        db, PaginationParams(page=page, size=size), name=name, parent_id=parent_id
    )
    return paginated_response([i.model_dump(mode="json") for i in items], total, page, size, total_pages)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_resources(CATEGORIES)),
):
    category = await CategoryService.get_category(db, category_id)
    return await CategoryService.build_response(db, category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_resources(CATEGORIES)),
):
    # An id in the body would turn this into an update
    payload.category.id = None
    category = await CategoryService.save_category(db, payload.category, current_user)
    return await CategoryService.build_response(db, category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    payload: CategoryUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_resources(CATEGORIES)),
):
    """
    Partial update: absent fields are kept, custom_attributes merge by attribute_code.
    Design attribute changes without the edit_category_design resource are ignored.
    """
    if payload.id is not None and payload.category.id is None:
        payload.category.id = payload.id
    category = await CategoryService.save_category(db, payload.category, current_user, category_id=category_id)
    return await CategoryService.build_response(db, category)


@router.delete("/{category_id}", response_model=bool)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_resources(CATEGORIES)),
):
    return await CategoryService.delete_category(db, category_id)
