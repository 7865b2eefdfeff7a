import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from apps.categories.schemas import CategoryPayload, CategoryResponse, CustomAttributeOut
from apps.url_rewrites.service import UrlRewriteService, format_url_key
from common.exceptions import ForbiddenException, InputException, NoSuchEntityException
from common.pagination import PaginationParams, paginate_select
from constants.catalog import CATEGORY_ATTRIBUTES, DEFAULT_ROOT_ID, RESERVED_CATEGORY_IDS, URL_KEY
from models.category import Category, CategoryAttributeValue
from models.user import User
from security.authorization import AuthorizationGate

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Category repository shared by the REST and SOAP bindings.

    Save and delete run as one transaction together with the URL rewrite
    cascade; any error rolls the whole unit back.
    """

    @staticmethod
    async def get_category(db: AsyncSession, category_id: int) -> Category:
        stmt = (
            select(Category)
            .options(selectinload(Category.attribute_values))
            .where(Category.id == category_id)
            .execution_options(populate_existing=True)
        )
        res = await db.execute(stmt)
        category = res.scalar_one_or_none()
        if not category:
            raise NoSuchEntityException("id", category_id)
        return category

    @staticmethod
    async def children_map(db: AsyncSession, category_ids: Iterable[int]) -> Dict[int, List[int]]:
        ids = list(category_ids)
        result: Dict[int, List[int]] = {i: [] for i in ids}
        if not ids:
            return result
        res = await db.execute(
            select(Category.parent_id, Category.id)
            .where(Category.parent_id.in_(ids))
            .order_by(Category.position, Category.id)
        )
        for parent_id, child_id in res.all():
            result[parent_id].append(child_id)
        return result

    @staticmethod
    def to_response(category: Category, children: List[int]) -> CategoryResponse:
        return CategoryResponse(
            id=category.id,
            parent_id=category.parent_id,
            name=category.name,
            is_active=bool(category.is_active),
            position=category.position,
            level=category.level,
            children=",".join(str(c) for c in children),
            created_at=category.created_at,
            updated_at=category.updated_at,
            path=category.path,
            available_sort_by=list(category.available_sort_by or []),
            include_in_menu=bool(category.include_in_menu),
            custom_attributes=[
                CustomAttributeOut(attribute_code=v.attribute_code, value=v.value)
                for v in (category.attribute_values or [])
            ],
        )

    @staticmethod
    async def build_response(db: AsyncSession, category: Category) -> CategoryResponse:
        children = await CategoryService.children_map(db, [category.id])
        return CategoryService.to_response(category, children[category.id])

    @staticmethod
    async def list_categories(
        db: AsyncSession,
        params: PaginationParams,
        name: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> Tuple[List[CategoryResponse], int, int, int, int]:
        stmt = select(Category).options(selectinload(Category.attribute_values)).order_by(Category.path)
        if name:
            stmt = stmt.where(func.lower(Category.name).contains(name.strip().lower()))
        if parent_id is not None:
            stmt = stmt.where(Category.parent_id == parent_id)
        items, total, page, size, total_pages = await paginate_select(db, stmt, params)
        children = await CategoryService.children_map(db, [c.id for c in items])
        responses = [CategoryService.to_response(c, children[c.id]) for c in items]
        return responses, total, page, size, total_pages

    @staticmethod
    def _validate_attribute_codes(attributes: Dict[str, Optional[str]]) -> None:
        for code in attributes:
            if code not in CATEGORY_ATTRIBUTES:
                raise InputException(
                    'Attribute "%attributeCode" is not defined for categories.',
                    {"attributeCode": code},
                )

    @staticmethod
    async def _next_position(db: AsyncSession, parent_id: int) -> int:
        res = await db.execute(
            select(func.coalesce(func.max(Category.position), 0)).where(Category.parent_id == parent_id)
        )
        return int(res.scalar_one() or 0) + 1

    @staticmethod
    async def _new_category(db: AsyncSession, payload: CategoryPayload) -> Tuple[Category, Category]:
        if not payload.name:
            raise InputException('"%fieldName" is required. Enter and try again.', {"fieldName": "name"})
        parent_id = payload.parent_id if payload.parent_id is not None else DEFAULT_ROOT_ID
        parent = await db.get(Category, parent_id)
        if not parent:
            raise NoSuchEntityException("id", parent_id)

        position = payload.position
        if position is None:
            position = await CategoryService._next_position(db, parent.id)
        category = Category(
            parent_id=parent.id,
            name=payload.name,
            is_active=True if payload.is_active is None else payload.is_active,
            include_in_menu=True if payload.include_in_menu is None else payload.include_in_menu,
            available_sort_by=list(payload.available_sort_by or []),
            position=position,
            level=parent.level + 1,
            path=parent.path,
        )
        category.attribute_values = []
        return category, parent

    @staticmethod
    def _apply_fields(category: Category, payload: CategoryPayload) -> None:
        """
        Copy the scalar fields present in a partial update; absent ones are preserved.
        """
        if payload.name is not None:
            category.name = payload.name
        if payload.is_active is not None:
            category.is_active = payload.is_active
        if payload.include_in_menu is not None:
            category.include_in_menu = payload.include_in_menu
        if payload.available_sort_by is not None:
            category.available_sort_by = list(payload.available_sort_by)
        if payload.position is not None:
            category.position = payload.position
        if payload.parent_id is not None and payload.parent_id != category.parent_id:
            # Moving categories between parents is not supported by save
            logger.info("Ignoring parent_id change %s -> %s for category %s", category.parent_id, payload.parent_id, category.id)

    @staticmethod
    async def save_category(
        db: AsyncSession,
        payload: CategoryPayload,
        actor: Optional[User],
        category_id: Optional[int] = None,
    ) -> Category:
        """
        Create (no id) or update (id from the URL or payload) a category.

        Custom attributes are merged by attribute_code. Changes to protected
        attribute groups that the actor's role may not make are dropped and
        the stored value is kept; the save itself still succeeds.
        """
        if category_id is not None and payload.id is not None and payload.id != category_id:
            raise InputException(
                "The category id in the URL (%urlId) does not match the id in the request body (%bodyId).",
                {"urlId": category_id, "bodyId": payload.id},
            )
        target_id = category_id if category_id is not None else payload.id
        incoming = payload.attribute_map()
        CategoryService._validate_attribute_codes(incoming)

        try:
            if target_id is None:
                category, parent = await CategoryService._new_category(db, payload)
                current: Dict[str, Optional[str]] = {}
                incoming[URL_KEY] = format_url_key(incoming.get(URL_KEY) or payload.name)
            else:
                category = await CategoryService.get_category(db, target_id)
                parent = None
                current = category.get_custom_attributes()
                CategoryService._apply_fields(category, payload)
                if URL_KEY in incoming:
                    # An empty url_key on update keeps the stored one
                    incoming[URL_KEY] = format_url_key(incoming[URL_KEY]) or current.get(URL_KEY)

            permitted, _ = await AuthorizationGate(db).filter_attribute_writes(
                actor.role_id if actor else None, incoming, current
            )
            for code, value in permitted.items():
                category.set_custom_attribute(code, value)

            if parent is not None:
                db.add(category)
                await db.flush()
                category.path = f"{parent.path}/{category.id}"
                await db.flush()
                await UrlRewriteService.generate_for_category(db, category)
                logger.info("Created category %s (%s) under %s", category.id, category.name, parent.id)
            else:
                await db.flush()
                if permitted.get(URL_KEY) and permitted[URL_KEY] != current.get(URL_KEY):
                    await UrlRewriteService.generate_for_subtree(db, category)
                logger.info("Updated category %s", category.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        return await CategoryService.get_category(db, category.id)

    @staticmethod
    async def delete_category(db: AsyncSession, category_id: int) -> bool:
        """
        Delete a category with its whole subtree and their URL rewrites.
        """
        if category_id in RESERVED_CATEGORY_IDS:
            raise ForbiddenException("Cannot delete the root category with id %categoryId.", {"categoryId": category_id})
        category = await db.get(Category, category_id)
        if not category:
            raise NoSuchEntityException("id", category_id)
        if category.parent_id is None:
            raise ForbiddenException("Cannot delete the root category with id %categoryId.", {"categoryId": category_id})

        try:
            res = await db.execute(
                select(Category.id).where(or_(Category.id == category.id, Category.path.like(f"{category.path}/%")))
            )
            subtree_ids = list(res.scalars().all())
            removed = await UrlRewriteService.delete_for_entities(db, subtree_ids)
            await db.execute(delete(CategoryAttributeValue).where(CategoryAttributeValue.category_id.in_(subtree_ids)))
            await db.execute(
                delete(Category).where(Category.id.in_(subtree_ids)).execution_options(synchronize_session="fetch")
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Deleted category %s with %d descendants and %d URL rewrites", category_id, len(subtree_ids) - 1, removed
        )
        return True
