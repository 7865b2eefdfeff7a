import logging
import re
import unicodedata
from typing import Iterable, List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from common.exceptions import InputException
from constants.catalog import URL_KEY, URL_REWRITE_ENTITY_TYPE, URL_ROOT_LEVEL
from models.category import Category, CategoryAttributeValue
from models.url_rewrite import UrlRewrite
from settings.config import get_settings

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def format_url_key(value: Optional[str]) -> str:
    """
    Turn a free-form label into a URL key: ASCII, lowercase, runs of
    anything else collapsed to a single "-".

    Example:
        format_url_key("Category 1") -> "category-1"
    """
    if not value:
        return ""
    ascii_value = unicodedata.normalize("NFKD", str(value)).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", ascii_value.lower()).strip("-")


def category_target_path(category_id: int) -> str:
    return f"catalog/category/view/id/{category_id}"


class UrlRewriteService:
    """
    Storage and generation of autogenerated category URL rewrites.
    All methods work inside the caller's transaction; none of them commit.
    """

    @staticmethod
    async def find_one_by_data(
        db: AsyncSession,
        entity_id: int,
        entity_type: str = URL_REWRITE_ENTITY_TYPE,
        store_id: Optional[int] = None,
    ) -> Optional[UrlRewrite]:
        stmt = select(UrlRewrite).where(UrlRewrite.entity_id == entity_id, UrlRewrite.entity_type == entity_type)
        if store_id is not None:
            stmt = stmt.where(UrlRewrite.store_id == store_id)
        res = await db.execute(stmt.order_by(UrlRewrite.id).limit(1))
        return res.scalar_one_or_none()

    @staticmethod
    async def build_category_request_path(db: AsyncSession, category: Category) -> Optional[str]:
        """
        Join the url keys of the ancestors below the store root with the
        category's own key. Categories at or above the store root have no URL.
        """
        if category.level is None or category.level <= URL_ROOT_LEVEL:
            return None
        own_key = category.get_custom_attribute(URL_KEY) or format_url_key(category.name)
        if not own_key:
            return None

        ancestor_ids = category.path_ids[URL_ROOT_LEVEL + 1:-1]
        keys: List[str] = []
        if ancestor_ids:
            stmt = (
                select(Category.id, Category.name, CategoryAttributeValue.value)
                .outerjoin(
                    CategoryAttributeValue,
                    and_(CategoryAttributeValue.category_id == Category.id, CategoryAttributeValue.attribute_code == URL_KEY),
                )
                .where(Category.id.in_(ancestor_ids))
            )
            by_id = {row.id: row.value or format_url_key(row.name) for row in (await db.execute(stmt)).all()}
            keys = [by_id[i] for i in ancestor_ids if by_id.get(i)]
        keys.append(own_key)
        return "/".join(keys) + get_settings().CATEGORY_URL_SUFFIX

    @staticmethod
    async def generate_for_category(db: AsyncSession, category: Category) -> Optional[UrlRewrite]:
        """
        Replace the category's autogenerated rewrite with one for its current path.
        Raises InputException when another entity already owns the request path.
        """
        request_path = await UrlRewriteService.build_category_request_path(db, category)
        if not request_path:
            logger.debug("Category %s has no storefront path; no URL rewrite generated", category.id)
            return None

        store_id = get_settings().DEFAULT_STORE_ID
        res = await db.execute(
            select(UrlRewrite).where(UrlRewrite.request_path == request_path, UrlRewrite.store_id == store_id)
        )
        owner = res.scalar_one_or_none()
        if owner is not None and not (owner.entity_type == URL_REWRITE_ENTITY_TYPE and owner.entity_id == category.id):
            raise InputException(
                'URL key for specified store already exists. Request path "%requestPath" is used by another entity.',
                {"requestPath": request_path},
            )

        await UrlRewriteService.delete_for_entities(db, [category.id], autogenerated_only=True)
        rewrite = UrlRewrite(
            entity_type=URL_REWRITE_ENTITY_TYPE,
            entity_id=category.id,
            request_path=request_path,
            target_path=category_target_path(category.id),
            redirect_type=0,
            store_id=store_id,
            is_autogenerated=True,
        )
        db.add(rewrite)
        await db.flush()
        logger.info("Generated URL rewrite %s for category %s", request_path, category.id)
        return rewrite

    @staticmethod
    async def delete_for_entities(
        db: AsyncSession,
        entity_ids: Iterable[int],
        entity_type: str = URL_REWRITE_ENTITY_TYPE,
        autogenerated_only: bool = False,
    ) -> int:
        ids = list(entity_ids)
        if not ids:
            return 0
        stmt = delete(UrlRewrite).where(UrlRewrite.entity_type == entity_type, UrlRewrite.entity_id.in_(ids))
        if autogenerated_only:
            stmt = stmt.where(UrlRewrite.is_autogenerated.is_(True))
        res = await db.execute(stmt)
        return res.rowcount or 0

    @staticmethod
    async def generate_for_subtree(db: AsyncSession, category: Category) -> int:
        """
        Regenerate the rewrite of a category and of every descendant, parents
        before children, so request paths follow a changed ancestor url key.
        Returns the number of rewrites written.
        """
        written = 1 if await UrlRewriteService.generate_for_category(db, category) else 0
        res = await db.execute(
            select(Category)
            .where(Category.path.like(f"{category.path}/%"))
            .order_by(Category.level, Category.id)
        )
        for descendant in res.scalars().all():
            if await UrlRewriteService.generate_for_category(db, descendant):
                written += 1
        return written
