"""
Category service: business logic for the Category aggregate.

Design notes
------------
- ``post_count`` is never stored; it is computed with an outer join over
  ``post_categories`` each time a category is read.  The list view uses a
  single grouped query rather than one COUNT per category.
- Name uniqueness is enforced by the database.  The service does not
  pre-check it; the ``IntegrityError`` raised on flush is translated into
  ``ConflictError``.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_cms.exceptions import (
    BusinessRuleError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from blog_cms.models import Category, post_categories
from blog_cms.schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CategoryWithCount,
)
from blog_cms.slugs import generate_slug, generate_unique_slug

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _with_post_count():
    """SELECT Category, <number of linked posts> grouped per category."""
    post_count = func.count(post_categories.c.post_id).label("post_count")
    return (
        select(Category, post_count)
        .outerjoin(post_categories, post_categories.c.category_id == Category.id)
        .group_by(Category.id)
    )


def _to_response(category: Category, post_count: int) -> CategoryWithCount:
    data = CategoryResponse.model_validate(category).model_dump()
    return CategoryWithCount(**data, post_count=post_count)


async def _get_or_raise(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def _unique_slug(db: AsyncSession, name: str, exclude_id: int | None = None) -> str:
    """
    Derive a slug from *name* that no other category uses.

    When *exclude_id* is given that category's own slug is left out of the
    pool, so renaming a category to a similar name can keep its slug.
    """
    base_slug = generate_slug(name)
    if not base_slug:
        raise InvalidInputError("Name must contain at least one letter or digit")

    q = select(Category.slug)
    if exclude_id is not None:
        q = q.where(Category.id != exclude_id)
    existing = (await db.execute(q)).scalars().all()
    return generate_unique_slug(base_slug, existing)


async def _flush_or_conflict(db: AsyncSession, message: str) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.info("Category write rejected by the database: %s", exc.orig)
        raise ConflictError(message) from exc


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_categories(db: AsyncSession) -> list[CategoryWithCount]:
    """Return every category ordered by name (descending) with its post count."""
    q = _with_post_count().order_by(Category.name.desc())
    result = await db.execute(q)
    return [_to_response(category, count) for category, count in result.all()]


async def get_category(db: AsyncSession, category_id: int) -> CategoryWithCount:
    result = await db.execute(_with_post_count().where(Category.id == category_id))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Category not found")
    return _to_response(*row)


async def get_category_by_slug(db: AsyncSession, slug: str) -> CategoryWithCount:
    result = await db.execute(_with_post_count().where(Category.slug == slug))
    row = result.one_or_none()
    if row is None:
        raise NotFoundError("Category not found")
    return _to_response(*row)


async def create_category(db: AsyncSession, data: CategoryCreate) -> CategoryResponse:
    """
    Create a category whose slug is unique among all existing categories.

    Raises ``ConflictError`` when another category already has this name.
    """
    slug = await _unique_slug(db, data.name)
    category = Category(name=data.name, slug=slug, description=data.description)
    db.add(category)
    await _flush_or_conflict(db, f"A category named {data.name!r} already exists")
    await db.refresh(category)

    logger.info("Created category id=%s slug=%s", category.id, category.slug)
    return CategoryResponse.model_validate(category)


async def update_category(
    db: AsyncSession, category_id: int, data: CategoryUpdate
) -> CategoryResponse:
    """
    Partially update a category.  Only fields present in the payload are
    touched; the slug is regenerated only when ``name`` is supplied.
    """
    category = await _get_or_raise(db, category_id)
    update_data = data.model_dump(exclude_unset=True)

    # name is NOT NULL; an explicit null means "leave it alone".
    if update_data.get("name") is None:
        update_data.pop("name", None)

    if "name" in update_data:
        category.slug = await _unique_slug(db, update_data["name"], exclude_id=category_id)

    for field, value in update_data.items():
        setattr(category, field, value)
    category.updated_at = datetime.now(timezone.utc)

    await _flush_or_conflict(db, "Another category already uses this name or slug")
    await db.refresh(category)

    logger.info("Updated category id=%s fields=%s", category_id, sorted(update_data))
    return CategoryResponse.model_validate(category)


async def delete_category(db: AsyncSession, category_id: int) -> None:
    """
    Delete a category that no post links to.

    Raises ``BusinessRuleError`` while any post is still in the category.
    """
    category = await _get_or_raise(db, category_id)

    count_q = (
        select(func.count())
        .select_from(post_categories)
        .where(post_categories.c.category_id == category_id)
    )
    post_count: int = (await db.execute(count_q)).scalar_one()
    if post_count > 0:
        raise BusinessRuleError(
            "Cannot delete category that has posts. "
            "Please remove all posts from this category first."
        )

    await db.delete(category)
    await db.flush()
    logger.info("Deleted category id=%s", category_id)
