"""
Post service: business logic for the Post aggregate.

Design notes
------------
- Categories are attached with ``selectinload`` so a page of N posts costs
  one extra query, not N.
- The category links of a post are replaced wholesale on update: all rows
  in ``post_categories`` for the post are deleted and the new set inserted.
  Both statements run inside the request transaction, so a failure while
  inserting leaves the old links in place.
- ``published_at`` is stamped whenever a post moves into ``published`` from
  any other stored status, including a re-publish after an unpublish.
  Unpublishing never clears it.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import and_, delete, func, insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog_cms.config import settings
from blog_cms.exceptions import ConflictError, InvalidInputError, NotFoundError
from blog_cms.models import Post, PostStatus, post_categories
from blog_cms.schemas import PostCreate, PostListResponse, PostResponse, PostUpdate
from blog_cms.slugs import generate_slug, generate_unique_slug

logger = logging.getLogger(__name__)

# Columns an update payload may not null out.
_REQUIRED_FIELDS: frozenset[str] = frozenset({"title", "content", "status"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _load_post(db: AsyncSession, *criteria) -> Post | None:
    """
    Fetch one post with its categories.  ``populate_existing`` forces a
    reload of an instance already in the session, which matters after the
    link table was rewritten with Core statements.
    """
    q = (
        select(Post)
        .where(*criteria)
        .options(selectinload(Post.categories))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.scalar_one_or_none()


async def _load_post_or_raise(db: AsyncSession, *criteria) -> Post:
    post = await _load_post(db, *criteria)
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def _unique_slug(db: AsyncSession, title: str, exclude_id: int | None = None) -> str:
    base_slug = generate_slug(title)
    if not base_slug:
        raise InvalidInputError("Title must contain at least one letter or digit")

    q = select(Post.slug)
    if exclude_id is not None:
        q = q.where(Post.id != exclude_id)
    existing = (await db.execute(q)).scalars().all()
    return generate_unique_slug(base_slug, existing)


async def _link_categories(db: AsyncSession, post_id: int, category_ids: list[int]) -> None:
    """
    Insert one link row per category id.  Category existence is left to the
    foreign key; a dangling id surfaces as ``ConflictError``.
    """
    unique_ids = list(dict.fromkeys(category_ids))
    if not unique_ids:
        return
    try:
        await db.execute(
            insert(post_categories),
            [{"post_id": post_id, "category_id": cid} for cid in unique_ids],
        )
    except IntegrityError as exc:
        logger.info("Category links for post id=%s rejected: %s", post_id, exc.orig)
        raise ConflictError("One or more categories do not exist") from exc


async def _flush_or_conflict(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.info("Post write rejected by the database: %s", exc.orig)
        raise ConflictError("A post with this slug already exists") from exc


def _build_filters(status: PostStatus | None, search: str | None) -> list:
    conditions = []
    if status is not None:
        conditions.append(Post.status == status)
    if search:
        conditions.append(
            or_(
                Post.title.contains(search, autoescape=True),
                Post.content.contains(search, autoescape=True),
            )
        )
    return conditions


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_posts(
    db: AsyncSession,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    offset: int = 0,
    status: PostStatus | None = None,
    category_id: int | None = None,
    search: str | None = None,
) -> PostListResponse:
    """
    Return one page of posts (newest first) plus the total number of posts
    matching the filters across all pages.

    On the normal path three statements are issued: COUNT, the page SELECT
    and the ``selectinload`` for categories.  Filtering by a category adds a
    check that the category has any posts at all; an empty category stops
    right there.  The category filter itself is a subquery, never a list of
    ids bound as parameters.
    """
    if not 1 <= limit <= settings.MAX_PAGE_SIZE:
        raise InvalidInputError(f"limit must be between 1 and {settings.MAX_PAGE_SIZE}")
    if offset < 0:
        raise InvalidInputError("offset must be zero or greater")

    conditions = _build_filters(status, search)

    if category_id is not None:
        ids_q = select(post_categories.c.post_id).where(
            post_categories.c.category_id == category_id
        )
        has_posts = (await db.execute(ids_q.limit(1))).first() is not None
        if not has_posts:
            return PostListResponse(posts=[], total=0)
        conditions.append(Post.id.in_(ids_q))

    where = and_(*conditions) if conditions else None

    # 1. Total count
    count_q = select(func.count()).select_from(Post)
    if where is not None:
        count_q = count_q.where(where)
    total: int = (await db.execute(count_q)).scalar_one()

    # 2. Page of rows with categories eager-loaded
    posts_q = (
        select(Post)
        .options(selectinload(Post.categories))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    if where is not None:
        posts_q = posts_q.where(where)
    posts = (await db.execute(posts_q)).scalars().all()

    return PostListResponse(
        posts=[PostResponse.model_validate(p) for p in posts],
        total=total,
    )


async def get_post(db: AsyncSession, post_id: int) -> PostResponse:
    post = await _load_post_or_raise(db, Post.id == post_id)
    return PostResponse.model_validate(post)


async def get_post_by_slug(db: AsyncSession, slug: str) -> PostResponse:
    post = await _load_post_or_raise(db, Post.slug == slug)
    return PostResponse.model_validate(post)


async def create_post(db: AsyncSession, data: PostCreate) -> PostResponse:
    """
    Create a post, link it to ``data.category_ids`` and return it with its
    categories.  ``published_at`` is set only when created as published.
    """
    slug = await _unique_slug(db, data.title)

    post = Post(
        title=data.title,
        slug=slug,
        content=data.content,
        excerpt=data.excerpt,
        status=data.status,
        published_at=(
            datetime.now(timezone.utc) if data.status == PostStatus.published else None
        ),
    )
    db.add(post)
    await _flush_or_conflict(db)

    if data.category_ids:
        await _link_categories(db, post.id, data.category_ids)

    logger.info("Created post id=%s slug=%s status=%s", post.id, slug, data.status.value)
    return PostResponse.model_validate(await _load_post_or_raise(db, Post.id == post.id))


async def update_post(db: AsyncSession, post_id: int, data: PostUpdate) -> PostResponse:
    """
    Partially update a post.

    Only fields explicitly set in the payload are modified.  When
    ``category_ids`` is present, even as an empty list, it replaces the
    post's whole category set; when absent the links are left untouched.
    """
    post = await _load_post_or_raise(db, Post.id == post_id)

    update_data = data.model_dump(exclude_unset=True)
    category_ids: list[int] | None = update_data.pop("category_ids", None)
    for field in _REQUIRED_FIELDS:
        if field in update_data and update_data[field] is None:
            del update_data[field]

    if "title" in update_data:
        post.slug = await _unique_slug(db, update_data["title"], exclude_id=post_id)

    # Compare against the stored status before it is overwritten.
    if (
        update_data.get("status") == PostStatus.published
        and post.status != PostStatus.published
    ):
        post.published_at = datetime.now(timezone.utc)

    for field, value in update_data.items():
        setattr(post, field, value)
    post.updated_at = datetime.now(timezone.utc)
    await _flush_or_conflict(db)

    if category_ids is not None:
        await db.execute(delete(post_categories).where(post_categories.c.post_id == post_id))
        await _link_categories(db, post_id, category_ids)

    logger.info(
        "Updated post id=%s fields=%s relinked=%s",
        post_id,
        sorted(update_data),
        category_ids is not None,
    )
    return PostResponse.model_validate(await _load_post_or_raise(db, Post.id == post_id))


async def delete_post(db: AsyncSession, post_id: int) -> None:
    """Delete a post; its category links go with it via ON DELETE CASCADE."""
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")

    await db.delete(post)
    await db.flush()
    logger.info("Deleted post id=%s", post_id)
