from fastapi import Query

from blog_cms.config import settings
from blog_cms.models import PostStatus


class PostListParams:
    """
    Reusable FastAPI dependency that parses the pagination and filter query
    parameters of the post listing.

    Usage in a router::

        @router.get("/posts")
        async def list_posts(params: PostListParams = Depends()):
            ...

    Attributes
    ----------
    limit:
        Page size, 1 to 100.
    offset:
        Number of matching posts to skip (minimum 0).
    status:
        Exact status filter; omitted means any status.
    category_id:
        Only posts linked to this category.
    search:
        Substring matched against title or content; blank is ignored.
    """

    def __init__(
        self,
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            description="Number of posts returned (max 100).",
        ),
        offset: int = Query(
            0,
            ge=0,
            description="Number of posts to skip.",
        ),
        status: PostStatus | None = Query(
            None,
            description="Only posts with this status.",
        ),
        category_id: int | None = Query(
            None,
            alias="categoryId",
            description="Only posts linked to this category.",
        ),
        search: str | None = Query(
            None,
            description="Substring to look for in title or content.",
        ),
    ) -> None:
        # The Query bound is static; the setting may lower the ceiling.
        self.limit = min(limit, settings.MAX_PAGE_SIZE)
        self.offset = offset
        self.status = status
        self.category_id = category_id
        self.search = search or None
