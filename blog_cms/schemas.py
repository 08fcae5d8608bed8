from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from blog_cms.models import PostStatus


class CamelModel(BaseModel):
    """JSON uses camelCase; Python code and snake_case input still work."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ORMModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# --- Category ---

class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None


class CategoryUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None


class CategorySummary(ORMModel):
    id: int
    name: str
    slug: str


class CategoryResponse(CategorySummary):
    description: str | None
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(CategoryResponse):
    post_count: int = 0


# --- Post ---

class PostCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    excerpt: str | None = None
    status: PostStatus = PostStatus.draft
    category_ids: list[int] | None = None


class PostUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = None
    status: PostStatus | None = None
    category_ids: list[int] | None = None


class PostResponse(ORMModel):
    id: int
    title: str
    slug: str
    content: str
    excerpt: str | None
    status: PostStatus
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    categories: list[CategorySummary] = []


class PostListResponse(CamelModel):
    posts: list[PostResponse]
    total: int


# --- Misc ---

class DeleteResponse(BaseModel):
    success: bool = True
