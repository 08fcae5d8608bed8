from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_cms.database import get_db
from blog_cms.dependencies import PostListParams
from blog_cms.schemas import DeleteResponse, PostCreate, PostListResponse, PostResponse, PostUpdate
from blog_cms.services import post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])

@router.get("", response_model=PostListResponse)
async def list_posts(
    params: PostListParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.get_posts(
        db,
        limit=params.limit,
        offset=params.offset,
        status=params.status,
        category_id=params.category_id,
        search=params.search,
    )

@router.get("/slug/{slug}", response_model=PostResponse)
async def get_post_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    return await post_service.get_post_by_slug(db, slug)

@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_post(db, post_id)

@router.post("", status_code=201, response_model=PostResponse)
async def create_post(data: PostCreate, db: AsyncSession = Depends(get_db)):
    return await post_service.create_post(db, data)

@router.put("/{post_id}", response_model=PostResponse)
async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    return await post_service.update_post(db, post_id, data)

@router.delete("/{post_id}", response_model=DeleteResponse)
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    await post_service.delete_post(db, post_id)
    return DeleteResponse()
