import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blog_cms.config import settings
from blog_cms.database import engine
from blog_cms.exceptions import InvalidInputError, ServiceError
from blog_cms.middleware import TimingMiddleware, record_error_kind
from blog_cms.routers import categories, posts

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Schema is managed by Alembic: run `alembic upgrade head` before starting.
    logger.info("Starting blog CMS API (env=%s)", settings.APP_ENV)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")

app = FastAPI(
    title="Blog CMS API",
    description="Content management backend for blog posts and categories",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error mapping
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    record_error_kind(exc.kind)
    logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": exc.kind, "detail": exc.message},
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    record_error_kind(InvalidInputError.kind)
    return JSONResponse(
        status_code=InvalidInputError.status_code,
        content={"kind": InvalidInputError.kind, "detail": jsonable_encoder(exc.errors())},
    )

# Routers
app.include_router(categories.router)
app.include_router(posts.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
