"""Database seeder: sample categories and posts for local development.

Rows go through the service layer so slugs and ``published_at`` follow the
same rules as API writes.  ``--reset`` drops and recreates every table first.
"""
import argparse
import asyncio
import logging
import time

from blog_cms.database import Base, async_session, engine
from blog_cms.models import PostStatus
from blog_cms.schemas import CategoryCreate, PostCreate
from blog_cms.services import category_service, post_service

logger = logging.getLogger("seed")

CATEGORIES = [
    ("Web Development", "Articles about modern web development technologies and practices"),
    ("React", "Everything about React and its ecosystem"),
    ("Next.js", "Next.js tutorials, tips, and best practices"),
    ("TypeScript", "Type-safe JavaScript development with TypeScript"),
    ("Database", "Database design, optimization, and best practices"),
    ("DevOps", "Deployment, CI/CD, and infrastructure topics"),
]

# (title, excerpt, status, category names)
POSTS = [
    (
        "Getting Started with Next.js 15",
        "Explore the new features and improvements in Next.js 15, including the "
        "stable App Router, performance enhancements, and better developer experience.",
        PostStatus.published,
        ["Next.js", "Web Development"],
    ),
    (
        "Building Type-Safe APIs with tRPC",
        "Learn how to build fully type-safe APIs using tRPC, with automatic type "
        "inference and excellent developer experience.",
        PostStatus.published,
        ["Web Development", "TypeScript"],
    ),
    (
        "Modern Database Design with Drizzle ORM",
        "Discover how to use Drizzle ORM for modern, type-safe database operations.",
        PostStatus.published,
        ["Database", "TypeScript"],
    ),
    (
        "Advanced React Patterns and Best Practices",
        "Explore advanced React patterns including compound components, custom hooks, "
        "state management, and performance optimization techniques.",
        PostStatus.published,
        ["React", "Web Development"],
    ),
    (
        "Deploying Full-Stack Applications to Production",
        "A comprehensive guide to deploying full-stack applications to production.",
        PostStatus.published,
        ["DevOps", "Web Development"],
    ),
    (
        "Draft: Understanding Server-Side Rendering",
        "An in-depth look at server-side rendering concepts and implementation strategies.",
        PostStatus.draft,
        ["Web Development", "React"],
    ),
]


async def seed(reset: bool = False) -> None:
    start = time.perf_counter()

    if reset:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Schema recreated")

    async with async_session() as session:
        category_ids: dict[str, int] = {}
        for name, description in CATEGORIES:
            category = await category_service.create_category(
                session, CategoryCreate(name=name, description=description)
            )
            category_ids[name] = category.id
        logger.info("Created %d categories", len(category_ids))

        for title, excerpt, status, names in POSTS:
            await post_service.create_post(
                session,
                PostCreate(
                    title=title,
                    content=f"# {title}\n\n{excerpt}\n",
                    excerpt=excerpt,
                    status=status,
                    category_ids=[category_ids[n] for n in names],
                ),
            )
        published = sum(1 for p in POSTS if p[2] == PostStatus.published)
        logger.info("Created %d posts (%d published, %d draft)", len(POSTS), published, len(POSTS) - published)

        await session.commit()

    await engine.dispose()
    logger.info("Seeding complete in %.1fs", time.perf_counter() - start)


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()
    asyncio.run(seed(reset=args.reset))


if __name__ == "__main__":
    main()
