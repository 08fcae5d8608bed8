"""
Post endpoint tests: covers the full CRUD lifecycle, the listing filters
and pagination, category linking, and the publish timestamp rules.

Each test creates the categories and posts it needs via the API rather
than relying on shared fixtures, so test order does not matter.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_category(client: AsyncClient, name: str) -> int:
    resp = await client.post("/api/v1/categories", json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


async def _create_post(client: AsyncClient, title: str, **extra) -> dict:
    payload = {"title": title, "content": extra.pop("content", f"Content of {title}"), **extra}
    resp = await client.post("/api/v1/posts", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# List posts
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_posts_empty(async_client: AsyncClient):
    """List endpoint returns no posts and a zero total when nothing exists."""
    resp = await async_client.get("/api/v1/posts")
    assert resp.status_code == 200
    assert resp.json() == {"posts": [], "total": 0}


@pytest.mark.asyncio
async def test_list_posts_includes_categories(async_client: AsyncClient):
    """Each listed post carries its categories as {id, name, slug}."""
    category_id = await _create_category(async_client, "Next.js")
    await _create_post(async_client, "App Router", categoryIds=[category_id])

    resp = await async_client.get("/api/v1/posts")
    data = resp.json()
    assert data["total"] == 1
    post = data["posts"][0]
    assert post["categories"] == [{"id": category_id, "name": "Next.js", "slug": "next-js"}]
    assert {"publishedAt", "createdAt", "updatedAt", "excerpt", "status"} <= set(post)


@pytest.mark.asyncio
async def test_list_posts_pagination_pages_are_disjoint(async_client: AsyncClient):
    """limit=9 pages split 18 posts into two newest-first, non-overlapping halves."""
    created_ids = [(await _create_post(async_client, f"Post {i}"))["id"] for i in range(18)]

    page1 = (await async_client.get("/api/v1/posts?limit=9&offset=0")).json()
    page2 = (await async_client.get("/api/v1/posts?limit=9&offset=9")).json()
    ids1 = [p["id"] for p in page1["posts"]]
    ids2 = [p["id"] for p in page2["posts"]]

    assert page1["total"] == page2["total"] == 18
    assert set(ids1).isdisjoint(ids2)
    assert ids1 + ids2 == list(reversed(created_ids))


@pytest.mark.asyncio
async def test_list_posts_default_limit(async_client: AsyncClient):
    """Without a limit the endpoint returns ten posts."""
    for i in range(12):
        await _create_post(async_client, f"Many {i}")

    data = (await async_client.get("/api/v1/posts")).json()
    assert len(data["posts"]) == 10
    assert data["total"] == 12


@pytest.mark.asyncio
async def test_list_posts_offset_past_end(async_client: AsyncClient):
    """An offset beyond the last post returns an empty page but the real total."""
    await _create_post(async_client, "Only One")
    data = (await async_client.get("/api/v1/posts?offset=5")).json()
    assert data == {"posts": [], "total": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["limit=0", "limit=101", "offset=-1", "status=archived"])
async def test_list_posts_invalid_query_returns_422(async_client: AsyncClient, query: str):
    """Out-of-range paging and unknown statuses fail validation."""
    resp = await async_client.get(f"/api/v1/posts?{query}")
    assert resp.status_code == 422
    assert resp.json()["kind"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_list_posts_filter_by_status(async_client: AsyncClient):
    """status=published hides drafts."""
    await _create_post(async_client, "Hidden Draft")
    await _create_post(async_client, "Visible", status="published")

    data = (await async_client.get("/api/v1/posts?status=published")).json()
    assert data["total"] == 1
    assert data["posts"][0]["title"] == "Visible"


@pytest.mark.asyncio
async def test_list_posts_search(async_client: AsyncClient):
    """search matches the title or the content."""
    await _create_post(async_client, "Drizzle ORM", content="Schema first")
    await _create_post(async_client, "Deploying", content="We use Drizzle migrations")
    await _create_post(async_client, "Unrelated", content="Nothing")

    data = (await async_client.get("/api/v1/posts", params={"search": "Drizzle"})).json()
    assert data["total"] == 2
    assert {p["title"] for p in data["posts"]} == {"Drizzle ORM", "Deploying"}


@pytest.mark.asyncio
async def test_list_posts_filter_by_category(async_client: AsyncClient):
    """categoryId restricts the listing to linked posts."""
    devops = await _create_category(async_client, "DevOps")
    react = await _create_category(async_client, "React")
    await _create_post(async_client, "CI Pipelines", categoryIds=[devops])
    await _create_post(async_client, "Hooks", categoryIds=[react])

    data = (await async_client.get(f"/api/v1/posts?categoryId={devops}")).json()
    assert data["total"] == 1
    assert data["posts"][0]["title"] == "CI Pipelines"


@pytest.mark.asyncio
async def test_list_posts_empty_category_short_circuits(async_client: AsyncClient):
    """A category with no posts yields an empty result after a single lookup query."""
    empty = await _create_category(async_client, "Empty")
    await _create_post(async_client, "Elsewhere")

    resp = await async_client.get(f"/api/v1/posts?categoryId={empty}")
    assert resp.status_code == 200
    assert resp.json() == {"posts": [], "total": 0}
    assert int(resp.headers["x-query-count"]) == 1


# ---------------------------------------------------------------------------
# Create + get post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_get_post(async_client: AsyncClient):
    """A created post can be fetched by id and by slug with its categories."""
    category_id = await _create_category(async_client, "TypeScript")
    created = await _create_post(
        async_client,
        "Type-Safe APIs",
        content="Full body",
        excerpt="Short",
        categoryIds=[category_id],
    )
    assert created["slug"] == "type-safe-apis"
    assert created["status"] == "draft"
    assert created["publishedAt"] is None
    assert [c["id"] for c in created["categories"]] == [category_id]

    resp = await async_client.get(f"/api/v1/posts/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["content"] == "Full body"

    resp = await async_client.get("/api/v1/posts/slug/type-safe-apis")
    assert resp.status_code == 200
    assert resp.json()["id"] == created["id"]
    assert resp.json()["excerpt"] == "Short"


@pytest.mark.asyncio
async def test_create_published_post_sets_published_at(async_client: AsyncClient):
    """Creating with status=published stamps publishedAt."""
    created = await _create_post(async_client, "Launch", status="published")
    assert created["status"] == "published"
    assert created["publishedAt"] is not None


@pytest.mark.asyncio
async def test_create_post_accepts_snake_case_fields(async_client: AsyncClient):
    """Request bodies may use snake_case names as well as camelCase."""
    category_id = await _create_category(async_client, "Snake")
    created = await _create_post(async_client, "Snake Case", category_ids=[category_id])
    assert [c["id"] for c in created["categories"]] == [category_id]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"content": "No title"},
        {"title": "", "content": "Empty title"},
        {"title": "x" * 256, "content": "Long title"},
        {"title": "No content"},
        {"title": "Empty content", "content": ""},
        {"title": "Bad status", "content": "c", "status": "archived"},
    ],
)
async def test_create_post_invalid_payload_returns_422(async_client: AsyncClient, payload):
    """Schema violations are reported before anything is written."""
    resp = await async_client.post("/api/v1/posts", json=payload)
    assert resp.status_code == 422
    assert resp.json()["kind"] == "VALIDATION_ERROR"
    assert (await async_client.get("/api/v1/posts")).json()["total"] == 0


@pytest.mark.asyncio
async def test_create_post_unknown_category_rolls_back(async_client: AsyncClient):
    """A dangling category id fails the request and leaves no post behind."""
    resp = await async_client.post("/api/v1/posts", json={
        "title": "Dangling",
        "content": "c",
        "categoryIds": [99999],
    })
    assert resp.status_code == 409
    assert resp.json()["kind"] == "CONFLICT"
    assert (await async_client.get("/api/v1/posts")).json()["total"] == 0


@pytest.mark.asyncio
async def test_post_not_found(async_client: AsyncClient):
    """Unknown id or slug returns 404."""
    resp = await async_client.get("/api/v1/posts/99999")
    assert resp.status_code == 404
    assert resp.json() == {"kind": "NOT_FOUND", "detail": "Post not found"}
    resp = await async_client.get("/api/v1/posts/slug/nothing-here")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Update post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_post(async_client: AsyncClient):
    """Updating title and content returns the new values and a new slug."""
    created = await _create_post(async_client, "Original Title")
    resp = await async_client.put(f"/api/v1/posts/{created['id']}", json={
        "title": "Updated Title",
        "content": "Updated content",
    })
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["title"] == "Updated Title"
    assert updated["slug"] == "updated-title"
    assert updated["content"] == "Updated content"


@pytest.mark.asyncio
async def test_update_post_publish_then_unpublish(async_client: AsyncClient):
    """Publishing stamps publishedAt; unpublishing leaves it in place."""
    created = await _create_post(async_client, "Lifecycle")
    url = f"/api/v1/posts/{created['id']}"

    published = (await async_client.put(url, json={"status": "published"})).json()
    assert published["publishedAt"] is not None

    unpublished = (await async_client.put(url, json={"status": "draft"})).json()
    assert unpublished["status"] == "draft"
    assert unpublished["publishedAt"] == published["publishedAt"]


@pytest.mark.asyncio
async def test_update_post_replace_categories(async_client: AsyncClient):
    """categoryIds replaces the set; [] clears it; omitting it keeps it."""
    old = await _create_category(async_client, "Old")
    new = await _create_category(async_client, "New")
    created = await _create_post(async_client, "Relinked", categoryIds=[old])
    url = f"/api/v1/posts/{created['id']}"

    resp = await async_client.put(url, json={"categoryIds": [new]})
    assert [c["name"] for c in resp.json()["categories"]] == ["New"]

    resp = await async_client.put(url, json={"excerpt": "unchanged links"})
    assert [c["name"] for c in resp.json()["categories"]] == ["New"]

    resp = await async_client.put(url, json={"categoryIds": []})
    assert resp.json()["categories"] == []

    categories = (await async_client.get("/api/v1/categories")).json()
    assert all(c["postCount"] == 0 for c in categories)


@pytest.mark.asyncio
async def test_update_post_relink_failure_keeps_old_links(async_client: AsyncClient):
    """A failed relink rolls back the whole update, including the link delete."""
    keep = await _create_category(async_client, "Keep")
    created = await _create_post(async_client, "Atomic", categoryIds=[keep])

    resp = await async_client.put(f"/api/v1/posts/{created['id']}", json={
        "title": "Should Not Stick",
        "categoryIds": [99999],
    })
    assert resp.status_code == 409

    post = (await async_client.get(f"/api/v1/posts/{created['id']}")).json()
    assert post["title"] == "Atomic"
    assert [c["id"] for c in post["categories"]] == [keep]


@pytest.mark.asyncio
async def test_update_nonexistent_post(async_client: AsyncClient):
    """Updating a post that does not exist returns 404."""
    resp = await async_client.put("/api/v1/posts/99999", json={"title": "Ghost"})
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Delete post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_post(async_client: AsyncClient):
    """Deleting a post returns success, frees its categories, and GET then 404s."""
    category_id = await _create_category(async_client, "Freed")
    created = await _create_post(async_client, "To Delete", categoryIds=[category_id])

    resp = await async_client.delete(f"/api/v1/posts/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    resp = await async_client.get(f"/api/v1/posts/{created['id']}")
    assert resp.status_code == 404

    category = (await async_client.get(f"/api/v1/categories/{category_id}")).json()
    assert category["postCount"] == 0
    resp = await async_client.delete(f"/api/v1/categories/{category_id}")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_delete_nonexistent_post(async_client: AsyncClient):
    """Deleting a post that does not exist returns 404."""
    resp = await async_client.delete("/api/v1/posts/99999")
    assert resp.status_code == 404
