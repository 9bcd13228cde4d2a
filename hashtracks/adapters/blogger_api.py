"""Blogger API v3 client used by Blogspot-hosted kennel sites.

Blogger refuses many server-side page requests with 403. The API, keyed
with the same ``GOOGLE_CALENDAR_API_KEY`` as Calendar and Sheets, serves
the same posts as JSON.

API docs: https://developers.google.com/blogger/docs/3.0/using
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel

from hashtracks.core.deadline import Deadline
from hashtracks.core.exceptions import FetchError

if TYPE_CHECKING:
    from hashtracks.core.base_adapter import BaseAdapter

BLOGGER_API_BASE = "https://www.googleapis.com/blogger/v3"
DEFAULT_MAX_RESULTS = 25


class BloggerPost(BaseModel):
    """One post as returned by ``/blogs/{id}/posts``."""

    title: str = ""
    content: str = ""  # HTML body
    url: str = ""
    published: str = ""


async def fetch_blogger_posts(
    adapter: "BaseAdapter",
    blog_url: str,
    api_key: str,
    max_results: int = DEFAULT_MAX_RESULTS,
    deadline: Deadline | None = None,
) -> list[BloggerPost]:
    """Fetch recent posts of a blog by its public URL.

    Looks the blog ID up via ``/blogs/byurl``, then lists its posts with
    bodies. The key travels in the ``X-Goog-Api-Key`` header so it never
    appears in a logged URL.

    Args:
        adapter: Adapter whose HTTP client and SSRF guard to use
        blog_url: Public blog URL (custom domain or blogspot.com)
        api_key: Google API key
        max_results: Maximum posts to return
        deadline: Optional overall deadline

    Returns:
        Posts, newest first

    Raises:
        FetchError: On any HTTP failure or when the blog cannot be found
        JSONParseError: If a response body is not JSON
    """
    headers = {"X-Goog-Api-Key": api_key}

    blog = await adapter.fetch_json(
        f"{BLOGGER_API_BASE}/blogs/byurl",
        params={"url": blog_url},
        headers=headers,
        deadline=deadline,
    )
    blog_id = blog.get("id") if isinstance(blog, dict) else None
    if not blog_id:
        raise FetchError("Blogger API returned no blog ID", details={"url": blog_url})

    data = await adapter.fetch_json(
        f"{BLOGGER_API_BASE}/blogs/{blog_id}/posts",
        params={"maxResults": max_results, "fetchBodies": "true"},
        headers=headers,
        deadline=deadline,
    )
    items = data.get("items", []) if isinstance(data, dict) else []
    return [BloggerPost.model_validate(item) for item in items if isinstance(item, dict)]
