"""WordPress REST API client for WordPress-hosted kennel sites.

Security plugins and CDN rules often block HTML page requests from cloud
IPs while leaving the built-in, unauthenticated REST endpoint open. Two
endpoint forms are tried for every host variant:

1. Pretty permalink: ``/wp-json/wp/v2/posts`` (needs mod_rewrite)
2. Query string: ``/?rest_route=/wp/v2/posts`` (always available)

API docs: https://developer.wordpress.org/rest-api/reference/posts/
"""

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from hashtracks.core.deadline import Deadline
from hashtracks.core.exceptions import FetchError, HashTracksError
from hashtracks.utils.http import is_endpoint_unavailable
from hashtracks.utils.text import decode_entities
from hashtracks.utils.urls import url_variants

if TYPE_CHECKING:
    from hashtracks.core.base_adapter import BaseAdapter

DEFAULT_PER_PAGE = 10
POST_FIELDS = "title,content,link,date"


class WordPressPost(BaseModel):
    """One post from ``/wp/v2/posts``, flattened from its ``rendered`` fields."""

    title: str = ""  # Plain text
    content: str = ""  # HTML body
    url: str = ""
    date: str = ""

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> "WordPressPost":
        return cls(
            title=decode_entities((item.get("title") or {}).get("rendered") or ""),
            content=(item.get("content") or {}).get("rendered") or "",
            url=item.get("link") or "",
            date=item.get("date") or "",
        )


def post_endpoints(site_url: str) -> list[tuple[str, dict[str, Any]]]:
    """Endpoint URLs and query params to try, in order."""
    params: dict[str, Any] = {"per_page": DEFAULT_PER_PAGE, "_fields": POST_FIELDS}
    endpoints = []
    for base in url_variants(site_url):
        endpoints.append((f"{base}/wp-json/wp/v2/posts", params))
        endpoints.append((f"{base}/", {"rest_route": "/wp/v2/posts", **params}))
    return endpoints


async def fetch_wordpress_posts(
    adapter: "BaseAdapter",
    site_url: str,
    deadline: Deadline | None = None,
) -> list[WordPressPost]:
    """Fetch recent posts from a WordPress site's REST API.

    An endpoint answering 403/404, failing in transport or returning a
    non-list body moves on to the next candidate. Any other failure stops
    immediately.

    Raises:
        FetchError: When no endpoint served posts
        JSONParseError: If the last endpoint tried returned a non-JSON body
    """
    last_error: HashTracksError | None = None

    for url, params in post_endpoints(site_url):
        try:
            data = await adapter.fetch_json(url, params=params, deadline=deadline)
        except HashTracksError as e:
            if not is_endpoint_unavailable(e):
                raise
            last_error = e
            continue

        if not isinstance(data, list):
            last_error = FetchError("WordPress API returned non-array response", details={"url": url})
            continue

        return [WordPressPost.from_api(item) for item in data if isinstance(item, dict)]

    raise last_error or FetchError("WordPress API fetch failed", details={"url": site_url})
