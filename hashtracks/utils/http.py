"""SSRF-safe HTTP fetching.

Every outbound request made by an adapter goes through ``safe_fetch``: the
URL is validated before the request, redirects are followed by hand so each
hop is validated too, and httpx transport errors are mapped onto the
``FetchError`` hierarchy.
"""

from typing import Any

import httpx

from hashtracks.core.deadline import Deadline
from hashtracks.core.exceptions import (
    DeadlineExceededError,
    FetchError,
    HTTPError,
    JSONParseError,
    RequestTimeoutError,
    TooManyRedirectsError,
    UnsafeURLError,
)
from hashtracks.utils.urls import make_absolute_url, validate_url

DEFAULT_MAX_REDIRECTS = 5
REDIRECT_STATUSES = (301, 302, 303, 307, 308)
# Statuses meaning "this endpoint or host variant is not served here"
UNAVAILABLE_STATUSES = (403, 404)


async def safe_fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeout: float | None = None,
    deadline: Deadline | None = None,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
) -> httpx.Response:
    """GET a URL after SSRF validation, following redirects manually.

    Non-2xx responses are returned, not raised; callers decide what a bad
    status means for them (see ``raise_for_status``).

    Args:
        client: HTTP client to send requests with
        url: URL to fetch
        headers: Extra request headers
        params: Query parameters (sent on the first request only)
        timeout: Per-request timeout in seconds (client default if None)
        deadline: Overall deadline; bounds each request's timeout
        max_redirects: Redirect hops allowed before giving up

    Returns:
        The final, non-redirect response

    Raises:
        UnsafeURLError: If the URL or a redirect target fails validation
        TooManyRedirectsError: If the chain is longer than ``max_redirects``
        RequestTimeoutError: If a request times out
        DeadlineExceededError: If the deadline expired before a request
        FetchError: For any other transport failure
    """
    validate_url(url)
    current_url = url
    current_params = params

    for _ in range(max_redirects + 1):
        request_timeout = timeout
        if deadline is not None:
            deadline.check(current_url)
            request_timeout = deadline.bound_timeout(timeout if timeout is not None else deadline.remaining())

        kwargs: dict[str, Any] = {"headers": headers, "params": current_params, "follow_redirects": False}
        if request_timeout is not None:
            kwargs["timeout"] = request_timeout

        try:
            response = await client.get(current_url, **kwargs)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(current_url, request_timeout) from e
        except httpx.HTTPError as e:
            error = FetchError(f"Request failed: {e}", details={"url": current_url})
            error.url = current_url
            raise error from e

        location = response.headers.get("location")
        if response.status_code not in REDIRECT_STATUSES or not location:
            return response

        current_url = make_absolute_url(location, str(response.url))
        validate_url(current_url)
        # The Location header carries its own query string
        current_params = None

    raise TooManyRedirectsError(url, max_redirects)


def raise_for_status(response: httpx.Response) -> httpx.Response:
    """Raise ``HTTPError`` for a non-2xx response, else return it."""
    if not response.is_success:
        raise HTTPError(
            f"HTTP {response.status_code}",
            status_code=response.status_code,
            url=str(response.url),
        )
    return response


def is_endpoint_unavailable(error: Exception) -> bool:
    """True if trying another endpoint or host variant could succeed.

    That is a 403/404, a transport failure or an unreadable body. Server
    errors, unsafe URLs and an expired deadline are final.
    """
    if isinstance(error, (DeadlineExceededError, UnsafeURLError)):
        return False
    if isinstance(error, HTTPError):
        return error.status_code in UNAVAILABLE_STATUSES
    return isinstance(error, (FetchError, JSONParseError))
