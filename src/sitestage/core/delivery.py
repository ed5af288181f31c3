"""Terminal responses.

Every request ends in exactly one of these. Handlers return the response
they build, so a second write on the same request cannot happen.
"""

from aiohttp import web

OK = 200


def respond_success(mime_type: str, body: bytes, status: int = OK) -> web.Response:
    """Deliver content with a single Content-Type header.

    Args:
        mime_type: Content type, sent verbatim
        body: Entire response body
        status: HTTP status code

    Returns:
        Response ready to be returned from a handler
    """
    return web.Response(status=status, body=body, content_type=mime_type)


def respond_failure(status: int, message: str) -> web.Response:
    """Give a minimal plain-text failure response."""
    return web.Response(
        status=status,
        body=message.encode("utf-8"),
        content_type="text/plain",
    )
