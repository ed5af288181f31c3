"""Error taxonomy for request handling and startup.

Request-time errors carry the HTTP status and the short reason sent to the
client. They are converted to a single failure response by the request
handler and never escape to the event loop.
"""


class SiteError(Exception):
    """Base class for errors answered with a plain-text failure response."""

    status: int = 500
    reason: str = "Internal error."

    def __init__(self, reason: str | None = None) -> None:
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)


class PathNotResolvable(SiteError):
    """URL path is absent from the site or differs from it in case."""

    status = 404
    reason = "URL not found (check case)"


class UnsupportedType(SiteError):
    """File extension is missing, unknown or explicitly refused."""

    status = 415
    reason = "File type not supported"


class MalformedRequest(SiteError):
    """Method and query do not match any known route, or form input is invalid."""

    status = 415
    reason = "Bad URL format."


class BackingStoreFailure(SiteError):
    """Database lookup or insert failed."""

    status = 500
    reason = "Database error."


class StartupError(Exception):
    """Site is not usable; the server must not start."""
