"""URL resolution.

Maps a raw request target to a file in the site, or to the reason it cannot
be served. Apart from the directory listings the path cache performs, this
is a pure function of the cache state.
"""

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from sitestage.core.content_types import TypeTable
from sitestage.core.paths import PathCache
from sitestage.core.types import SitePath

DEFAULT_INDEX = "index.html"


@dataclass(frozen=True)
class Deliverable:
    """A site file that exists with exact case and has a servable type."""

    site_path: SitePath
    file_path: Path
    mime_type: str
    query: str


@dataclass(frozen=True)
class NotFound:
    """Path is absent, or present only under a different letter case."""

    site_path: str


@dataclass(frozen=True)
class UnsupportedType:
    """Path exists but its extension is unknown or refused."""

    site_path: SitePath


Outcome = Deliverable | NotFound | UnsupportedType


def split_url(raw_url: str) -> tuple[str, str]:
    """Split a request target into path and query at the last "?".

    Returns:
        Tuple of (path, query); query is "" when there is no "?"
    """
    loc = raw_url.rfind("?")
    if loc == -1:
        return raw_url, ""
    return raw_url[:loc], raw_url[loc + 1 :]


class Resolver:
    """Resolves raw URLs against the path cache and type table."""

    def __init__(
        self,
        root: Path,
        cache: PathCache,
        types: TypeTable,
        *,
        index_document: str = DEFAULT_INDEX,
    ) -> None:
        """Initialize resolver.

        Args:
            root: Directory corresponding to the "/" URL
            cache: Path cache for case-exact membership checks
            types: Extension to content type table
            index_document: File served for URLs ending with "/"
        """
        self._root = root
        self._cache = cache
        self._types = types
        self._index_document = index_document

    @property
    def index_document(self) -> str:
        return self._index_document

    async def resolve(self, raw_url: str) -> Outcome:
        """Resolve a raw URL.

        Args:
            raw_url: Request target as received, e.g. "/About/?x=1"

        Returns:
            Deliverable, NotFound or UnsupportedType
        """
        raw_path, query = split_url(raw_url)
        path = unquote(raw_path)
        if path.endswith("/"):
            path += self._index_document

        if not await self._cache.contains_or_discover(path):
            return NotFound(path)

        site_path = SitePath(path)
        lookup = self._types.for_path(path)
        if not lookup.servable or lookup.mime_type is None:
            return UnsupportedType(site_path)

        return Deliverable(
            site_path=site_path,
            file_path=self._root / path.lstrip("/"),
            mime_type=lookup.mime_type,
            query=query,
        )
