"""Placeholder substitution for site pages.

HTML pages mark dynamic spots with comments such as ``<!-- $page_header -->``.
Each placeholder name maps to a provider function; which providers apply
depends on the kind of page being served. Placeholders without a provider
for the page are left as they are.
"""

import html
import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import parse_qsl

from sitestage.core.content_types import XHTML
from sitestage.core.paths import SiteFilesystem
from sitestage.core.types import SitePath
from sitestage.stories import StoryList
from sitestage.store import SiteStore

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"<!--\s*\$(\w+)\s*-->")

NAVBAR_PATH = SitePath("/page_navbar.html")
FOOTER_PATH = SitePath("/page_footer.html")
STORIES_DIR = "stories"


class PageKind(Enum):
    """Page identity used to pick placeholder providers."""

    HOME = "home"
    SECTION = "section"
    STORIES = "stories"


@dataclass(frozen=True)
class Page:
    """A page being transformed."""

    kind: PageKind
    name: str
    params: dict[str, str] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.name[:1].upper() + self.name[1:]


def identify_page(site_path: str, query: str = "") -> Page:
    """Work out the page kind from the directory containing the file.

    Args:
        site_path: Site path of the file, e.g. "/About/index.html"
        query: Raw query string of the request

    Returns:
        Page with kind, directory name and decoded query parameters
    """
    params = dict(parse_qsl(query, keep_blank_values=True))
    directory = site_path.rsplit("/", 1)[0]
    name = directory.rsplit("/", 1)[-1]
    if not directory:
        return Page(PageKind.HOME, "", params)
    if name == STORIES_DIR:
        return Page(PageKind.STORIES, name, params)
    return Page(PageKind.SECTION, name, params)


Provider = Callable[[Page], Awaitable[str]]
DataProvider = Callable[[Page], Awaitable[object]]


class TemplateEngine:
    """Applies placeholder providers to XHTML pages."""

    def __init__(
        self,
        filesystem: SiteFilesystem,
        stories: StoryList,
        store: SiteStore | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            filesystem: Site filesystem, used for header and footer partials
            stories: Stories shown in the dropdown and story pages
            store: Data source for story data requests
        """
        self._filesystem = filesystem
        self._stories = stories
        self._store = store

        common: dict[str, Provider] = {"handle_stories_dropdown": self._stories_dropdown}
        framed: dict[str, Provider] = {
            **common,
            "page_header": self._page_header,
            "page_footer": self._page_footer,
            "page_name": self._page_name,
        }
        self._providers: dict[PageKind, dict[str, Provider]] = {
            PageKind.HOME: common,
            PageKind.SECTION: framed,
            PageKind.STORIES: {**framed, "story_js": self._story_js},
        }
        self._story_data: dict[str, DataProvider] = {
            "the_passage_of_time": self._passage_of_time,
        }

    async def transform(
        self,
        body: bytes,
        site_path: str,
        mime_type: str,
        query: str,
    ) -> tuple[bytes, str]:
        """Post-process file content before delivery.

        Only XHTML pages are changed. A story page requested with more than
        one query parameter and a story that has data is answered with that
        data as JSON instead of the page.

        Args:
            body: File content
            site_path: Site path of the file
            mime_type: Content type from the type table
            query: Raw query string

        Returns:
            Tuple of (content, content type)
        """
        if mime_type != XHTML:
            return body, mime_type

        page = identify_page(site_path, query)

        if page.kind is PageKind.STORIES and len(page.params) > 1:
            data_provider = self._story_data.get(page.params.get("s", ""))
            if data_provider is not None:
                data = await data_provider(page)
                return json.dumps(data).encode("utf-8"), "application/json"

        text = await self.render(body.decode("utf-8", errors="replace"), page)
        return text.encode("utf-8"), mime_type

    async def render(self, text: str, page: Page) -> str:
        """Replace every placeholder that has a provider for the page kind."""
        providers = self._providers[page.kind]
        values: dict[str, str] = {}
        for match in PLACEHOLDER_RE.finditer(text):
            name = match.group(1)
            if name in providers and name not in values:
                values[name] = await providers[name](page)

        if not values:
            return text

        def substitute(match: re.Match[str]) -> str:
            return values.get(match.group(1), match.group(0))

        return PLACEHOLDER_RE.sub(substitute, text)

    async def _partial(self, path: SitePath) -> str:
        content = await self._filesystem.read_file(path)
        return content.decode("utf-8", errors="replace")

    async def _page_header(self, page: Page) -> str:
        return await self._partial(NAVBAR_PATH)

    async def _page_footer(self, page: Page) -> str:
        return await self._partial(FOOTER_PATH)

    async def _page_name(self, page: Page) -> str:
        return html.escape(page.title)

    async def _stories_dropdown(self, page: Page) -> str:
        return "".join(
            f'<a class="dropdown-item" href="/stories/?s={story.slug}">{html.escape(story.name)}</a>'
            for story in self._stories
        )

    async def _story_js(self, page: Page) -> str:
        story = self._stories.get(page.params.get("s"))
        script = story.slug if story is not None else "default"
        return f'<script type="text/javascript" src="/stories/{script}.js" defer="defer"></script>'

    async def _passage_of_time(self, page: Page) -> object:
        if self._store is None:
            logger.warning("Story data requested but no store is configured")
            return []
        return await self._store.passage_of_time()
