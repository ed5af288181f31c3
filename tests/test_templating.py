"""Tests for placeholder substitution."""

import json
from pathlib import Path

import pytest
from sitestage.core.paths import LocalFilesystem
from sitestage.stories import StoryList
from sitestage.store import SiteStore
from sitestage.templating import Page, PageKind, TemplateEngine, identify_page

from tests.conftest import STORY_NAMES


@pytest.fixture
def engine(site_root: Path, store: SiteStore) -> TemplateEngine:
    return TemplateEngine(LocalFilesystem(site_root), StoryList(STORY_NAMES), store)


class TestIdentifyPage:
    """Tests for identify_page()."""

    def test__root_file__is_home(self) -> None:
        page = identify_page("/index.html")

        assert page.kind is PageKind.HOME

    def test__stories_directory__is_stories(self) -> None:
        page = identify_page("/stories/index.html", "s=one_earth")

        assert page.kind is PageKind.STORIES
        assert page.params == {"s": "one_earth"}

    def test__other_directory__is_section_named_after_it(self) -> None:
        """Name a section after the directory holding the file."""
        page = identify_page("/Projects/2020/index.html")

        assert page.kind is PageKind.SECTION
        assert page.name == "2020"

    def test__title__capitalises_first_letter(self) -> None:
        assert Page(PageKind.SECTION, "about").title == "About"


class TestTransform:
    """Tests for TemplateEngine.transform()."""

    @pytest.mark.asyncio
    async def test__non_html__is_returned_unchanged(self, engine: TemplateEngine) -> None:
        """Leave content of other types untouched."""
        body = b"body { color: black; } /* <!-- $page_header --> */"

        content, mime_type = await engine.transform(body, "/style.css", "text/css", "")

        assert content == body
        assert mime_type == "text/css"

    @pytest.mark.asyncio
    async def test__home_page__gets_dropdown_only(self, engine: TemplateEngine) -> None:
        """Fill the stories dropdown on the home page without header or footer."""
        body = b"<!-- $handle_stories_dropdown --><!-- $page_header -->"

        content, _ = await engine.transform(body, "/index.html", "application/xhtml+xml", "")

        text = content.decode()
        assert (
            '<a class="dropdown-item" href="/stories/?s=the_passage_of_time">'
            "The Passage of Time</a>"
        ) in text
        assert 'href="/stories/?s=one_earth">One Earth</a>' in text
        assert "<!-- $page_header -->" in text

    @pytest.mark.asyncio
    async def test__section_page__gets_header_footer_and_name(
        self, engine: TemplateEngine
    ) -> None:
        """Insert partials and the section name on section pages."""
        body = b"<!-- $page_header --><h1><!-- $page_name --></h1><!-- $page_footer -->"

        content, _ = await engine.transform(
            body, "/contact/index.html", "application/xhtml+xml", ""
        )

        assert content.decode() == (
            "<header>NAVBAR</header><h1>Contact</h1><footer>FOOTER</footer>"
        )

    @pytest.mark.asyncio
    async def test__unknown_placeholder__is_left_in_place(
        self, engine: TemplateEngine
    ) -> None:
        body = b"<p><!-- $not_a_placeholder --></p>"

        content, _ = await engine.transform(
            body, "/About/index.html", "application/xhtml+xml", ""
        )

        assert content == body

    @pytest.mark.asyncio
    async def test__story_page__loads_selected_story_script(
        self, engine: TemplateEngine
    ) -> None:
        """Load the script of the story named in the query."""
        content, _ = await engine.transform(
            b"<!-- $story_js -->", "/stories/index.html", "application/xhtml+xml", "s=one_earth"
        )

        assert 'src="/stories/one_earth.js"' in content.decode()

    @pytest.mark.asyncio
    async def test__story_page__unknown_story_loads_default_script(
        self, engine: TemplateEngine
    ) -> None:
        content, _ = await engine.transform(
            b"<!-- $story_js -->", "/stories/index.html", "application/xhtml+xml", "s=nope"
        )

        assert 'src="/stories/default.js"' in content.decode()

    @pytest.mark.asyncio
    async def test__story_js__only_on_story_page(self, engine: TemplateEngine) -> None:
        content, _ = await engine.transform(
            b"<!-- $story_js -->", "/About/index.html", "application/xhtml+xml", "s=one_earth"
        )

        assert content == b"<!-- $story_js -->"

    @pytest.mark.asyncio
    async def test__story_data_request__returns_json(self, engine: TemplateEngine) -> None:
        """Answer a story page with extra parameters with the story's data."""
        content, mime_type = await engine.transform(
            b"<!-- $story_js -->",
            "/stories/index.html",
            "application/xhtml+xml",
            "s=the_passage_of_time&data=1",
        )

        assert mime_type == "application/json"
        data = json.loads(content)
        assert data == [
            {
                "country": "Aland",
                "data": [
                    {
                        "date": "2020/3/1",
                        "cases": 12,
                        "source_author": "WHO",
                        "source_link": "https://who.example",
                    },
                ],
            },
        ]

    @pytest.mark.asyncio
    async def test__story_without_data__renders_page(self, engine: TemplateEngine) -> None:
        """Render the page when the story has no data provider."""
        content, mime_type = await engine.transform(
            b"<!-- $story_js -->",
            "/stories/index.html",
            "application/xhtml+xml",
            "s=one_earth&data=1",
        )

        assert mime_type == "application/xhtml+xml"
        assert b"one_earth.js" in content

    @pytest.mark.asyncio
    async def test__missing_partial__raises(self, tmp_path: Path) -> None:
        """Propagate a missing header partial as a filesystem error."""
        engine = TemplateEngine(LocalFilesystem(tmp_path), StoryList(STORY_NAMES))

        with pytest.raises(FileNotFoundError):
            await engine.transform(
                b"<!-- $page_header -->", "/About/index.html", "application/xhtml+xml", ""
            )
