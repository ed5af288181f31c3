"""Shared test fixtures."""

import asyncio
import sqlite3
from collections import Counter
from pathlib import Path

import pytest
from sitestage.config import Config, DatabaseConfig, ServerConfig, SiteConfig
from sitestage.context import SiteContext
from sitestage.core.paths import DirEntry, LocalFilesystem
from sitestage.core.types import SitePath
from sitestage.stories import StoryList
from sitestage.store import SiteStore

STORY_NAMES = ["The Passage of Time", "One Earth"]

INDEX_HTML = """<html xmlns="http://www.w3.org/1999/xhtml"><body>
<nav><!-- $handle_stories_dropdown --></nav>
<main>Home</main>
</body></html>"""

SECTION_HTML = """<html xmlns="http://www.w3.org/1999/xhtml"><body>
<!-- $page_header -->
<h1><!-- $page_name --></h1>
<nav><!-- $handle_stories_dropdown --></nav>
<!-- $page_footer -->
</body></html>"""

STORIES_HTML = """<html xmlns="http://www.w3.org/1999/xhtml"><body>
<!-- $page_header -->
<!-- $story_js -->
<!-- $page_footer -->
</body></html>"""


class RecordingFilesystem(LocalFilesystem):
    """LocalFilesystem that counts listings and can hold them open."""

    def __init__(self, root: Path) -> None:
        super().__init__(root)
        self.listed: Counter[str] = Counter()
        self.gate: asyncio.Event | None = None

    async def list_dir(self, path: SitePath) -> list[DirEntry]:
        self.listed[path] += 1
        if self.gate is not None:
            await self.gate.wait()
        return await super().list_dir(path)


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Create a site with a home page, sections, stories and partials."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML)
    (root / "page_navbar.html").write_text("<header>NAVBAR</header>")
    (root / "page_footer.html").write_text("<footer>FOOTER</footer>")
    (root / "style.css").write_text("body { color: black; }")

    about = root / "About"
    about.mkdir()
    (about / "index.html").write_text(SECTION_HTML)
    (about / "notes.docx").write_bytes(b"PK\x03\x04")
    (about / "logo.png").write_bytes(b"\x89PNG\r\n")

    stories = root / "stories"
    stories.mkdir()
    (stories / "index.html").write_text(STORIES_HTML)

    contact = root / "contact"
    contact.mkdir()
    (contact / "index.html").write_text(SECTION_HTML)

    data = root / "data"
    data.mkdir()
    (data / "index.html").write_text(SECTION_HTML)

    return root


@pytest.fixture
def databases(tmp_path: Path) -> DatabaseConfig:
    """Create meta, data and contact databases with sample rows."""
    meta_db = tmp_path / "meta_db.sqlite"
    data_db = tmp_path / "data_db.sqlite"
    contact_db = tmp_path / "contact_db.sqlite"

    with sqlite3.connect(meta_db) as db:
        db.execute("create table stories (name text)")
        db.executemany("insert into stories values (?)", [(name,) for name in STORY_NAMES])
        db.execute("create table categories (category_id integer, name text)")
        db.executemany(
            "insert into categories values (?, ?)",
            [(0, "Health"), (1, "Economy")],
        )

    with sqlite3.connect(data_db) as db:
        db.execute(
            "create table sources "
            "(source_id integer, category_id integer, author text, reference_link text)",
        )
        db.executemany(
            "insert into sources values (?, ?, ?, ?)",
            [(0, 0, "WHO", "https://who.example"), (1, 1, "IMF", "https://imf.example")],
        )
        db.execute("create table countries (country_id integer, name text)")
        db.execute("insert into countries values (0, 'Aland')")
        db.execute("create table cases_country_0 (date text, cases integer, source_id integer)")
        db.execute("insert into cases_country_0 values ('2020/3/1', 12, 0)")

    with sqlite3.connect(contact_db) as db:
        db.execute(
            "create table messages "
            "(contact_id integer, date text, name text, email text, subject text, message text)",
        )
        db.execute(
            "insert into messages values (1, '2020/1/1', 'First', 'a@b.co', 'Subject', 'Message')",
        )

    return DatabaseConfig(meta_db=meta_db, data_db=data_db, contact_db=contact_db)


@pytest.fixture
def store(databases: DatabaseConfig) -> SiteStore:
    return SiteStore(databases.meta_db, databases.data_db, databases.contact_db)


@pytest.fixture
def recording_fs(site_root: Path) -> RecordingFilesystem:
    return RecordingFilesystem(site_root)


@pytest.fixture
def context(site_root: Path, store: SiteStore, recording_fs: RecordingFilesystem) -> SiteContext:
    """Create an isolated site context over the sample site."""
    return SiteContext.build(
        site_root,
        StoryList(STORY_NAMES),
        store=store,
        filesystem=recording_fs,
    )


@pytest.fixture
def test_config(site_root: Path, databases: DatabaseConfig) -> Config:
    """Create a configuration pointing at the sample site and databases."""
    return Config(
        server=ServerConfig(),
        site=SiteConfig(root_dir=site_root),
        database=databases,
    )
