"""Per-application site state.

Everything that lives for the lifetime of the server (the path cache, the
type table, the loaded stories) is owned by one SiteContext. Each aiohttp
application holds its own, so tests can build isolated instances.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from sitestage.config import Config
from sitestage.core.content_types import TypeTable
from sitestage.core.paths import LocalFilesystem, PathCache, SiteFilesystem
from sitestage.core.resolver import Resolver
from sitestage.errors import BackingStoreFailure, StartupError
from sitestage.stories import StoryList
from sitestage.store import SiteStore
from sitestage.templating import TemplateEngine

logger = logging.getLogger(__name__)


@dataclass
class SiteContext:
    """Site state shared by all requests of one application."""

    root: Path
    filesystem: SiteFilesystem
    cache: PathCache
    types: TypeTable
    resolver: Resolver
    stories: StoryList
    store: SiteStore | None
    templates: TemplateEngine

    @classmethod
    def build(
        cls,
        root: Path,
        stories: StoryList,
        *,
        store: SiteStore | None = None,
        index_document: str = "index.html",
        types: TypeTable | None = None,
        filesystem: SiteFilesystem | None = None,
    ) -> "SiteContext":
        """Assemble a context with a fresh path cache seeded with "/".

        Args:
            root: Site root directory
            stories: Stories loaded from the meta database
            store: Database access for data endpoints
            index_document: File served for URLs ending with "/"
            types: Type table (default: built-in table)
            filesystem: Filesystem collaborator (default: local directory)

        Returns:
            SiteContext instance
        """
        fs = filesystem if filesystem is not None else LocalFilesystem(root)
        table = types if types is not None else TypeTable()
        cache = PathCache(fs)
        return cls(
            root=root,
            filesystem=fs,
            cache=cache,
            types=table,
            resolver=Resolver(root, cache, table, index_document=index_document),
            stories=stories,
            store=store,
            templates=TemplateEngine(fs, stories, store),
        )


def check_site_root(root: Path, index_document: str) -> None:
    """Check that the site root and its index document are readable.

    Raises:
        StartupError: If either is missing or inaccessible
    """
    if not root.is_dir() or not os.access(root, os.R_OK | os.X_OK):
        raise StartupError(f"Site root is not accessible: {root}")
    index = root / index_document
    if not index.is_file() or not os.access(index, os.R_OK):
        raise StartupError(f"Index document is not accessible: {index}")


async def load_stories(store: SiteStore) -> StoryList:
    """Load the stories list, which must not be empty.

    Raises:
        StartupError: If the stories cannot be loaded or there are none
    """
    try:
        names = await store.load_stories()
    except BackingStoreFailure as e:
        raise StartupError(f"Failed to load stories from {store.meta_db}") from e
    if not names:
        raise StartupError(f"No stories found in {store.meta_db}")
    return StoryList(names)


async def load_site_context(config: Config) -> SiteContext:
    """Run startup checks and build the site context.

    Args:
        config: Application configuration

    Returns:
        SiteContext ready to serve

    Raises:
        StartupError: If the site is not usable
    """
    store = SiteStore(
        config.database.meta_db,
        config.database.data_db,
        config.database.contact_db,
    )
    stories = await load_stories(store)
    check_site_root(config.site.root_dir, config.site.index_document)
    logger.info(f"Loaded {len(stories)} stories")

    return SiteContext.build(
        config.site.root_dir,
        stories,
        store=store,
        index_document=config.site.index_document,
    )
