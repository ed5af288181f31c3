"""Case-exact index of site paths.

URLs are matched against names exactly as the filesystem reports them in
directory listings, so a site that works here keeps working after a move to
a case-sensitive platform, even when the local filesystem folds case.

The index starts with only the root and grows on demand: resolving a path
first resolves its parent, then lists the parent once and records every
child. Entries are never removed, so a layout change while the server runs
needs a restart.
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sitestage.core.types import ROOT, SitePath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirEntry:
    """Directory listing entry."""

    name: str
    is_dir: bool


class SiteFilesystem(Protocol):
    """Read-only filesystem operations the pipeline depends on."""

    async def list_dir(self, path: SitePath) -> list[DirEntry]: ...

    async def read_file(self, path: SitePath) -> bytes: ...


class LocalFilesystem:
    """SiteFilesystem over a local directory.

    Blocking calls run in worker threads so the event loop keeps serving
    other requests while a listing or read is in progress.
    """

    def __init__(self, root: Path) -> None:
        """Initialize filesystem.

        Args:
            root: Directory corresponding to the "/" URL
        """
        self._root = root

    @property
    def root(self) -> Path:
        """Site root directory."""
        return self._root

    def locate(self, path: SitePath) -> Path:
        """Map a site path to its location on disk."""
        return self._root / path.lstrip("/")

    async def list_dir(self, path: SitePath) -> list[DirEntry]:
        return await asyncio.to_thread(self._scan, self.locate(path))

    async def read_file(self, path: SitePath) -> bytes:
        return await asyncio.to_thread(self.locate(path).read_bytes)

    @staticmethod
    def _scan(directory: Path) -> list[DirEntry]:
        with os.scandir(directory) as entries:
            return [DirEntry(entry.name, entry.is_dir()) for entry in entries]


def parent_of(path: str) -> str:
    """Return the parent directory of a site path.

    The parent is everything up to and including the last "/" before the
    final segment, so "/a/b.html" and "/a/b/" both have parent "/a/".
    """
    n = path.rfind("/", 0, len(path) - 1)
    return path[: n + 1]


class PathCache:
    """Verified set of site paths, populated lazily from directory listings.

    A path is a member only if it was returned, byte for byte, by a listing
    of its parent, and every ancestor directory is itself a member. Each
    directory is listed at most once; concurrent requests that need the same
    directory wait for the single listing already in flight.
    """

    __slots__ = ("_expanded", "_filesystem", "_listings", "_paths", "_pending")

    def __init__(self, filesystem: SiteFilesystem) -> None:
        """Initialize cache seeded with the root path.

        Args:
            filesystem: Source of directory listings
        """
        self._filesystem = filesystem
        self._paths: set[str] = {ROOT}
        self._expanded: set[str] = set()
        self._pending: dict[str, asyncio.Future[None]] = {}
        self._listings = 0

    @property
    def listings(self) -> int:
        """Number of directory listings performed so far."""
        return self._listings

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    async def contains_or_discover(self, path: str) -> bool:
        """Check whether a path exists in the site with exactly this case.

        Args:
            path: Site path, directories ending with "/"

        Returns:
            True if the path is (or has now been discovered to be) a member
        """
        if path in self._paths:
            return True
        if not path.startswith("/"):
            return False

        parent = parent_of(path)
        if await self.contains_or_discover(parent):
            await self._expand(parent)
        return path in self._paths

    async def _expand(self, folder: str) -> None:
        """List a directory once and record its children."""
        while folder not in self._expanded:
            pending = self._pending.get(folder)
            if pending is not None:
                # Another request is listing this folder; if it fails or is
                # cancelled the folder stays unexpanded and we try ourselves.
                await asyncio.shield(pending)
                continue

            future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._pending[folder] = future
            try:
                entries = await self._list(folder)
                if entries is not None:
                    self._add_contents(folder, entries)
                    self._expanded.add(folder)
            finally:
                del self._pending[folder]
                future.set_result(None)
            return

    async def _list(self, folder: str) -> list[DirEntry] | None:
        self._listings += 1
        logger.debug(f"Listing {folder}")
        try:
            return await self._filesystem.list_dir(SitePath(folder))
        except OSError as e:
            logger.warning(f"Could not list {folder}: {e}")
            return None

    def _add_contents(self, folder: str, entries: list[DirEntry]) -> None:
        for entry in entries:
            path = folder + entry.name
            if entry.is_dir:
                path += "/"
            self._paths.add(path)
