"""SQLite-backed data for the dynamic parts of the site.

Three databases are used:
    meta_db     stories and categories
    data_db     sources, countries and per-country case series
    contact_db  messages submitted through the contact form

Each operation opens its own connection. Any database error is reported as
BackingStoreFailure so the request handler can answer with a 500.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import Any

import aiosqlite

from sitestage.errors import BackingStoreFailure
from sitestage.forms import ContactMessage

logger = logging.getLogger(__name__)

# Country tables are numbered cases_country_0 .. cases_country_194
COUNTRY_COUNT = 195

Row = dict[str, Any]


class SiteStore:
    """Queries and inserts against the site databases."""

    def __init__(self, meta_db: Path, data_db: Path, contact_db: Path) -> None:
        """Initialize store.

        Args:
            meta_db: Database with stories and categories tables
            data_db: Database with sources, countries and case tables
            contact_db: Database with the messages table
        """
        self._meta_db = meta_db
        self._data_db = data_db
        self._contact_db = contact_db

    @property
    def meta_db(self) -> Path:
        return self._meta_db

    @property
    def data_db(self) -> Path:
        return self._data_db

    @property
    def contact_db(self) -> Path:
        return self._contact_db

    @asynccontextmanager
    async def _connect(self, path: Path) -> AsyncIterator[aiosqlite.Connection]:
        # sqlite would silently create a missing database
        if not path.is_file():
            logger.error(f"Database not found: {path}")
            raise BackingStoreFailure()
        try:
            async with aiosqlite.connect(path) as db:
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as e:
            logger.error(f"Database error on {path.name}: {e}")
            raise BackingStoreFailure() from e

    async def _all(self, db: aiosqlite.Connection, sql: str, params: tuple[Any, ...] = ()) -> list[Row]:
        async with db.execute(sql, params) as cursor:
            return [dict(row) for row in await cursor.fetchall()]

    async def load_stories(self) -> list[str]:
        """Return story names in table order."""
        async with self._connect(self._meta_db) as db:
            rows = await self._all(db, "select name from stories")
        return [row["name"] for row in rows]

    async def categories(self) -> list[Row]:
        """Return all category rows."""
        async with self._connect(self._meta_db) as db:
            return await self._all(db, "select * from categories")

    async def categories_with_sources(self) -> list[Row]:
        """Return category rows, each with a "sources" list of its source rows."""
        categories = await self.categories()
        async with self._connect(self._data_db) as db:
            for category in categories:
                category["sources"] = await self._all(
                    db,
                    "select * from sources where category_id = ?",
                    (category["category_id"],),
                )
        return categories

    async def insert_message(self, message: ContactMessage, *, today: date | None = None) -> int:
        """Store a contact form message.

        Args:
            message: Validated form content
            today: Date stamp to record (default: current date)

        Returns:
            Id assigned to the new message
        """
        stamp = today or date.today()
        now = f"{stamp.year}/{stamp.month}/{stamp.day}"
        async with self._connect(self._contact_db) as db:
            rows = await self._all(
                db,
                "select contact_id from messages order by contact_id desc limit 1",
            )
            contact_id = rows[0]["contact_id"] + 1 if rows else 0
            await db.execute(
                "insert into messages values (?, ?, ?, ?, ?, ?)",
                (contact_id, now, message.name, message.email, message.subject, message.message),
            )
            await db.commit()
        logger.info(f"Stored contact message {contact_id}")
        return contact_id

    async def passage_of_time(self) -> list[Row]:
        """Return case series for every country that has data.

        Each item is ``{"country": name, "data": [rows]}``; the source id of
        every row is replaced by the source's author and reference link.
        """
        content: list[Row] = []
        async with self._connect(self._data_db) as db:
            for country_id in range(COUNTRY_COUNT):
                try:
                    cases = await self._all(db, f"select * from cases_country_{country_id}")
                    country = await self._all(
                        db,
                        "select name from countries where country_id = ?",
                        (country_id,),
                    )
                except aiosqlite.OperationalError:
                    logger.debug(f"No data for country with id {country_id}")
                    continue
                if not country:
                    logger.debug(f"No name for country with id {country_id}")
                    continue
                content.append({"country": country[0]["name"], "data": cases})

            sources = await self._all(db, "select source_id, author, reference_link from sources")

        by_id = {source["source_id"]: source for source in sources}
        for entry in content:
            for row in entry["data"]:
                source = by_id.get(row.pop("source_id", None), {})
                row["source_author"] = source.get("author")
                row["source_link"] = source.get("reference_link")
        return content
