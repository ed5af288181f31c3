"""Stories listed in the site navigation."""

import re
from dataclasses import dataclass

_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.ASCII)


def story_slug(name: str) -> str:
    """Build the URL slug for a story name.

    Lowercases, drops punctuation and turns spaces into underscores, so
    "The Passage of Time" becomes "the_passage_of_time".
    """
    return _PUNCTUATION_RE.sub("", name.lower()).replace(" ", "_")


@dataclass(frozen=True)
class Story:
    """A story page variant."""

    name: str
    slug: str

    @classmethod
    def from_name(cls, name: str) -> "Story":
        return cls(name=name, slug=story_slug(name))


class StoryList:
    """Immutable list of stories loaded at startup."""

    __slots__ = ("_by_slug", "_stories")

    def __init__(self, names: list[str]) -> None:
        self._stories = tuple(Story.from_name(name) for name in names)
        self._by_slug = {story.slug: story for story in self._stories}

    def __iter__(self):
        return iter(self._stories)

    def __len__(self) -> int:
        return len(self._stories)

    def __bool__(self) -> bool:
        return bool(self._stories)

    @property
    def names(self) -> list[str]:
        return [story.name for story in self._stories]

    def get(self, slug: str | None) -> Story | None:
        """Find a story by slug."""
        if slug is None:
            return None
        return self._by_slug.get(slug)
