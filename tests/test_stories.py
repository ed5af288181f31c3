"""Tests for story names and slugs."""

import pytest
from sitestage.stories import StoryList, story_slug


class TestStorySlug:
    """Tests for story_slug()."""

    @pytest.mark.parametrize(
        ("name", "slug"),
        [
            ("The Passage of Time", "the_passage_of_time"),
            ("One Earth", "one_earth"),
            ("What's next?", "whats_next"),
        ],
    )
    def test__punctuation_dropped_and_spaces_joined(self, name: str, slug: str) -> None:
        assert story_slug(name) == slug

    def test__non_ascii_letters__are_dropped(self) -> None:
        """Keep slugs to ASCII word characters so they are safe in URLs."""
        assert story_slug("Café au lait") == "caf_au_lait"


class TestStoryList:
    """Tests for StoryList."""

    def test__get__finds_story_by_slug(self) -> None:
        stories = StoryList(["Café au lait"])

        story = stories.get("caf_au_lait")

        assert story is not None
        assert story.name == "Café au lait"
        assert stories.get(None) is None
