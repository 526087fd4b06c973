"""Tests for @mention parsing."""

import pytest

from agora.notifications.service import extract_mentions


class TestExtractMentions:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("hello @ana", ["ana"]),
            ('thanks @"Ana Lima"!', ["Ana Lima"]),
            ("@bo, @ana and @bo again", ["bo", "ana"]),
            ("ping @jo.silva.", ["jo.silva"]),
            ('@"Ana Lima" and @ana', ["Ana Lima", "ana"]),
            ("no mentions here", []),
            ("@", []),
            ("mail bob@example.com or @ana", ["ana"]),
            ("(@bo) @ana", ["bo", "ana"]),
        ],
    )
    def test_extract(self, text: str, expected: list[str]) -> None:
        assert extract_mentions(text) == expected

    def test_unicode_names(self) -> None:
        assert extract_mentions("oi @joão") == ["joão"]

    def test_quoted_mention_survives_sanitizing(self) -> None:
        from agora.comments.service import sanitize_content

        text = sanitize_content('<b>hi</b> @"Ana Lima"')
        assert extract_mentions(text) == ["Ana Lima"]
