"""
tests/test_emoji_catalog.py — Known-Emoji Cache Tests
======================================================

The standard emoji set is served through ``httpx.MockTransport``; no
network access is needed.
"""

from __future__ import annotations

import httpx
import pytest

from heykudos.services.emoji_catalog import EmojiCatalog, parse_standard_emojis

STANDARD = [
    {"short_name": "star", "short_names": ["star"], "unified": "2B50", "non_qualified": None},
    {
        "short_name": "+1",
        "short_names": ["+1", "thumbsup"],
        "unified": "1F44D",
        "skin_variations": {"1F3FB": {"unified": "1F44D-1F3FB"}},
    },
    {"short_name": "heart", "short_names": ["heart"], "unified": "2764-FE0F", "non_qualified": "2764"},
    {
        "short_name": "copyright",
        "short_names": ["copyright"],
        "unified": "00A9-FE0F",
        "non_qualified": "00A9",
    },
    {
        "short_name": "rainbow-flag",
        "short_names": ["rainbow-flag"],
        "unified": "1F3F3-FE0F-200D-1F308",
        "non_qualified": "1F3F3-200D-1F308",
    },
]


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _client(payload=STANDARD, status: int = 200, calls: list | None = None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url)
        return httpx.Response(status, json=payload)
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestParse:
    def test_names_and_unicode_map(self):
        names, by_unicode = parse_standard_emojis(STANDARD)
        assert names == {"star", "+1", "thumbsup", "heart", "copyright", "rainbow-flag"}
        assert by_unicode["⭐"] == "star"
        assert by_unicode["\U0001f44d\U0001f3fb"] == "+1"
        assert by_unicode["\u2764\ufe0f"] == "heart"
        assert by_unicode["\U0001f3f3\u200d\U0001f308"] == "rainbow-flag"

    def test_text_style_symbols_are_not_mapped(self):
        _, by_unicode = parse_standard_emojis(STANDARD)
        assert "\u00a9" not in by_unicode
        assert "\u2764" not in by_unicode
        assert by_unicode["\u00a9\ufe0f"] == "copyright"


class TestEmojiCatalog:
    @pytest.fixture(autouse=True)
    def _catalog(self):
        self.calls: list = []
        self.custom = ["partyblob"]
        self.clock = FakeClock()
        self.catalog = EmojiCatalog(
            standard_url="https://emoji.test/emoji.json",
            custom_source=lambda: self.custom,
            refresh_cooldown=60.0,
            http_client=_client(calls=self.calls),
            clock=self.clock,
        )

    def test_refresh_loads_both_sources(self):
        assert self.catalog.refresh() is True
        assert self.catalog.is_known("star")
        assert self.catalog.is_known("thumbsup")
        assert self.catalog.is_known("partyblob")
        assert len(self.catalog) == 7

    def test_miss_triggers_refresh(self):
        assert self.catalog.is_known("star")
        assert len(self.calls) == 1

    def test_standard_download_is_throttled(self):
        self.catalog.refresh()

        self.clock.now = 10.0
        assert not self.catalog.is_known("notathing")
        assert len(self.calls) == 1

        self.clock.now = 61.0
        assert not self.catalog.is_known("notathing")
        assert len(self.calls) == 2

    def test_new_custom_emoji_known_during_cooldown(self):
        self.catalog.refresh()
        self.clock.now = 5.0
        assert not self.catalog.is_known("notathing")

        self.custom.append("partyparrot")
        self.clock.now = 20.0
        assert self.catalog.is_known("partyparrot")
        assert len(self.calls) == 1

    def test_forced_refresh_ignores_cooldown(self):
        self.catalog.refresh()
        self.clock.now = 1.0
        assert self.catalog.refresh() is True
        assert len(self.calls) == 2

    def test_unknown_name(self):
        self.catalog.refresh()
        self.clock.now = 120.0
        assert not self.catalog.is_known("definitely_not_an_emoji")

    def test_failed_pull_keeps_previous_names(self):
        self.catalog.refresh()
        self.catalog._http_client = _client(status=503)
        self.custom = []

        self.clock.now = 120.0
        self.catalog.refresh()
        assert self.catalog.is_known("star")
        assert self.catalog.is_known("partyblob")

    def test_custom_source_failure_is_tolerated(self):
        def _broken():
            raise RuntimeError("guild cache unavailable")

        self.catalog.custom_source = _broken
        self.catalog.refresh()
        assert self.catalog.is_known("star")


class TestNormalize:
    def test_unicode_becomes_short_name(self):
        catalog = EmojiCatalog(http_client=_client())
        catalog.refresh()
        assert catalog.normalize("<@1> ⭐ thanks") == "<@1> :star: thanks"

    def test_skin_tone_variant_wins_over_base(self):
        catalog = EmojiCatalog(http_client=_client())
        catalog.refresh()
        assert catalog.normalize("\U0001f44d\U0001f3fb") == ":+1:"

    def test_emoji_presentation_selector(self):
        catalog = EmojiCatalog(http_client=_client())
        catalog.refresh()
        assert catalog.normalize("\u2764\ufe0f \u2764") == ":heart: \u2764"

    def test_text_style_symbols_left_alone(self):
        catalog = EmojiCatalog(http_client=_client())
        catalog.refresh()
        text = "<@2> thanks for the Acme\u00a9 docs\u2122"
        assert catalog.normalize(text) == text
        assert catalog.normalize("\u00a9\ufe0f") == ":copyright:"

    def test_zwj_sequence_without_selector(self):
        catalog = EmojiCatalog(http_client=_client())
        catalog.refresh()
        assert catalog.normalize("\U0001f3f3\u200d\U0001f308") == ":rainbow-flag:"

    def test_second_refresh_keeps_earlier_sequences(self):
        payloads = [STANDARD, [{"short_name": "tada", "short_names": ["tada"], "unified": "1F389"}]]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payloads.pop(0))

        catalog = EmojiCatalog(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
        catalog.refresh()
        catalog.refresh()
        assert catalog.normalize("\u2b50 \U0001f389") == ":star: :tada:"

    def test_before_refresh_text_unchanged(self):
        catalog = EmojiCatalog(http_client=_client())
        assert catalog.normalize("⭐") == "⭐"
