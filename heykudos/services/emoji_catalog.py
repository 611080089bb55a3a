"""
heykudos.services.emoji_catalog — Known-Emoji Cache
====================================================

Answers "is ``name`` a real emoji?" for the kudos pipeline.  Names come
from two sources:

1. The public standard-emoji data set (iamcal/emoji-data) that chat
   clients use as their default emoji set.
2. The workspace's custom emojis, supplied by the bot.

The set is kept in memory and refreshed wholesale under a lock.  A lookup
miss always re-reads the custom list (so newly added custom emojis work
immediately); the standard set is downloaded again at most once per
``refresh_cooldown`` seconds.

The standard data also maps Unicode characters to short names, which lets
:meth:`EmojiCatalog.normalize` turn ``⭐`` back into ``:star:``; Discord
clients send standard emojis as Unicode rather than shortcodes.

**Hot-path safety:** :meth:`is_known` and :meth:`refresh` may block on the
network; call them via ``await run_db(catalog.is_known, name)``.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections.abc import Callable, Iterable

import httpx

from heykudos.config import STANDARD_EMOJI_URL

logger = logging.getLogger(__name__)


def _codepoints_to_str(unified: str) -> str:
    """``"1F44D-1F3FB"`` → ``"👍🏻"``."""
    return "".join(chr(int(cp, 16)) for cp in unified.split("-"))


def parse_standard_emojis(data: list[dict]) -> tuple[set[str], dict[str, str]]:
    """Parse the iamcal/emoji-data JSON.

    Returns (short names, unicode sequence → primary short name).

    A single-code-point ``non_qualified`` form (``©``, ``™``, ``❤``) renders
    as plain text by default, so only its emoji-presentation form is mapped.
    """
    names: set[str] = set()
    by_unicode: dict[str, str] = {}
    for entry in data:
        short_names = entry.get("short_names") or []
        names.update(short_names)
        primary = entry.get("short_name") or (short_names[0] if short_names else None)
        if not primary:
            continue
        variants = [entry.get("unified")]
        non_qualified = entry.get("non_qualified")
        if non_qualified and "-" in non_qualified:
            variants.append(non_qualified)
        variants += [v.get("unified") for v in (entry.get("skin_variations") or {}).values()]
        for unified in variants:
            if unified:
                by_unicode.setdefault(_codepoints_to_str(unified), primary)
    return names, by_unicode


class EmojiCatalog:
    """Thread-safe set of known emoji names.

    Usage:
        catalog = EmojiCatalog(custom_source=lambda: [e.name for e in bot.emojis])
        catalog.refresh()
        catalog.is_known("star")          # True
        catalog.normalize("thanks ⭐")     # "thanks :star:"
    """

    def __init__(
        self,
        *,
        standard_url: str = STANDARD_EMOJI_URL,
        custom_source: Callable[[], Iterable[str]] | None = None,
        refresh_cooldown: float = 60.0,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.standard_url = standard_url
        self.custom_source = custom_source
        self.refresh_cooldown = refresh_cooldown
        self._http_client = http_client
        self._clock = clock
        self._lock = threading.Lock()
        self._last_standard_pull: float | None = None

        # Replaced wholesale on refresh; readers never see a half-built set
        self._names: frozenset[str] = frozenset()
        # (pattern, sequence → short name), swapped as one object
        self._unicode: tuple[re.Pattern[str], dict[str, str]] | None = None

    def __len__(self) -> int:
        return len(self._names)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_known(self, name: str) -> bool:
        """True if *name* is a standard or custom emoji."""
        if name in self._names:
            return True
        self.refresh(force=False)
        return name in self._names

    def normalize(self, text: str) -> str:
        """Replace Unicode emojis in *text* with their ``:short_name:`` form."""
        unicode = self._unicode
        if unicode is None:
            return text
        pattern, by_unicode = unicode
        return pattern.sub(lambda m: f":{by_unicode[m.group(0)]}:", text)

    # -------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------
    def refresh(self, *, force: bool = True) -> bool:
        """Re-read the custom emoji list and, unless throttled, the standard set.

        Custom names come from the bot's own cache and are re-read on every
        call.  With ``force=False`` the standard set is only downloaded again
        once ``refresh_cooldown`` seconds have passed since the last download.
        Returns True if the standard set was downloaded.  Names are never
        dropped: a failed pull keeps whatever was loaded before.
        """
        with self._lock:
            now = self._clock()
            pull_standard = (
                force
                or self._last_standard_pull is None
                or now - self._last_standard_pull >= self.refresh_cooldown
            )
            standard: set[str] = set()
            by_unicode: dict[str, str] = {}
            if pull_standard:
                self._last_standard_pull = now
                standard, by_unicode = self._pull_standard()
            custom = self._pull_custom()

            self._names = self._names | standard | custom
            if by_unicode:
                merged = {**(self._unicode[1] if self._unicode else {}), **by_unicode}
                # Longest sequences first so skin-tone variants win over the base emoji
                alternatives = sorted(merged, key=len, reverse=True)
                pattern = re.compile("|".join(re.escape(a) for a in alternatives))
                self._unicode = (pattern, merged)

        if pull_standard:
            logger.info(
                "Emoji catalog refreshed: %d names (%d standard, %d custom)",
                len(self._names), len(standard), len(custom),
            )
        else:
            logger.debug("Custom emoji list re-read: %d custom", len(custom))
        return pull_standard

    def _pull_standard(self) -> tuple[set[str], dict[str, str]]:
        """Fetch the standard emoji data set.  Logs and returns empty on failure."""
        client = self._http_client or httpx.Client(
            timeout=10, transport=httpx.HTTPTransport(retries=1),
        )
        try:
            resp = client.get(self.standard_url)
            resp.raise_for_status()
            return parse_standard_emojis(resp.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to get standard emoji set: %s", exc)
            return set(), {}
        finally:
            if self._http_client is None:
                client.close()

    def _pull_custom(self) -> set[str]:
        """Collect the workspace's custom emoji names."""
        if self.custom_source is None:
            return set()
        try:
            return set(self.custom_source())
        except Exception:
            logger.exception("Failed to pull custom emoji list")
            return set()
