"""
heykudos.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for the soft settings of the bot (team name, daily
quota, leaderboard size, emoji catalog source).  Secrets such as the
Discord token and ``DATABASE_URL`` come from the environment (``.env``).

Usage::

    from heykudos.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.team_name)         # "Kudos Dev"
    print(cfg.daily_quota)       # 5
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

STANDARD_EMOJI_URL = "https://raw.githubusercontent.com/iamcal/emoji-data/master/emoji.json"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class KudosConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    team_name: str

    # Economy
    daily_quota: int = 5  # Kudos a member may give per calendar day
    leaderboard_size: int = 10

    # Emoji catalog
    standard_emoji_url: str = STANDARD_EMOJI_URL
    emoji_refresh_cooldown: float = 60.0  # Min seconds between miss-triggered refreshes

    # Dispatch
    max_concurrent_messages: int = 16


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> KudosConfig:
    """Read *path* and return a :class:`KudosConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``daily_quota`` or ``leaderboard_size`` is not positive.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    cfg = KudosConfig(
        team_name=raw["team_name"],
        daily_quota=int(raw.get("daily_quota", 5)),
        leaderboard_size=int(raw.get("leaderboard_size", 10)),
        standard_emoji_url=raw.get("standard_emoji_url") or STANDARD_EMOJI_URL,
        emoji_refresh_cooldown=float(raw.get("emoji_refresh_cooldown", 60.0)),
        max_concurrent_messages=int(raw.get("max_concurrent_messages", 16)),
    )
    if cfg.daily_quota <= 0:
        raise ValueError(f"daily_quota must be positive, got {cfg.daily_quota}")
    if cfg.leaderboard_size <= 0:
        raise ValueError(f"leaderboard_size must be positive, got {cfg.leaderboard_size}")
    return cfg
