"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import pytest

from heykudos.config import STANDARD_EMOJI_URL, load_config


def _write(tmp_path, body: str):
    path = tmp_path / "config.yaml"
    path.write_text(body, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, "team_name: Acme\n"))
        assert cfg.team_name == "Acme"
        assert cfg.daily_quota == 5
        assert cfg.leaderboard_size == 10
        assert cfg.standard_emoji_url == STANDARD_EMOJI_URL
        assert cfg.emoji_refresh_cooldown == 60.0

    def test_overrides(self, tmp_path):
        cfg = load_config(_write(tmp_path, (
            "team_name: Acme\n"
            "daily_quota: 7\n"
            "leaderboard_size: 3\n"
            "emoji_refresh_cooldown: 5\n"
            "max_concurrent_messages: 2\n"
        )))
        assert (cfg.daily_quota, cfg.leaderboard_size) == (7, 3)
        assert cfg.emoji_refresh_cooldown == 5.0
        assert cfg.max_concurrent_messages == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_team_name_required(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "daily_quota: 5\n"))

    @pytest.mark.parametrize("key", ["daily_quota", "leaderboard_size"])
    def test_non_positive_rejected(self, tmp_path, key):
        with pytest.raises(ValueError, match=key):
            load_config(_write(tmp_path, f"team_name: Acme\n{key}: 0\n"))

    def test_config_is_frozen(self, tmp_path):
        cfg = load_config(_write(tmp_path, "team_name: Acme\n"))
        with pytest.raises(AttributeError):
            cfg.daily_quota = 99
