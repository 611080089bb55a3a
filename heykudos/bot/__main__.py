"""
heykudos.bot.__main__ — Entry point for ``python -m heykudos.bot``
===================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Build the channel gate, emoji catalog and ledger.
5. Create the KudosBot and hand it everything.
6. Start the bot (blocking — runs the asyncio event loop).

Run with::

    python -m heykudos.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from heykudos.bot.core import KudosBot
from heykudos.config import load_config
from heykudos.database.engine import create_db_engine, init_db
from heykudos.services.channel_gate import ChannelGate
from heykudos.services.emoji_catalog import EmojiCatalog
from heykudos.services.ledger import KudosLedger

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("heykudos")


def main() -> None:
    """Bootstrap and run the HeyKudos bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config(os.getenv("HEYKUDOS_CONFIG", "config.yaml"))
    logger.info("Config loaded — Team: %s, %d kudos/day", cfg.team_name, cfg.daily_quota)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Engine components.
    gate = ChannelGate(engine)
    catalog = EmojiCatalog(
        standard_url=cfg.standard_emoji_url,
        refresh_cooldown=cfg.emoji_refresh_cooldown,
    )
    ledger = KudosLedger(engine, daily_quota=cfg.daily_quota, is_known_emoji=catalog.is_known)

    # 5. Bot.
    bot = KudosBot(cfg, engine, gate=gate, catalog=catalog, ledger=ledger)

    # 6. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting HeyKudos bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
