"""
HeyKudos — Emoji Kudos for Discord Communities
===============================================
Lets members thank each other by mentioning someone alongside an emoji.
Every grant lands in a shared ledger, each sender has a daily quota, and
leaderboards summarize who has been recognized (and by whom) on demand.

Package layout::

    heykudos/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # Kudos error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models (users, kudos, rate, channels)
    ├── engine/
    │   ├── tokens.py      # Mention / emoji token extraction
    │   ├── shapes.py      # Recipient ↔ emoji shape matching
    │   └── router.py      # Inbound message → Intent classification
    ├── services/
    │   ├── emoji_catalog.py   # Known-emoji cache (standard + custom)
    │   ├── user_directory.py  # Handle → User lookup-or-create
    │   ├── channel_gate.py    # Per-channel enable flag
    │   ├── ledger.py          # Atomic quota reservation + grant recording
    │   ├── leaderboard.py     # Ranked summaries
    │   └── formatting.py      # Markdown payloads
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        ├── session.py     # Discord adapter for the chat collaborator
        ├── dispatch.py    # Bounded per-message task dispatch
        ├── router.py      # Intent → handler dispatch
        └── cogs/
            └── kudos.py   # on_message listener
"""

__version__ = "0.1.0"
