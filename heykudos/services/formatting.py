"""
heykudos.services.formatting — Markdown Payload Builders
=========================================================

All user-visible text lives here so the router only supplies data.
Each builder returns plain markdown; the chat session decides whether to
wrap it in an embed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from heykudos.services.leaderboard import CounterpartKudos, Direction, UserTotal

ENABLE_REFUSED = "Sorry, you're only allowed to enable normal channels"
GRANT_FAILED = "Sorry, something went wrong while trying to give your kudos"


def format_filter(emojis: Sequence[str]) -> str:
    """``[]`` → ``"all"``; ``["star", "heart"]`` → ``":star:, :heart:"``."""
    if not emojis:
        return "all"
    return ", ".join(f":{e}:" for e in emojis)


def format_counts(counts: Mapping[str, int]) -> str:
    """``{"star": 2}`` → ``":star:: `2`"``."""
    return ", ".join(f":{emoji}:: `{count}`" for emoji, count in counts.items())


def channel_toggle_notice(enabled: bool, channel_id: str, *, private_name: str | None = None) -> str:
    verb = "Enabled" if enabled else "Disabled"
    if private_name is not None:
        return f"{verb} private channel #{private_name}"
    return f"{verb} channel <#{channel_id}>"


# ---------------------------------------------------------------------------
# Grant notifications
# ---------------------------------------------------------------------------
def sent_notice(recipient_name: str, counts: Mapping[str, int], remaining: int) -> str:
    if remaining == 0:
        left = "You don't have any kudos left to give today."
    else:
        left = f"You have {remaining} kudos left to give today."
    return (
        f"You just sent the following kudos to `{recipient_name}`: "
        f"({format_counts(counts)}). {left}"
    )


def received_notice(sender_name: str, counts: Mapping[str, int], jump_url: str = "") -> str:
    text = f"You just received kudos ({format_counts(counts)}) from `{sender_name}`!"
    if jump_url:
        text += f" ({jump_url})"
    return text


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
def leaderboard_title(team_name: str, emojis: Sequence[str]) -> str:
    return f"{team_name} Leaderboard ({format_filter(emojis)})"


def format_leaderboard(rows: Sequence[UserTotal]) -> str:
    """One ``1. `name` `count``` line per ranked user."""
    if not rows:
        return "No kudos yet!"
    return "\n".join(
        f"{i}. `{row.username}` `{row.total}`" for i, row in enumerate(rows, 1)
    )


def personal_board_title(team_name: str, direction: Direction, emojis: Sequence[str]) -> str:
    label = "Received" if direction is Direction.RECEIVED else "Given"
    return f"{team_name} My {label} Kudos ({format_filter(emojis)})"


def format_personal_board(history: Sequence[CounterpartKudos]) -> str:
    total = sum(group.total for group in history)
    lines = [f"Total Count: `{total}`"]
    for i, group in enumerate(history, 1):
        lines.append(f"{i}. `{group.username}`: `{group.total}`")
        lines.extend(f"\t:{ec.emoji}:: `{ec.count}`" for ec in group.emojis)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Help
# ---------------------------------------------------------------------------
def help_text(bot_name: str, daily_quota: int) -> str:
    return (
        f"{bot_name} is a bot used to recognize someone for being awesome!\n"
        "If you want to send someone a kudos simply @ them and send them an emoji. "
        "Any emoji will work!\n"
        ">`@username` :rainbow:\n"
        "You can send a message along too if you like:\n"
        ">`@username` :rainbow: for being the best bot around!\n"
        "You can send kudos in multiple ways:\n"
        ">Multiple kudos to one person `@username` :rainbow: :heart:\n"
        ">One kudos to multiple people `@username` `@another.username` :rainbow:\n"
        ">Multiple kudos to multiple people `@username` `@another.username` :rainbow: :heart:\n"
        "You can show the overall leaderboard:\n"
        f">`@{bot_name}` leaderboard\n"
        "Or a leaderboard for a particular emoji\n"
        f">`@{bot_name}` leaderboard :rainbow:\n"
        "And see who you've given kudos to and received kudos from:\n"
        f">`@{bot_name}` stats\n"
        f"You are limited to {daily_quota} kudos per day to send, "
        "but can receive an unlimited amount of kudos!"
    )
