"""
tests/test_ledger.py — Rate-Limited Ledger Tests
=================================================

Quota enforcement, ledger accumulation, all-or-nothing grants, and
concurrent senders racing for the same quota.
"""

from __future__ import annotations

import threading
from datetime import date, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import select, text
from sqlalchemy.orm import Session

from heykudos.database.models import KudosGrant, RateCounter
from heykudos.errors import NothingToGive, QuotaExceeded, StorageError
from heykudos.services.ledger import KudosLedger

from conftest import make_user

TODAY = date(2026, 3, 14)


def _rows(engine) -> dict[tuple[int, int, str], int]:
    with Session(engine) as s:
        return {
            (g.sender_id, g.recipient_id, g.emoji): g.count
            for g in s.scalars(select(KudosGrant))
        }


def _counter(engine, user_id: int, day: date = TODAY) -> int | None:
    with Session(engine) as s:
        return s.scalar(
            select(RateCounter.count).where(RateCounter.user_id == user_id, RateCounter.day == day)
        )


class TestGrant:
    @pytest.fixture(autouse=True)
    def _ledger(self, db_engine, user_factory):
        self.engine = db_engine
        self.day = TODAY
        self.ledger = KudosLedger(db_engine, daily_quota=5, today=lambda: self.day)
        self.alice = user_factory("1", "alice")
        self.bob = user_factory("2", "bob")
        self.carol = user_factory("3", "carol")

    def test_grant_records_and_returns_remaining(self):
        receipt = self.ledger.grant(self.alice, [self.bob], ["star", "heart"])

        assert receipt.remaining == 3
        assert [d.recipient.id for d in receipt.deliveries] == [self.bob.id]
        assert receipt.deliveries[0].counts == {"star": 1, "heart": 1}
        assert _rows(self.engine) == {
            (self.alice.id, self.bob.id, "star"): 1,
            (self.alice.id, self.bob.id, "heart"): 1,
        }
        assert _counter(self.engine, self.alice.id) == 2

    def test_repeated_emoji_coalesces_into_one_row(self):
        receipt = self.ledger.grant(self.alice, [self.bob], ["star", "star", "star"])
        assert receipt.deliveries[0].counts == {"star": 3}
        assert _rows(self.engine) == {(self.alice.id, self.bob.id, "star"): 3}
        assert receipt.remaining == 2

    def test_grants_accumulate_in_one_row(self):
        self.ledger.grant(self.alice, [self.bob], ["star"])
        self.ledger.grant(self.alice, [self.bob], ["star", "star"])
        assert _rows(self.engine) == {(self.alice.id, self.bob.id, "star"): 3}

    def test_one_emoji_to_many_charges_per_recipient(self):
        receipt = self.ledger.grant(self.alice, [self.bob, self.carol], ["tada"])
        assert receipt.remaining == 3
        assert _rows(self.engine) == {
            (self.alice.id, self.bob.id, "tada"): 1,
            (self.alice.id, self.carol.id, "tada"): 1,
        }

    def test_daily_scenario(self):
        assert self.ledger.grant(self.alice, [self.bob], ["a", "b"]).remaining == 3
        assert self.ledger.grant(self.alice, [self.bob], ["c"]).remaining == 2

        with pytest.raises(QuotaExceeded) as exc_info:
            self.ledger.grant(self.alice, [self.bob], ["d", "e", "f"])
        assert exc_info.value.remaining == 2
        assert str(exc_info.value) == (
            "Sorry, you tried to give 3 kudos, but you only have 2 kudos left to give today."
        )
        assert _counter(self.engine, self.alice.id) == 3

    def test_mixed_recipients_end_to_end(self):
        dave = make_user(self.engine, "4", "dave")
        receipt = self.ledger.grant(self.alice, [self.bob, dave], ["star", "heart"])
        assert receipt.remaining == 3
        assert [d.counts for d in receipt.deliveries] == [{"star": 1}, {"heart": 1}]

        assert self.ledger.grant(self.alice, [self.bob], ["star"]).remaining == 2

        with pytest.raises(QuotaExceeded) as exc_info:
            self.ledger.grant(self.alice, [dave], ["star", "heart", "fire"])
        assert "2 kudos left" in str(exc_info.value)
        assert _rows(self.engine) == {
            (self.alice.id, self.bob.id, "star"): 2,
            (self.alice.id, dave.id, "heart"): 1,
        }

    def test_exhausted_quota_message(self):
        self.ledger.grant(self.alice, [self.bob], ["star"] * 5)
        with pytest.raises(QuotaExceeded) as exc_info:
            self.ledger.grant(self.alice, [self.bob], ["star"])
        assert exc_info.value.remaining == 0
        assert str(exc_info.value) == (
            "Sorry, you're out of kudos to give for now. You can only give 5 every 24 hours."
        )
        assert _counter(self.engine, self.alice.id) == 5

    def test_request_larger_than_quota(self):
        with pytest.raises(QuotaExceeded) as exc_info:
            self.ledger.grant(self.alice, [self.bob], ["star"] * 6)
        assert exc_info.value.remaining == 5
        assert _counter(self.engine, self.alice.id) is None
        assert _rows(self.engine) == {}

    def test_quota_is_per_sender(self):
        self.ledger.grant(self.alice, [self.bob], ["star"] * 5)
        assert self.ledger.grant(self.bob, [self.alice], ["star"]).remaining == 4

    def test_new_day_resets_quota_and_prunes_old_rows(self):
        self.ledger.grant(self.alice, [self.bob], ["star"] * 5)

        self.day = TODAY + timedelta(days=1)
        assert self.ledger.remaining(self.alice.id) == 5
        assert self.ledger.grant(self.alice, [self.bob], ["star"]).remaining == 4

        assert _counter(self.engine, self.alice.id, TODAY) is None
        assert _counter(self.engine, self.alice.id, self.day) == 1

    def test_failed_record_rolls_back_quota(self):
        broken = text("INSERT INTO no_such_table (x) VALUES (:amount)")
        with patch("heykudos.services.ledger._RECORD_SQL", broken):
            with pytest.raises(StorageError):
                self.ledger.grant(self.alice, [self.bob], ["star"])

        assert _counter(self.engine, self.alice.id) is None
        assert _rows(self.engine) == {}
        assert self.ledger.remaining(self.alice.id) == 5

    def test_validation_happens_before_quota(self):
        with pytest.raises(NothingToGive):
            self.ledger.grant(self.alice, [self.bob], [])
        assert _counter(self.engine, self.alice.id) is None


class TestReserve:
    def test_reserve_charges_without_recording(self, db_engine, user_factory):
        ledger = KudosLedger(db_engine, daily_quota=5, today=lambda: TODAY)
        alice, bob = user_factory("1", "alice"), user_factory("2", "bob")

        assert ledger.reserve(alice, [bob], ["star", "heart"]) == 3
        assert ledger.remaining(alice.id) == 3
        assert _rows(db_engine) == {}


class TestEmojiValidation:
    def test_unknown_emojis_are_dropped(self, db_engine, user_factory):
        ledger = KudosLedger(
            db_engine, daily_quota=5, is_known_emoji={"star"}.__contains__, today=lambda: TODAY,
        )
        alice, bob = user_factory("1", "alice"), user_factory("2", "bob")

        receipt = ledger.grant(alice, [bob], ["star", "notanemoji", "star"])
        assert receipt.deliveries[0].counts == {"star": 2}
        assert receipt.remaining == 3

    def test_all_unknown_gives_nothing(self, db_engine, user_factory):
        ledger = KudosLedger(db_engine, daily_quota=5, is_known_emoji=lambda e: False)
        alice, bob = user_factory("1", "alice"), user_factory("2", "bob")
        with pytest.raises(NothingToGive):
            ledger.grant(alice, [bob], ["star"])

    def test_valid_emojis_without_validator(self, db_engine):
        ledger = KudosLedger(db_engine, daily_quota=5)
        assert ledger.valid_emojis(["a", "b"]) == ["a", "b"]


class TestConcurrentSenders:
    def test_parallel_grants_never_exceed_quota(self, file_engine):
        ledger = KudosLedger(file_engine, daily_quota=5, today=lambda: TODAY)
        alice = make_user(file_engine, "1", "alice")
        bob = make_user(file_engine, "2", "bob")

        outcomes: list[str] = []
        lock = threading.Lock()
        barrier = threading.Barrier(10)

        def _give():
            barrier.wait()
            try:
                ledger.grant(alice, [bob], ["star"])
                result = "ok"
            except QuotaExceeded:
                result = "limited"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=_give) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("ok") == 5
        assert outcomes.count("limited") == 5
        assert _counter(file_engine, alice.id) == 5
        assert _rows(file_engine) == {(alice.id, bob.id, "star"): 5}
