"""Gift codes: one claim per user, never more than max_claims in total."""
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from models import GiftCode, GiftClaim
from ledger.gifts import redeem_gift_code
from ledger.errors import AlreadyClaimed, CodeExhausted, NotFound, ValidationError


def _claimed_count(code):
    return GiftCode.query.filter_by(code=code).one().claimed_count


class TestRedeem:

    def test_redeem_credits_amount(self, ctx, make_user, make_gift_code, balance_of):
        user_id = make_user(balance="10")
        make_gift_code(code="WELCOME100", amount="100")

        amount, balance = redeem_gift_code(user_id, "WELCOME100")

        assert amount == Decimal("100.00")
        assert balance == Decimal("110.00")
        assert balance_of(user_id) == Decimal("110.00")
        assert _claimed_count("WELCOME100") == 1

    def test_same_user_twice(self, ctx, make_user, make_gift_code, balance_of):
        user_id = make_user()
        make_gift_code(code="ONCE", amount="50", max_claims=10)
        redeem_gift_code(user_id, "ONCE")

        with pytest.raises(AlreadyClaimed):
            redeem_gift_code(user_id, "ONCE")

        assert balance_of(user_id) == Decimal("50.00")
        assert _claimed_count("ONCE") == 1

    def test_repeat_on_single_use_code_is_already_claimed(self, ctx, make_user, make_gift_code, balance_of):
        user_id = make_user()
        make_gift_code(code="SOLO", amount="30", max_claims=1)
        redeem_gift_code(user_id, "SOLO")

        with pytest.raises(AlreadyClaimed):
            redeem_gift_code(user_id, "SOLO")

        assert balance_of(user_id) == Decimal("30.00")

    def test_exhausted_code(self, ctx, make_user, make_gift_code, balance_of):
        make_gift_code(code="TWO", amount="20", max_claims=2)
        redeem_gift_code(make_user(), "TWO")
        redeem_gift_code(make_user(), "TWO")
        late_user = make_user()

        with pytest.raises(CodeExhausted):
            redeem_gift_code(late_user, "TWO")

        assert balance_of(late_user) == Decimal("0.00")
        assert _claimed_count("TWO") == 2

    def test_unknown_code(self, ctx, make_user):
        with pytest.raises(NotFound):
            redeem_gift_code(make_user(), "NOPE")

    def test_blank_code(self, ctx, make_user):
        with pytest.raises(ValidationError):
            redeem_gift_code(make_user(), "  ")

    def test_numeric_code(self, ctx, make_user, make_gift_code):
        make_gift_code(code="2026", amount="5")

        amount, _ = redeem_gift_code(make_user(), 2026)

        assert amount == Decimal("5.00")

    def test_other_integrity_errors_are_not_reported_as_claimed(
        self, ctx, make_user, make_gift_code, balance_of, monkeypatch
    ):
        user_id = make_user()
        make_gift_code(code="CHECKED", amount="40")

        def failing_credit(*args):
            raise IntegrityError("UPDATE users", {}, Exception("CHECK constraint failed: chk_gift_claims_cap"))

        monkeypatch.setattr("ledger.gifts.credit", failing_credit)

        with pytest.raises(IntegrityError):
            redeem_gift_code(user_id, "CHECKED")

        assert _claimed_count("CHECKED") == 0
        assert GiftClaim.query.count() == 0
        assert balance_of(user_id) == Decimal("0.00")


class TestConcurrentRedeem:

    def test_same_user_racing_claims_credit_once(self, app, make_user, make_gift_code, balance_of, run_concurrently):
        user_id = make_user()
        make_gift_code(code="RACE", amount="100", max_claims=10)

        successes, errors = run_concurrently(redeem_gift_code, [(user_id, "RACE")] * 5)

        assert len(successes) == 1
        assert len(errors) == 4
        assert all(isinstance(e, AlreadyClaimed) for e in errors)
        assert balance_of(user_id) == Decimal("100.00")
        with app.app_context():
            assert _claimed_count("RACE") == 1
            assert GiftClaim.query.filter_by(user_id=user_id).count() == 1

    def test_same_user_racing_on_single_use_code(self, app, make_user, make_gift_code, balance_of, run_concurrently):
        user_id = make_user()
        make_gift_code(code="SOLO-RACE", amount="60", max_claims=1)

        successes, errors = run_concurrently(redeem_gift_code, [(user_id, "SOLO-RACE")] * 4)

        assert len(successes) == 1
        assert len(errors) == 3
        assert all(isinstance(e, AlreadyClaimed) for e in errors)
        assert balance_of(user_id) == Decimal("60.00")
        with app.app_context():
            assert _claimed_count("SOLO-RACE") == 1

    def test_cap_never_exceeded(self, app, make_user, make_gift_code, balance_of, run_concurrently):
        user_ids = [make_user() for _ in range(6)]
        make_gift_code(code="FIRST3", amount="25", max_claims=3)

        successes, errors = run_concurrently(redeem_gift_code, [(uid, "FIRST3") for uid in user_ids])

        assert len(successes) == 3
        assert len(errors) == 3
        assert all(isinstance(e, CodeExhausted) for e in errors)
        total = sum((balance_of(uid) for uid in user_ids), Decimal("0"))
        assert total == Decimal("75.00")
        with app.app_context():
            assert _claimed_count("FIRST3") == 3
            assert GiftClaim.query.count() == 3
