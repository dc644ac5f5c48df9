"""Withdrawals hold funds at submission; rejection refunds, approval keeps them out."""
from decimal import Decimal

import pytest

from models import Withdrawal, RequestStatus
from ledger.catalog import set_setting
from ledger.withdrawals import submit_withdrawal, review_withdrawal
from ledger.errors import InsufficientFunds, InvalidState, ValidationError, ChannelClosed


class TestWithdrawalLifecycle:

    def test_submit_holds_funds(self, ctx, make_user, balance_of):
        user_id = make_user(balance="1000")

        withdrawal, balance = submit_withdrawal(user_id, Decimal("200"), "nagad", "01812345678")

        assert withdrawal.status is RequestStatus.PENDING
        assert balance == Decimal("800.00")
        assert balance_of(user_id) == Decimal("800.00")

    def test_reject_refunds_exactly_once(self, ctx, make_user, balance_of):
        user_id = make_user(balance="1000")
        withdrawal, _ = submit_withdrawal(user_id, Decimal("200"), "nagad", "01812345678")

        rejected, balance = review_withdrawal(withdrawal.id, "reject")

        assert rejected.status is RequestStatus.REJECTED
        assert balance == Decimal("1000.00")

        with pytest.raises(InvalidState):
            review_withdrawal(withdrawal.id, "reject")
        with pytest.raises(InvalidState):
            review_withdrawal(withdrawal.id, "approve")
        assert balance_of(user_id) == Decimal("1000.00")

    def test_approve_keeps_funds_out(self, ctx, make_user, balance_of):
        user_id = make_user(balance="1000")
        withdrawal, _ = submit_withdrawal(user_id, Decimal("300"), "bkash", "01712345678")

        approved, balance = review_withdrawal(withdrawal.id, "approve")

        assert approved.status is RequestStatus.APPROVED
        assert balance == Decimal("700.00")
        with pytest.raises(InvalidState):
            review_withdrawal(withdrawal.id, "reject")
        assert balance_of(user_id) == Decimal("700.00")

    def test_insufficient_funds_creates_nothing(self, ctx, make_user, balance_of):
        user_id = make_user(balance="150")

        with pytest.raises(InsufficientFunds):
            submit_withdrawal(user_id, Decimal("200"), "bkash", "01712345678")

        assert balance_of(user_id) == Decimal("150.00")
        assert Withdrawal.query.filter_by(user_id=user_id).count() == 0


class TestWithdrawalRules:

    def test_account_number_required(self, ctx, make_user):
        with pytest.raises(ValidationError):
            submit_withdrawal(make_user(balance="1000"), Decimal("200"), "bkash", "")

    def test_below_minimum(self, ctx, make_user):
        with pytest.raises(ValidationError):
            submit_withdrawal(make_user(balance="1000"), Decimal("199"), "bkash", "01712345678")

    def test_channel_closed(self, ctx, make_user, balance_of):
        user_id = make_user(balance="1000")
        set_setting("withdraw_status", "off")

        with pytest.raises(ChannelClosed):
            submit_withdrawal(user_id, Decimal("200"), "bkash", "01712345678")
        assert balance_of(user_id) == Decimal("1000.00")


class TestConcurrentWithdrawals:

    def test_racing_withdrawals_never_overdraw(self, app, make_user, balance_of, run_concurrently):
        user_id = make_user(balance="1000")
        args = (user_id, Decimal("300"), "bkash", "01712345678")

        successes, errors = run_concurrently(submit_withdrawal, [args] * 5)

        assert len(successes) == 3
        assert len(errors) == 2
        assert all(isinstance(e, InsufficientFunds) for e in errors)
        assert balance_of(user_id) == Decimal("100.00")
        with app.app_context():
            assert Withdrawal.query.filter_by(user_id=user_id).count() == 3

    def test_racing_rejections_refund_once(self, app, make_user, balance_of, run_concurrently):
        user_id = make_user(balance="1000")
        with app.app_context():
            withdrawal, _ = submit_withdrawal(user_id, Decimal("400"), "bkash", "01712345678")
            withdrawal_id = withdrawal.id

        successes, errors = run_concurrently(review_withdrawal, [(withdrawal_id, "reject")] * 4)

        assert len(successes) == 1
        assert all(isinstance(e, InvalidState) for e in errors)
        assert balance_of(user_id) == Decimal("1000.00")
