from decimal import Decimal
from flask import current_app

from extensions import db
from models import Withdrawal, RequestStatus
from ledger.atomic import ledger_transaction, lock_user, debit, credit, current_balance
from ledger.catalog import channel_open
from ledger.errors import (
    NotFound, InsufficientFunds, InvalidState, ValidationError, ChannelClosed,
)
from ledger.review import Action, parse_action, transition
from utils import to_text

# Withdrawals hold the funds at submission: the amount leaves the balance
# immediately, approval only records the payout, rejection refunds it.


def submit_withdrawal(user_id, amount: Decimal, method=None, account_number=None):
    """Debit the amount now and open a pending withdrawal. Returns (withdrawal, new_balance)."""
    account_number = to_text(account_number, "account number")
    method = to_text(method, "method") or None
    if not account_number:
        raise ValidationError("Account number is required")

    minimum = current_app.config.get("MIN_WITHDRAWAL_AMOUNT", Decimal("0"))
    if amount < minimum:
        raise ValidationError(f"Minimum withdrawal is {minimum}")

    if not channel_open("withdraw_status"):
        raise ChannelClosed("Withdrawals are currently disabled")

    with ledger_transaction():
        if lock_user(user_id) is None:
            raise NotFound("User not found")

        if not debit(user_id, amount, "withdrawal"):
            raise InsufficientFunds()

        withdrawal = Withdrawal(
            user_id=user_id,
            amount=amount,
            method=method,
            account_number=account_number,
            status=RequestStatus.PENDING,
        )
        db.session.add(withdrawal)
        db.session.flush()

        balance = current_balance(user_id)

    return withdrawal, balance


def review_withdrawal(withdrawal_id, action):
    """
    approve: mark approved (funds already left at submission).
    reject:  refund the held amount and mark rejected.
    Returns (withdrawal, requester_balance).
    """
    action = parse_action(action)

    with ledger_transaction():
        withdrawal = Withdrawal.query.filter_by(id=withdrawal_id).with_for_update().first()
        if not withdrawal:
            raise NotFound("Withdrawal not found")
        if withdrawal.status is not RequestStatus.PENDING:
            raise InvalidState(f"Withdrawal is already {withdrawal.status.value}")

        target = RequestStatus.APPROVED if action is Action.APPROVE else RequestStatus.REJECTED
        if not transition(Withdrawal, withdrawal.id, target):
            raise InvalidState("Withdrawal is no longer pending")

        if action is Action.REJECT:
            credit(withdrawal.user_id, Decimal(str(withdrawal.amount)), f"withdrawal-refund:{withdrawal.id}")

        balance = current_balance(withdrawal.user_id)

    db.session.refresh(withdrawal)
    return withdrawal, balance


def user_withdrawals(user_id):
    return (
        Withdrawal.query
        .filter_by(user_id=user_id)
        .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
        .all()
    )


def all_withdrawals():
    return Withdrawal.query.order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc()).all()
