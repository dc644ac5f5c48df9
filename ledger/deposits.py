from decimal import Decimal
from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Deposit, RequestStatus
from ledger.atomic import ledger_transaction, credit, current_balance
from ledger.catalog import channel_open
from ledger.errors import (
    NotFound, InvalidState, DuplicateTransaction, ValidationError, ChannelClosed,
)
from ledger.review import Action, parse_action, transition
from utils import to_text


def submit_deposit(user_id, amount: Decimal, transaction_id, method=None):
    """
    Record a pending deposit. The balance is untouched until an admin
    approves it. The unique transaction_id column is what stops a receipt
    from being submitted twice.
    """
    transaction_id = to_text(transaction_id, "transaction ID")
    method = to_text(method, "method") or None
    if not transaction_id:
        raise ValidationError("Transaction ID is required")

    minimum = current_app.config.get("MIN_DEPOSIT_AMOUNT", Decimal("0"))
    if amount < minimum:
        raise ValidationError(f"Minimum deposit is {minimum}")

    if not channel_open("deposit_status"):
        raise ChannelClosed("Deposits are currently disabled")

    deposit = Deposit(
        user_id=user_id,
        amount=amount,
        transaction_id=transaction_id,
        method=method,
        status=RequestStatus.PENDING,
    )
    try:
        with ledger_transaction():
            db.session.add(deposit)
            db.session.flush()
    except IntegrityError as e:
        message = str(e.orig)
        if "uq_deposits_transaction_id" in message or "deposits.transaction_id" in message:
            raise DuplicateTransaction()
        raise

    return deposit


def review_deposit(deposit_id, action):
    """
    approve: credit the depositor and mark approved.
    reject:  mark rejected, balance untouched.
    Returns (deposit, depositor_balance).
    """
    action = parse_action(action)

    with ledger_transaction():
        deposit = Deposit.query.filter_by(id=deposit_id).with_for_update().first()
        if not deposit:
            raise NotFound("Deposit not found")
        if deposit.status is not RequestStatus.PENDING:
            raise InvalidState(f"Deposit is already {deposit.status.value}")

        target = RequestStatus.APPROVED if action is Action.APPROVE else RequestStatus.REJECTED
        if not transition(Deposit, deposit.id, target):
            raise InvalidState("Deposit is no longer pending")

        if action is Action.APPROVE:
            credit(deposit.user_id, Decimal(str(deposit.amount)), f"deposit:{deposit.id}")

        balance = current_balance(deposit.user_id)

    db.session.refresh(deposit)
    return deposit, balance


def user_deposits(user_id):
    return (
        Deposit.query
        .filter_by(user_id=user_id)
        .order_by(Deposit.created_at.desc(), Deposit.id.desc())
        .all()
    )


def all_deposits():
    return Deposit.query.order_by(Deposit.created_at.desc(), Deposit.id.desc()).all()
