from contextlib import contextmanager
from decimal import Decimal

from extensions import db
from logger import ledger_logger
from models import User


MOVEMENTS_KEY = "ledger_movements"


@contextmanager
def ledger_transaction():
    """
    One ledger operation == one database transaction.
    Commits when the block finishes, rolls back and re-raises otherwise,
    so a failure never leaves a balance change without its companion record.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        db.session.info.pop(MOVEMENTS_KEY, None)
        raise

    for movement in db.session.info.pop(MOVEMENTS_KEY, []):
        ledger_logger.info(movement)


def _record_movement(line):
    """Queue an audit line; it is written only once the transaction commits."""
    db.session.info.setdefault(MOVEMENTS_KEY, []).append(line)


def lock_user(user_id):
    """Load the user row FOR UPDATE (row lock on PostgreSQL)."""
    return (
        User.query
        .filter(User.id == user_id)
        .with_for_update()
        .first()
    )


def credit(user_id, amount: Decimal, reason: str) -> bool:
    updated = (
        User.query
        .filter(User.id == user_id)
        .update({User.balance: User.balance + amount}, synchronize_session=False)
    )
    if updated:
        _record_movement(f"credit user={user_id} amount={amount} reason={reason}")
    return bool(updated)


def debit(user_id, amount: Decimal, reason: str) -> bool:
    """Debit only if the balance covers it; False means insufficient funds."""
    updated = (
        User.query
        .filter(User.id == user_id, User.balance >= amount)
        .update({User.balance: User.balance - amount}, synchronize_session=False)
    )
    if updated:
        _record_movement(f"debit user={user_id} amount={amount} reason={reason}")
    return bool(updated)


def current_balance(user_id) -> Decimal:
    balance = db.session.query(User.balance).filter(User.id == user_id).scalar()
    return Decimal(str(balance)) if balance is not None else Decimal("0.00")
