from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import GiftCode, GiftClaim
from ledger.atomic import ledger_transaction, credit, current_balance
from ledger.errors import NotFound, AlreadyClaimed, CodeExhausted, ValidationError
from utils import utcnow, to_text

# PostgreSQL names the constraint, SQLite names its columns.
DUPLICATE_CLAIM_MARKERS = (
    "uq_gift_claims_user_code",
    "gift_claims.user_id, gift_claims.code_id",
)


def _has_claimed(user_id, code_id):
    return GiftClaim.query.filter_by(user_id=user_id, code_id=code_id).first() is not None


def _is_duplicate_claim(error):
    message = str(error.orig)
    return any(marker in message for marker in DUPLICATE_CLAIM_MARKERS)


def redeem_gift_code(user_id, code, now=None):
    """
    Credit a gift code's amount to the user, once per (user, code) and at most
    max_claims times overall. Returns (amount, new_balance).
    """
    code = to_text(code, "gift code")
    if not code:
        raise ValidationError("Gift code is required")
    now = now or utcnow()

    try:
        with ledger_transaction():
            gift = GiftCode.query.filter_by(code=code).with_for_update().first()
            if not gift:
                raise NotFound("Invalid gift code")
            if _has_claimed(user_id, gift.id):
                raise AlreadyClaimed()
            if gift.is_exhausted:
                raise CodeExhausted()

            # Capacity is re-checked by the UPDATE itself so concurrent
            # redemptions can never push claimed_count past max_claims.
            reserved = (
                GiftCode.query
                .filter(GiftCode.id == gift.id, GiftCode.claimed_count < GiftCode.max_claims)
                .update({GiftCode.claimed_count: GiftCode.claimed_count + 1}, synchronize_session=False)
            )
            if not reserved:
                # The slot may have gone to this same user in a racing request.
                if _has_claimed(user_id, gift.id):
                    raise AlreadyClaimed()
                raise CodeExhausted()

            db.session.add(GiftClaim(user_id=user_id, code_id=gift.id, claimed_at=now))
            db.session.flush()

            amount = Decimal(str(gift.amount))
            credit(user_id, amount, f"gift:{gift.code}")
            balance = current_balance(user_id)
    except IntegrityError as e:
        if _is_duplicate_claim(e):
            raise AlreadyClaimed()
        raise

    return amount, balance


def list_gift_codes():
    return GiftCode.query.order_by(GiftCode.created_at.desc(), GiftCode.id.desc()).all()
