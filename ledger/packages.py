# package purchases and daily earning claims
from datetime import timedelta
from decimal import Decimal
from flask import current_app

from extensions import db
from models import Package, PackageStatus, UserPackage
from ledger.atomic import ledger_transaction, lock_user, credit, debit, current_balance
from ledger.errors import NotFound, InsufficientFunds, CooldownActive
from utils import utcnow


DEFAULT_COOLDOWN_HOURS = 24


def _cooldown_hours():
    return current_app.config.get("CLAIM_COOLDOWN_HOURS", DEFAULT_COOLDOWN_HOURS)


def list_active_packages():
    return (
        Package.query
        .filter_by(status=PackageStatus.ACTIVE)
        .order_by(Package.price.asc(), Package.id.asc())
        .all()
    )


def get_user_packages(user_id):
    return (
        UserPackage.query
        .filter_by(user_id=user_id)
        .order_by(UserPackage.purchased_at.desc(), UserPackage.id.desc())
        .all()
    )


def purchase_package(user_id, package_id, now=None):
    """
    Debit the package price and open a UserPackage.
    The first earning claim becomes possible one cooldown after purchase.
    Returns (user_package, new_balance).
    """
    now = now or utcnow()

    with ledger_transaction():
        package = db.session.get(Package, package_id)
        if not package or package.status is not PackageStatus.ACTIVE:
            raise NotFound("Package not found")

        if lock_user(user_id) is None:
            raise NotFound("User not found")

        price = Decimal(str(package.price))
        if not debit(user_id, price, f"package:{package.id}"):
            raise InsufficientFunds()

        user_package = UserPackage(
            user_id=user_id,
            package_id=package.id,
            purchased_at=now,
            expires_at=UserPackage.expiry_for(now, package.validity_days),
            last_claim_at=now,
        )
        db.session.add(user_package)
        db.session.flush()

        balance = current_balance(user_id)

    return user_package, balance


def claim_daily_earning(user_id, user_package_id, now=None):
    """
    Credit the package's daily earning if the cooldown since the last claim
    has elapsed. Returns (earning, new_balance).
    """
    now = now or utcnow()
    cooldown = _cooldown_hours()

    with ledger_transaction():
        user_package = (
            UserPackage.query
            .filter_by(id=user_package_id, user_id=user_id)
            .with_for_update()
            .first()
        )
        if not user_package:
            raise NotFound("Package not found")

        # The timestamp only moves if it is still old enough, so two racing
        # claims cannot both pass.
        cutoff = now - timedelta(hours=cooldown)
        advanced = (
            UserPackage.query
            .filter(
                UserPackage.id == user_package.id,
                UserPackage.user_id == user_id,
                UserPackage.last_claim_at <= cutoff,
            )
            .update({UserPackage.last_claim_at: now}, synchronize_session=False)
        )
        if not advanced:
            raise CooldownActive(
                f"You can claim once every {cooldown} hours",
                next_claim_at=user_package.next_claim_at(cooldown),
            )

        earning = Decimal(str(user_package.package.daily_earning))
        credit(user_id, earning, f"earning:{user_package.id}")
        balance = current_balance(user_id)

    return earning, balance
