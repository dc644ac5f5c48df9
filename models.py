# models.py - Flask-SQLAlchemy models for the investment ledger
import enum
from datetime import timedelta
from decimal import Decimal
from sqlalchemy import UniqueConstraint, CheckConstraint, Index, text
from werkzeug.security import check_password_hash, generate_password_hash
from flask_login import UserMixin
from extensions import db
from utils import money, iso, utcnow

# ===========================================================
# ENUM DEFINITIONS
# ===========================================================

class Role(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class PackageStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class RequestStatus(enum.Enum):
    """Lifecycle of a deposit or withdrawal: pending -> approved | rejected."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self):
        return self is not RequestStatus.PENDING


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


request_status_enum = db.Enum(RequestStatus, name="request_status", values_callable=_enum_values)


# ===========================================================
# BASE MIXIN FOR COMMON FIELDS
# ===========================================================

class BaseMixin:
    """Provides a created_at timestamp to inheriting models."""
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

# ===========================================================
# USER
# ===========================================================

class User(UserMixin, db.Model, BaseMixin):
    """Account keyed by phone number; owns the single authoritative balance."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(20), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    # Only the ledger package writes this column.
    balance = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0.00"), server_default=text("0"))
    role = db.Column(db.String(20), nullable=False, default=Role.USER.value, index=True)

    user_packages = db.relationship('UserPackage', back_populates='user', lazy='dynamic')
    deposits = db.relationship('Deposit', back_populates='user', lazy='dynamic')
    withdrawals = db.relationship('Withdrawal', back_populates='user', lazy='dynamic')

    @property
    def is_admin(self):
        return self.role == Role.ADMIN.value

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self, include_balance=True):
        result = {
            "id": self.id,
            "phone": self.phone,
            "role": self.role,
            "created_at": iso(self.created_at),
        }
        if include_balance:
            result["balance"] = money(self.balance)
        return result

    def __repr__(self):
        return f'<User {self.id} {self.phone}>'

# ===========================================================
# CATALOG
# ===========================================================

class Package(db.Model, BaseMixin):
    """Catalog item sold to users."""
    __tablename__ = 'packages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Numeric(18, 2), nullable=False)
    daily_earning = db.Column(db.Numeric(18, 2), nullable=False)
    # Stored for display only.
    total_income = db.Column(db.Numeric(18, 2), nullable=True)
    validity_days = db.Column(db.Integer, nullable=False)
    referral_commission = db.Column(db.Numeric(18, 2), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    status = db.Column(
        db.Enum(PackageStatus, name="package_status", values_callable=_enum_values),
        nullable=False,
        default=PackageStatus.ACTIVE,
        index=True,
    )

    __table_args__ = (
        CheckConstraint('price >= 0', name='chk_package_price'),
        CheckConstraint('validity_days > 0', name='chk_package_validity'),
    )

    @property
    def is_active(self):
        return self.status is PackageStatus.ACTIVE

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": money(self.price),
            "daily_earning": money(self.daily_earning),
            "total_income": money(self.total_income),
            "validity_days": self.validity_days,
            "referral_commission": money(self.referral_commission),
            "image_url": self.image_url,
            "status": self.status.value,
        }


class UserPackage(db.Model):
    """One purchase of a package by a user."""
    __tablename__ = 'user_packages'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey('packages.id'), nullable=False)
    purchased_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    last_claim_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship('User', back_populates='user_packages')
    package = db.relationship('Package')

    @staticmethod
    def expiry_for(purchased_at, validity_days):
        return purchased_at + timedelta(days=validity_days)

    def next_claim_at(self, cooldown_hours):
        return self.last_claim_at + timedelta(hours=cooldown_hours)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "package_id": self.package_id,
            "name": self.package.name if self.package else None,
            "daily_earning": money(self.package.daily_earning) if self.package else 0.0,
            "total_income": money(self.package.total_income) if self.package else 0.0,
            "purchased_at": iso(self.purchased_at),
            "expires_at": iso(self.expires_at),
            "last_claim_at": iso(self.last_claim_at),
        }

# ===========================================================
# DEPOSITS & WITHDRAWALS
# ===========================================================

class Deposit(db.Model, BaseMixin):
    """Funding request backed by an external mobile-payment receipt."""
    __tablename__ = 'deposits'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    transaction_id = db.Column(db.String(128), nullable=False)
    method = db.Column(db.String(50), nullable=True)
    status = db.Column(
        request_status_enum,
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )

    user = db.relationship('User', back_populates='deposits')

    __table_args__ = (
        UniqueConstraint('transaction_id', name='uq_deposits_transaction_id'),
    )

    def to_dict(self, include_phone=False):
        result = {
            "id": self.id,
            "user_id": self.user_id,
            "amount": money(self.amount),
            "transaction_id": self.transaction_id,
            "method": self.method,
            "status": self.status.value,
            "created_at": iso(self.created_at),
        }
        if include_phone:
            result["phone"] = self.user.phone if self.user else None
        return result


class Withdrawal(db.Model, BaseMixin):
    """Payout request; the amount is held from the balance at submission."""
    __tablename__ = 'withdrawals'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    method = db.Column(db.String(50), nullable=True)
    account_number = db.Column(db.String(50), nullable=True)
    status = db.Column(
        request_status_enum,
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )

    user = db.relationship('User', back_populates='withdrawals')

    def to_dict(self, include_phone=False):
        result = {
            "id": self.id,
            "user_id": self.user_id,
            "amount": money(self.amount),
            "method": self.method,
            "account_number": self.account_number,
            "status": self.status.value,
            "created_at": iso(self.created_at),
        }
        if include_phone:
            result["phone"] = self.user.phone if self.user else None
        return result

# ===========================================================
# GIFT CODES
# ===========================================================

class GiftCode(db.Model, BaseMixin):
    __tablename__ = 'gift_codes'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    max_claims = db.Column(db.Integer, nullable=False)
    claimed_count = db.Column(db.Integer, nullable=False, default=0, server_default=text("0"))

    __table_args__ = (
        CheckConstraint('claimed_count <= max_claims', name='chk_gift_claims_cap'),
        CheckConstraint('claimed_count >= 0', name='chk_gift_claims_non_negative'),
    )

    @property
    def is_exhausted(self):
        return self.claimed_count >= self.max_claims

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "amount": money(self.amount),
            "max_claims": self.max_claims,
            "claimed_count": self.claimed_count,
            "created_at": iso(self.created_at),
        }


class GiftClaim(db.Model):
    """A row here is the proof that a user already redeemed a code."""
    __tablename__ = 'gift_claims'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    code_id = db.Column(db.Integer, db.ForeignKey('gift_codes.id'), nullable=False)
    claimed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'code_id', name='uq_gift_claims_user_code'),
    )

# ===========================================================
# SETTINGS & NOTICES
# ===========================================================

class Setting(db.Model):
    __tablename__ = 'settings'

    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=True)


class Notice(db.Model, BaseMixin):
    __tablename__ = 'notices'

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)

    __table_args__ = (
        Index('idx_notices_created', 'created_at'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "content": self.content,
            "created_at": iso(self.created_at),
        }
