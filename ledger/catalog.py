"""
Admin-managed catalog: packages, gift codes, settings and notices.

Plain create/update operations with no state machine; the caller is
expected to have checked the admin role already.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Package, PackageStatus, GiftCode, Setting, Notice
from ledger.errors import NotFound, ValidationError, DuplicateTransaction
from utils import to_amount, to_int, to_text


PACKAGE_FIELDS = (
    "name", "price", "daily_earning", "total_income",
    "validity_days", "referral_commission", "image_url", "status",
)


def _optional_amount(value, field):
    if value in (None, ""):
        return None
    return to_amount(value, field, allow_zero=True)


def _package_values(data, partial=False):
    values = {}

    if "name" in data or not partial:
        name = to_text(data.get("name"), "name")
        if not name:
            raise ValidationError("name is required")
        values["name"] = name

    if "price" in data or not partial:
        values["price"] = to_amount(data.get("price"), "price")

    if "daily_earning" in data or not partial:
        values["daily_earning"] = to_amount(data.get("daily_earning"), "daily_earning")

    if "validity_days" in data or not partial:
        validity_days = to_int(data.get("validity_days"), "validity_days")
        if validity_days <= 0:
            raise ValidationError("validity_days must be greater than zero")
        values["validity_days"] = validity_days

    for field in ("total_income", "referral_commission"):
        if field in data:
            values[field] = _optional_amount(data.get(field), field)

    if "image_url" in data:
        values["image_url"] = to_text(data.get("image_url"), "image_url") or None

    if "status" in data:
        try:
            values["status"] = PackageStatus(data.get("status"))
        except ValueError:
            raise ValidationError("status must be 'active' or 'inactive'")

    return values


def create_package(data):
    package = Package(**_package_values(data))
    db.session.add(package)
    db.session.commit()
    return package


def update_package(package_id, data):
    package = db.session.get(Package, package_id)
    if not package:
        raise NotFound("Package not found")

    for field, value in _package_values(data, partial=True).items():
        setattr(package, field, value)
    db.session.commit()
    return package


def create_gift_code(code, amount, max_claims):
    code = to_text(code, "code")
    if not code:
        raise ValidationError("code is required")
    max_claims = to_int(max_claims, "max_claims")
    if max_claims <= 0:
        raise ValidationError("max_claims must be greater than zero")

    gift = GiftCode(code=code, amount=to_amount(amount), max_claims=max_claims, claimed_count=0)
    db.session.add(gift)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateTransaction("Gift code already exists")
    return gift

#=======================================================================
# SETTINGS & NOTICES
#=======================================================================

def get_settings():
    return {s.key: s.value for s in Setting.query.order_by(Setting.key).all()}


def get_setting(key, default=None):
    setting = db.session.get(Setting, key)
    return setting.value if setting else default


def set_setting(key, value):
    key = to_text(key, "key")
    if not key:
        raise ValidationError("key is required")
    if value is not None:
        value = to_text(value, "value", strip=False)

    setting = db.session.get(Setting, key)
    if setting:
        setting.value = value
    else:
        setting = Setting(key=key, value=value)
        db.session.add(setting)
    db.session.commit()
    return setting


def ensure_default_settings(defaults):
    """Insert any missing default setting; existing values are left alone."""
    created = 0
    for key, value in defaults.items():
        if db.session.get(Setting, key) is None:
            db.session.add(Setting(key=key, value=value))
            created += 1
    db.session.commit()
    return created


def channel_open(key):
    return (get_setting(key, "on") or "on").lower() != "off"


def add_notice(content):
    content = to_text(content, "content")
    if not content:
        raise ValidationError("content is required")
    notice = Notice(content=content)
    db.session.add(notice)
    db.session.commit()
    return notice


def latest_notices(limit=None):
    limit = limit or current_app.config.get("NOTICE_FEED_LIMIT", 5)
    return (
        Notice.query
        .order_by(Notice.created_at.desc(), Notice.id.desc())
        .limit(limit)
        .all()
    )
