# make_admin.py
# Usage: python make_admin.py [phone] [password]

import sys
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import User, Role
from ledger.catalog import ensure_default_settings


def make_admin(phone, password):
    """Promote the user with this phone to admin, creating the account if needed."""
    user = User.query.filter_by(phone=phone).first()

    if not user:
        user = User(phone=phone, role=Role.ADMIN.value)
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            user = User.query.filter_by(phone=phone).first()
            if not user:
                raise RuntimeError("Failed to create or find admin after IntegrityError.") from e

    if user.role != Role.ADMIN.value:
        user.role = Role.ADMIN.value
        db.session.commit()

    return user


def ensure_default_admin(phone, password):
    """
    Create the default admin only when no account holds this phone.
    An existing account is returned untouched, never promoted.
    Returns (user, created).
    """
    user = User.query.filter_by(phone=phone).first()
    if user:
        return user, False

    user = User(phone=phone, role=Role.ADMIN.value)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return User.query.filter_by(phone=phone).first(), False
    return user, True


def seed_defaults(app):
    """Default settings and the default admin; safe to run repeatedly."""
    created = ensure_default_settings(app.config["DEFAULT_SETTINGS"])
    admin, _ = ensure_default_admin(app.config["ADMIN_PHONE"], app.config["ADMIN_PASSWORD"])
    return created, admin


if __name__ == "__main__":
    from app import create_app

    app = create_app()
    with app.app_context():
        db.create_all()
        phone = sys.argv[1] if len(sys.argv) > 1 else app.config["ADMIN_PHONE"]
        password = sys.argv[2] if len(sys.argv) > 2 else app.config["ADMIN_PASSWORD"]
        user = make_admin(phone, password)
        print(f"User (id={user.id}, phone={user.phone}) is now admin.")
