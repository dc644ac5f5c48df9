import itertools
import threading
from decimal import Decimal

import pytest

from app import create_app
from config import TestingConfig
from extensions import db
from models import User, Role, Package, PackageStatus, GiftCode
from ledger.atomic import current_balance
from ledger.errors import LedgerError


@pytest.fixture
def app(tmp_path):
    """
    Fresh app on a file-backed SQLite database per test.
    A file (not :memory:) lets worker threads open their own connections.
    """
    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'hopwed-test.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30, "check_same_thread": False}}
        LOG_DIR = str(tmp_path / "logs")

    app = create_app(Config)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    phones = itertools.count(1)

    def _make_user(balance="0", role=Role.USER, phone=None, password="secret123"):
        phone = phone or f"0171{next(phones):07d}"
        with app.app_context():
            user = User(phone=phone, role=role.value, balance=Decimal(balance))
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user


@pytest.fixture
def make_package(app):
    def _make_package(price="500", daily_earning="50", validity_days=30,
                      status=PackageStatus.ACTIVE, name="Starter"):
        with app.app_context():
            package = Package(
                name=name,
                price=Decimal(price),
                daily_earning=Decimal(daily_earning),
                total_income=Decimal(daily_earning) * validity_days,
                validity_days=validity_days,
                status=status,
            )
            db.session.add(package)
            db.session.commit()
            return package.id

    return _make_package


@pytest.fixture
def make_gift_code(app):
    def _make_gift_code(code="WELCOME100", amount="100", max_claims=3):
        with app.app_context():
            gift = GiftCode(code=code, amount=Decimal(amount), max_claims=max_claims, claimed_count=0)
            db.session.add(gift)
            db.session.commit()
            return gift.id

    return _make_gift_code


@pytest.fixture
def balance_of(app):
    def _balance_of(user_id):
        with app.app_context():
            return current_balance(user_id)

    return _balance_of


def login(client, phone, password="secret123"):
    response = client.post("/api/login", json={"phone": phone, "password": password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def user_client(app, make_user):
    """(client, user_id) for a logged-in regular user with 1000 in balance."""
    user_id = make_user(balance="1000", phone="01710000001")
    return login(app.test_client(), "01710000001"), user_id


@pytest.fixture
def admin_client(app, make_user):
    make_user(role=Role.ADMIN, phone="01790000000", password="admin-pass")
    return login(app.test_client(), "01790000000", "admin-pass")


@pytest.fixture
def login_as():
    return login


@pytest.fixture
def run_concurrently(app):
    """
    Start every call on its own thread (each with its own app context and
    session), release them together, and return (results, ledger_errors).
    """
    def _run(fn, arg_sets):
        barrier = threading.Barrier(len(arg_sets))
        results, errors = [], []
        lock = threading.Lock()

        def worker(args):
            with app.app_context():
                barrier.wait()
                try:
                    result = fn(*args)
                    with lock:
                        results.append(result)
                except LedgerError as e:
                    with lock:
                        errors.append(e)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(args,)) for args in arg_sets]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)
        return results, errors

    return _run
