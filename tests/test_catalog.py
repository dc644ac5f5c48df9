"""Admin catalog: packages, gift codes, settings and notices."""
from decimal import Decimal

import pytest

from extensions import db
from models import Package, PackageStatus
from ledger import catalog
from ledger.errors import NotFound, ValidationError, DuplicateTransaction


class TestPackages:

    def test_create_package(self, ctx):
        package = catalog.create_package({
            "name": "Silver",
            "price": "1500",
            "daily_earning": "60",
            "total_income": "5400",
            "validity_days": 90,
        })

        assert package.id is not None
        assert package.price == Decimal("1500.00")
        assert package.status is PackageStatus.ACTIVE
        assert package.referral_commission is None

    def test_create_package_requires_fields(self, ctx):
        with pytest.raises(ValidationError):
            catalog.create_package({"name": "Broken", "price": "100"})

    def test_validity_must_be_positive(self, ctx):
        with pytest.raises(ValidationError):
            catalog.create_package({"name": "Zero", "price": "100", "daily_earning": "1", "validity_days": 0})

    def test_update_is_partial(self, ctx, make_package):
        package_id = make_package(price="500", daily_earning="50", name="Starter")

        catalog.update_package(package_id, {"price": "650", "status": "inactive"})

        package = db.session.get(Package, package_id)
        assert package.price == Decimal("650.00")
        assert package.daily_earning == Decimal("50.00")
        assert package.name == "Starter"
        assert package.status is PackageStatus.INACTIVE

    def test_update_unknown_package(self, ctx):
        with pytest.raises(NotFound):
            catalog.update_package(404, {"price": "1"})

    def test_update_rejects_bad_status(self, ctx, make_package):
        with pytest.raises(ValidationError):
            catalog.update_package(make_package(), {"status": "archived"})


class TestGiftCodes:

    def test_create(self, ctx):
        gift = catalog.create_gift_code("EID2026", "250", 100)

        assert gift.claimed_count == 0
        assert gift.amount == Decimal("250.00")

    def test_duplicate_code(self, ctx):
        catalog.create_gift_code("EID2026", "250", 100)

        with pytest.raises(DuplicateTransaction):
            catalog.create_gift_code("EID2026", "10", 1)

    def test_max_claims_must_be_positive(self, ctx):
        with pytest.raises(ValidationError):
            catalog.create_gift_code("NONE", "10", 0)


class TestSettingsAndNotices:

    def test_defaults_only_fill_missing_keys(self, ctx):
        catalog.set_setting("bkash_number", "01999999999")

        created = catalog.ensure_default_settings(ctx.config["DEFAULT_SETTINGS"])

        assert created == len(ctx.config["DEFAULT_SETTINGS"]) - 1
        assert catalog.get_setting("bkash_number") == "01999999999"
        assert catalog.ensure_default_settings(ctx.config["DEFAULT_SETTINGS"]) == 0

    def test_set_setting_upserts(self, ctx):
        catalog.set_setting("app_notice", "first")
        catalog.set_setting("app_notice", "second")

        assert catalog.get_settings() == {"app_notice": "second"}

    def test_channel_open_by_default(self, ctx):
        assert catalog.channel_open("deposit_status")
        catalog.set_setting("deposit_status", "OFF")
        assert not catalog.channel_open("deposit_status")

    def test_latest_notices_limited_and_newest_first(self, ctx):
        for i in range(7):
            catalog.add_notice(f"notice {i}")

        notices = catalog.latest_notices()

        assert len(notices) == 5
        assert notices[0].content == "notice 6"

    def test_empty_notice_rejected(self, ctx):
        with pytest.raises(ValidationError):
            catalog.add_notice("   ")
