#======================================================================================
#
#   PACKAGE PURCHASES AND DAILY EARNINGS
#
#=======================================================================================
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from ledger.packages import (
    list_active_packages, get_user_packages, purchase_package, claim_daily_earning,
)
from ledger.errors import ValidationError
from utils import to_int, money
import logging

logger = logging.getLogger(__name__)

bp = Blueprint("packages", __name__, url_prefix="/api")


@bp.route("/packages", methods=["GET"])
@login_required
def packages():
    return jsonify([p.to_dict() for p in list_active_packages()]), 200


@bp.route("/my-packages", methods=["GET"])
@login_required
def my_packages():
    return jsonify([up.to_dict() for up in get_user_packages(current_user.id)]), 200


@bp.route("/buy-package", methods=["POST"])
@login_required
def buy_package():
    data = request.get_json(silent=True) or {}
    if data.get("packageId") is None:
        raise ValidationError("packageId is required")
    package_id = to_int(data.get("packageId"), "packageId")

    user_package, balance = purchase_package(current_user.id, package_id)
    logger.info(f"User {current_user.id} bought package {package_id} (user_package {user_package.id})")

    return jsonify({
        "success": True,
        "userPackage": user_package.to_dict(),
        "balance": money(balance),
    }), 200


@bp.route("/claim-earning", methods=["POST"])
@login_required
def claim_earning():
    data = request.get_json(silent=True) or {}
    if data.get("userPackageId") is None:
        raise ValidationError("userPackageId is required")
    user_package_id = to_int(data.get("userPackageId"), "userPackageId")

    earning, balance = claim_daily_earning(current_user.id, user_package_id)

    return jsonify({
        "success": True,
        "earning": money(earning),
        "balance": money(balance),
    }), 200
