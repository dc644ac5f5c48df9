#======================================================================================
#
# THIS IS THE ADMIN API
#
#=======================================================================================
from flask import jsonify, request, Blueprint, abort
from flask_login import current_user
from functools import wraps
from models import User
from ledger import catalog
from ledger.deposits import all_deposits, review_deposit, user_deposits
from ledger.withdrawals import all_withdrawals, review_withdrawal, user_withdrawals
from ledger.packages import get_user_packages
from ledger.errors import ValidationError
from utils import to_int, money
import logging

logger = logging.getLogger(__name__)


def admin_required(f):
    """
    Decorator to restrict access to admin-only routes.
    - 401 when nobody is logged in.
    - 403 Forbidden when the logged-in user is not an admin.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)

        if not current_user.is_admin:
            abort(403)

        return f(*args, **kwargs)

    return decorated_function


admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


def _json_body():
    return request.get_json(silent=True) or {}

#============================================================================================================
#
#     ----------------------------USERS-------------------------------------------
#
#============================================================================================================

@admin_bp.route("/users", methods=["GET"])
@admin_required
def users():
    all_users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify([u.to_dict() for u in all_users]), 200


@admin_bp.route("/users/search", methods=["GET"])
@admin_required
def search_user():
    """Look a user up by exact phone number, with their packages and money requests."""
    phone = request.args.get("phone", "").strip()
    if not phone:
        return jsonify({"error": "Please provide a phone number"}), 400

    user = User.query.filter_by(phone=phone).first()
    if not user:
        return jsonify({"error": "User not found"}), 404

    return jsonify({
        "user": user.to_dict(),
        "packages": [up.to_dict() for up in get_user_packages(user.id)],
        "deposits": [d.to_dict() for d in user_deposits(user.id)],
        "withdrawals": [w.to_dict() for w in user_withdrawals(user.id)],
    }), 200

#============================================================================================================
#     ----------------------------PACKAGE CATALOG-------------------------------------------
#============================================================================================================

@admin_bp.route("/packages", methods=["POST"])
@admin_required
def create_package():
    package = catalog.create_package(_json_body())
    logger.info(f"Admin {current_user.id} created package {package.id}")
    return jsonify({"success": True, "package": package.to_dict()}), 201


@admin_bp.route("/packages/<int:package_id>", methods=["PUT"])
@admin_required
def update_package(package_id):
    package = catalog.update_package(package_id, _json_body())
    logger.info(f"Admin {current_user.id} updated package {package.id}")
    return jsonify({"success": True, "package": package.to_dict()}), 200

#============================================================================================================
#     ----------------------------DEPOSITS & WITHDRAWALS-------------------------------------------
#============================================================================================================

@admin_bp.route("/deposits", methods=["GET"])
@admin_required
def deposits():
    return jsonify([d.to_dict(include_phone=True) for d in all_deposits()]), 200


@admin_bp.route("/deposits/action", methods=["POST"])
@admin_required
def deposit_action():
    data = _json_body()
    if data.get("depositId") is None:
        raise ValidationError("depositId is required")

    deposit, balance = review_deposit(to_int(data.get("depositId"), "depositId"), data.get("action"))
    logger.info(f"Admin {current_user.id} set deposit {deposit.id} to {deposit.status.value}")

    return jsonify({
        "success": True,
        "deposit": deposit.to_dict(),
        "balance": money(balance),
    }), 200


@admin_bp.route("/withdrawals", methods=["GET"])
@admin_required
def withdrawals():
    return jsonify([w.to_dict(include_phone=True) for w in all_withdrawals()]), 200


@admin_bp.route("/withdrawals/action", methods=["POST"])
@admin_required
def withdrawal_action():
    data = _json_body()
    if data.get("withdrawalId") is None:
        raise ValidationError("withdrawalId is required")

    withdrawal, balance = review_withdrawal(
        to_int(data.get("withdrawalId"), "withdrawalId"), data.get("action")
    )
    logger.info(f"Admin {current_user.id} set withdrawal {withdrawal.id} to {withdrawal.status.value}")

    return jsonify({
        "success": True,
        "withdrawal": withdrawal.to_dict(),
        "balance": money(balance),
    }), 200

#============================================================================================================
#     ----------------------------SETTINGS, NOTICES, GIFT CODES-------------------------------------------
#============================================================================================================

@admin_bp.route("/settings", methods=["POST"])
@admin_required
def update_setting():
    data = _json_body()
    setting = catalog.set_setting(data.get("key"), data.get("value"))
    return jsonify({"success": True, "key": setting.key, "value": setting.value}), 200


@admin_bp.route("/notices", methods=["POST"])
@admin_required
def add_notice():
    notice = catalog.add_notice(_json_body().get("content"))
    return jsonify({"success": True, "notice": notice.to_dict()}), 201


@admin_bp.route("/gift-codes", methods=["POST"])
@admin_required
def create_gift_code():
    data = _json_body()
    gift = catalog.create_gift_code(data.get("code"), data.get("amount"), data.get("max_claims"))
    logger.info(f"Admin {current_user.id} created gift code {gift.code}")
    return jsonify({"success": True, "giftCode": gift.to_dict()}), 201
