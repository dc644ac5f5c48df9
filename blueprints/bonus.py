from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from ledger.gifts import redeem_gift_code
from utils import money
import logging

logger = logging.getLogger(__name__)

bp = Blueprint("bonus", __name__, url_prefix="/api")


# ======================================================
# GIFT CODE REDEMPTION
# ======================================================
@bp.route("/claim-gift", methods=["POST"])
@login_required
def claim_gift():
    data = request.get_json(silent=True) or {}

    amount, balance = redeem_gift_code(current_user.id, data.get("code"))
    logger.info(f"User {current_user.id} redeemed gift code for {amount}")

    return jsonify({
        "success": True,
        "amount": money(amount),
        "balance": money(balance),
    }), 200
