#======================================================================================================
#
#   DEPOSIT & WITHDRAWAL REQUESTS (manual mobile-payment channels)
#
#===========================================================================================================
from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
from ledger.deposits import submit_deposit
from ledger.withdrawals import submit_withdrawal
from utils import to_amount, money
import logging


bp = Blueprint("payments", __name__, url_prefix="/api")
logger = logging.getLogger(__name__)


@bp.route("/deposit", methods=["POST"])
@login_required
def deposit():
    """
    Expected JSON: {"amount": 500, "transactionId": "", "method": "bkash"}
    The deposit stays pending until an admin reviews it.
    """
    data = request.get_json(silent=True) or {}
    amount = to_amount(data.get("amount"))

    deposit = submit_deposit(
        current_user.id,
        amount,
        data.get("transactionId"),
        method=data.get("method"),
    )
    logger.info(f"Deposit {deposit.id} submitted by user {current_user.id}: {amount}")

    return jsonify({"success": True, "deposit": deposit.to_dict()}), 200


@bp.route("/withdraw", methods=["POST"])
@login_required
def withdraw():
    """
    Expected JSON: {"amount": 200, "method": "nagad", "accountNumber": ""}
    The amount is held from the balance straight away.
    """
    data = request.get_json(silent=True) or {}
    amount = to_amount(data.get("amount"))

    withdrawal, balance = submit_withdrawal(
        current_user.id,
        amount,
        method=data.get("method"),
        account_number=data.get("accountNumber"),
    )
    logger.info(f"Withdrawal {withdrawal.id} submitted by user {current_user.id}: {amount}")

    return jsonify({
        "success": True,
        "withdrawal": withdrawal.to_dict(),
        "balance": money(balance),
    }), 200
