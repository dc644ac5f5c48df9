from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from ledger.deposits import user_deposits
from ledger.withdrawals import user_withdrawals
from ledger.catalog import get_settings, latest_notices


bp = Blueprint('profile', __name__, url_prefix="/api")

# ----------------------------------------------------------------------------------
# HISTORY, newest first
# ----------------------------------------------------------------------------------
@bp.route("/history/deposits", methods=["GET"])
@login_required
def deposit_history():
    return jsonify([d.to_dict() for d in user_deposits(current_user.id)]), 200


@bp.route("/history/withdrawals", methods=["GET"])
@login_required
def withdrawal_history():
    return jsonify([w.to_dict() for w in user_withdrawals(current_user.id)]), 200

#==========================================================================
# PUBLIC SETTINGS AND NOTICE FEED

@bp.route("/settings", methods=["GET"])
def settings():
    return jsonify(get_settings()), 200


@bp.route("/notices", methods=["GET"])
def notices():
    return jsonify([n.to_dict() for n in latest_notices()]), 200
