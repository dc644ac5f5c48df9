from flask import request, jsonify, Blueprint
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import IntegrityError
from models import User, Role
from extensions import db
from utils import validate_phone, to_text
from logger import auth_logger


#==================================================================================================================

bp = Blueprint("auth", __name__, url_prefix="")


#===========================================================================
#      REGISTER ROUTE.
#==============================================================================
@bp.route("/api/register", methods=["POST"])
def register():
    """
    Create a new account keyed by phone number and log it in.
    Expected JSON: {"phone": "", "password": ""}
    """
    data = request.get_json(silent=True) or {}

    phone = to_text(data.get("phone"), "phone")
    password = to_text(data.get("password"), "password", strip=False)

    if not phone or not password:
        return jsonify({"error": "Phone and password are required"}), 400

    if not validate_phone(phone):
        return jsonify({"error": "Invalid phone number"}), 400

    if len(password) < 6:
        return jsonify({"error": "Password must be at least 6 characters"}), 400

    if User.query.filter_by(phone=phone).first():
        return jsonify({"error": "Phone number already registered"}), 400

    user = User(phone=phone, role=Role.USER.value)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Phone number already registered"}), 400

    login_user(user)
    auth_logger.info(f"Registered user {user.id}")

    return jsonify({"user": user.to_dict(include_balance=False)}), 201


# --------------------------------------------------
#      Login Route
# --------------------------------------------------
@bp.route("/api/login", methods=["POST"])
def login():
    """
    Authenticate a user.
    Expected JSON: {"phone": "", "password": ""}
    """
    data = request.get_json(silent=True) or {}
    phone = to_text(data.get("phone"), "phone")
    password = to_text(data.get("password"), "password", strip=False)

    if not phone or not password:
        return jsonify({"error": "Phone and password are required"}), 400

    user = User.query.filter_by(phone=phone).first()
    if not user or not user.check_password(password):
        auth_logger.warning(f"Failed login for phone {phone}")
        return jsonify({"error": "Invalid credentials"}), 401

    login_user(user)

    return jsonify({"user": user.to_dict(include_balance=False)}), 200

#-----------------------------------------------------------------------------------------------------
@bp.route("/api/logout", methods=["POST"])
def logout():
    """
    Destroy User session
    """
    logout_user()
    return jsonify({"success": True}), 200


# --------------------------------------------------
# Current user (for frontend auto-login)
# --------------------------------------------------
@bp.route("/api/me", methods=["GET"])
@login_required
def me():
    user = current_user
    return jsonify({
        "id": user.id,
        "phone": user.phone,
        "balance": float(user.balance or 0),
        "role": user.role,
    }), 200
