from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from werkzeug.security import check_password_hash, generate_password_hash

from dicey.extensions import db
from dicey.models import User

MIN_PASSWORD_LENGTH = 8


def user_payload(user):
    return {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "email": user.email,
    }


def register_auth_routes(app):
    @app.route("/api/register", methods=["POST"])
    def register():
        data = request.get_json(silent=True) or {}
        username = (data.get("username") or "").strip()
        display_name = (data.get("display_name") or "").strip() or username
        email = (data.get("email") or "").strip().lower()
        password = data.get("password") or ""

        if not username or not email or not password:
            return (
                jsonify({"ok": False, "error": "Username, email and password are required."}),
                400,
            )

        if len(password) < MIN_PASSWORD_LENGTH:
            return (
                jsonify(
                    {
                        "ok": False,
                        "error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
                    }
                ),
                400,
            )

        if User.query.filter_by(username=username).first():
            return jsonify({"ok": False, "error": "Username already exists."}), 400
        if User.query.filter_by(email=email).first():
            return jsonify({"ok": False, "error": "Email already registered."}), 400

        user = User(
            username=username,
            display_name=display_name,
            email=email,
            password_hash=generate_password_hash(password, method="pbkdf2:sha256"),
        )
        try:
            db.session.add(user)
            db.session.commit()
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Could not register user %s", username)
            return jsonify({"ok": False, "error": "Database error: Could not register user."}), 500

        login_user(user)
        return jsonify({"ok": True, "user": user_payload(user)}), 201

    @app.route("/api/login", methods=["POST"])
    def login():
        data = request.get_json(silent=True) or {}
        username = (data.get("username") or "").strip()
        password = data.get("password") or ""
        remember = bool(data.get("remember"))

        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password_hash, password):
            return jsonify({"ok": False, "error": "Invalid username or password."}), 401

        login_user(user, remember=remember)
        return jsonify({"ok": True, "user": user_payload(user)})

    @app.route("/api/logout", methods=["POST"])
    @login_required
    def logout():
        logout_user()
        return jsonify({"ok": True})

    @app.route("/api/user")
    @login_required
    def me():
        return jsonify({"ok": True, "user": user_payload(current_user)})
