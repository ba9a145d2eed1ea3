# auth_api.py — login Google (Authlib), session courante, logout
from flask import Blueprint, current_app, jsonify, redirect, url_for
from flask_login import current_user, login_required, login_user, logout_user

from errors import ApiError
from extensions import oauth
from identity import GoogleProfile, post_login_destination, resolve_professional

auth_bp = Blueprint("auth", __name__)


def register_google(app):
    oauth.register(
        name="google",
        client_id=app.config.get("GOOGLE_CLIENT_ID", ""),
        client_secret=app.config.get("GOOGLE_CLIENT_SECRET", ""),
        access_token_url="https://oauth2.googleapis.com/token",
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        api_base_url="https://www.googleapis.com/oauth2/v3/",
        client_kwargs={"scope": "openid email profile", "prompt": "select_account"},
    )


def _fetch_google_profile() -> GoogleProfile:
    oauth.google.authorize_access_token()
    userinfo = oauth.google.get("userinfo").json()
    return GoogleProfile.from_userinfo(userinfo)


@auth_bp.route("/google", methods=["GET"])
def google_login():
    redirect_uri = current_app.config.get("OAUTH_CALLBACK_URL") or url_for(
        "auth.google_callback", _external=True
    )
    return oauth.google.authorize_redirect(redirect_uri)


@auth_bp.route("/google/callback", methods=["GET"])
def google_callback():
    try:
        profile = _fetch_google_profile()
        current_app.logger.info("Google callback pour sub=%s", profile.subject)
        pro = resolve_professional(profile)
    except ApiError as e:
        if e.status_code >= 500:
            current_app.logger.error("OAUTH AUTHENTICATION ERROR: %s", e.message)
            return jsonify({"message": "Auth Error"}), 500
        current_app.logger.warning("OAUTH LOGIN FAILED: %s", e.message)
        return jsonify({"message": "Login failed", "details": e.message}), 401
    except Exception:
        current_app.logger.exception("OAUTH AUTHENTICATION ERROR")
        return jsonify({"message": "Auth Error"}), 500

    login_user(pro)
    destination = post_login_destination(pro)
    client_url = current_app.config.get("CLIENT_URL")
    return redirect(f"{client_url.rstrip('/')}{destination}" if client_url else destination)


@auth_bp.route("/me", methods=["GET"])
def me():
    if not current_user.is_authenticated:
        return jsonify({"authenticated": False, "message": "Unauthorized"}), 401
    return jsonify({"authenticated": True, "user": current_user.to_dict()})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"message": "Logged out"})
