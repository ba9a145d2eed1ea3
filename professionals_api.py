# professionals_api.py — profil du professionnel connecté
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from errors import commit_or_raise, json_body

professionals_bp = Blueprint("professionals", __name__)

PROFILE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "dni": "dni",
    "professionalLicenseNumber": "professional_license_number",
}


@professionals_bp.route("/me", methods=["GET"])
@login_required
def get_me():
    return jsonify(current_user.to_dict())


@professionals_bp.route("/me", methods=["PUT"])
@login_required
def update_me():
    data = json_body()
    pro = current_user._get_current_object()
    for key, attr in PROFILE_FIELDS.items():
        if key in data:
            value = data.get(key)
            setattr(pro, attr, value.strip() if isinstance(value, str) else value)
    commit_or_raise("updating profile")
    return jsonify(pro.to_dict())
