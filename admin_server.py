# admin_server.py — Blueprint d'administration (rôle ADMIN) : liste et activation des professionnels
from functools import wraps

from flask import Blueprint, current_app, jsonify
from flask_login import current_user

from errors import Conflict, Forbidden, NotFound, Unauthorized, commit_or_raise
from extensions import db
from models import Professional

admin_bp = Blueprint("admin", __name__)


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthorized()
        if not current_user.is_admin:
            raise Forbidden("No tienes permisos para acceder a esta sección.")
        return view(*args, **kwargs)
    return wrapper


@admin_bp.route("/professionals", methods=["GET"])
@admin_required
def list_professionals():
    rows = Professional.query.order_by(Professional.created_at.desc(), Professional.id.desc()).all()
    return jsonify([p.to_dict() for p in rows])


@admin_bp.route("/professionals/<int:professional_id>/toggle-status", methods=["PATCH"])
@admin_required
def toggle_professional_status(professional_id: int):
    professional = db.session.get(Professional, professional_id)
    if professional is None:
        raise NotFound("Profesional no encontrado")

    # un admin ne peut pas se désactiver lui-même
    if professional.id == current_user.id:
        raise Conflict("No puedes desactivar tu propia cuenta.")

    professional.is_active = not professional.is_active
    commit_or_raise("toggling professional status")
    current_app.logger.info(
        "[ADMIN] professional %s → active=%s (par %s)",
        professional.id, professional.is_active, current_user.id,
    )
    return jsonify(professional.to_dict())
