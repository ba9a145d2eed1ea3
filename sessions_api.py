# sessions_api.py — sessions cliniques (une par turno), monté sous /api
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from errors import Conflict, Forbidden, NotFound, commit_or_raise, json_body, parse_id
from extensions import db
from models import Appointment, ConsultationSession, STATUS_CONFIRMED

sessions_bp = Blueprint("sessions", __name__)

SESSION_EXISTS = "Session already exists for this appointment"


def _owned_session(session_id: int) -> ConsultationSession:
    rec = db.session.get(ConsultationSession, session_id)
    if rec is None:
        raise NotFound("Session not found")
    if rec.professional_id != current_user.id:
        raise Forbidden("Unauthorized")
    return rec


def _existing_session(appointment_id: int):
    return ConsultationSession.query.filter_by(appointment_id=appointment_id).first()


@sessions_bp.route("/sessions", methods=["GET"])
@login_required
def list_sessions():
    query = ConsultationSession.query.filter_by(professional_id=current_user.id)
    patient_id = parse_id(request.args.get("patientId"), "patientId")
    if patient_id is not None:
        query = query.filter_by(patient_id=patient_id)
    rows = query.order_by(ConsultationSession.date.desc()).all()
    return jsonify([s.to_dict(with_patient=True, with_appointment=True) for s in rows])


@sessions_bp.route("/sessions/<int:session_id>", methods=["GET"])
@login_required
def get_session(session_id: int):
    rec = _owned_session(session_id)
    return jsonify(rec.to_dict(with_patient=True, with_appointment=True))


@sessions_bp.route("/appointments/<int:appointment_id>/session", methods=["POST"])
@login_required
def create_session(appointment_id: int):
    appt = db.session.get(Appointment, appointment_id)
    if appt is None:
        raise NotFound("Appointment not found")
    if appt.professional_id != current_user.id:
        raise Forbidden("Unauthorized")
    if _existing_session(appt.id) is not None:
        raise Conflict(SESSION_EXISTS)

    data = json_body()
    rec = ConsultationSession(
        appointment_id=appt.id,
        professional_id=current_user.id,
        patient_id=appt.patient_id,
        date=appt.date_time,
        time=appt.date_time,
        session_type=data.get("sessionType"),
        notes=data.get("notes"),
    )
    db.session.add(rec)
    # même transaction : la session et le passage du turno à CONFIRMADO
    appt.status = STATUS_CONFIRMED
    commit_or_raise("creating session", SESSION_EXISTS)
    current_app.logger.info("Session %s créée pour le turno %s", rec.id, appt.id)
    return jsonify(rec.to_dict()), 201


@sessions_bp.route("/sessions/<int:session_id>", methods=["PUT"])
@login_required
def update_session(session_id: int):
    rec = _owned_session(session_id)
    data = json_body()
    if "sessionType" in data:
        rec.session_type = data.get("sessionType")
    if "notes" in data:
        rec.notes = data.get("notes")
    commit_or_raise("updating session")
    return jsonify(rec.to_dict())


@sessions_bp.route("/sessions/<int:session_id>", methods=["DELETE"])
@login_required
def delete_session(session_id: int):
    rec = _owned_session(session_id)
    db.session.delete(rec)
    commit_or_raise("deleting session")
    return jsonify({"message": "Session deleted successfully"})
