# appointments_api.py — turnos du professionnel connecté (liste, semaine, stats, CRUD + récurrence)
from datetime import datetime, time, timedelta

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from errors import Conflict, NotFound, ValidationFailure, commit_or_raise, json_body, parse_id
from extensions import db
from models import (
    Appointment, ConsultationSession, Patient,
    APPOINTMENT_STATUSES, STATUS_CANCELLED, utcnow,
)
from recurrence import expand_recurrence, parse_datetime

appointments_bp = Blueprint("appointments", __name__)


def _own_appointments():
    return Appointment.query.filter(Appointment.professional_id == current_user.id)


def _own_appointment_or_404(appointment_id: int) -> Appointment:
    appt = _own_appointments().filter(Appointment.id == appointment_id).first()
    if appt is None:
        raise NotFound("Appointment not found")
    return appt


def _arg_datetime(name: str) -> datetime:
    value = parse_datetime(request.args.get(name))
    if value is None:
        raise ValidationFailure(f"Invalid date/time format for {name}")
    return value


def _week_bounds(target: datetime):
    # semaine du lundi 00:00 au dimanche 23:59:59.999999
    monday = datetime.combine((target - timedelta(days=target.weekday())).date(), time.min)
    return monday, monday + timedelta(days=7) - timedelta(microseconds=1)


def _serialize(rows):
    return jsonify([a.to_dict(with_patient=True, with_session=True) for a in rows])


@appointments_bp.route("/", methods=["GET"], strict_slashes=False)
@login_required
def list_appointments():
    query = _own_appointments()
    if request.args.get("startDate") and request.args.get("endDate"):
        query = query.filter(Appointment.date_time.between(
            _arg_datetime("startDate"), _arg_datetime("endDate")
        ))
    elif request.args.get("today") == "true":
        start = datetime.combine(utcnow().date(), time.min)
        query = query.filter(Appointment.date_time.between(start, datetime.combine(start.date(), time.max)))
    return _serialize(query.order_by(Appointment.date_time.asc()).all())


@appointments_bp.route("/week", methods=["GET"])
@login_required
def week_appointments():
    target = _arg_datetime("date") if request.args.get("date") else utcnow()
    start, end = _week_bounds(target)
    rows = (_own_appointments()
            .filter(Appointment.date_time.between(start, end))
            .order_by(Appointment.date_time.asc()).all())
    return _serialize(rows)


@appointments_bp.route("/stats", methods=["GET"])
@login_required
def appointment_stats():
    total = _own_appointments().count()
    completed = ConsultationSession.query.filter_by(professional_id=current_user.id).count()
    cancelled = _own_appointments().filter(Appointment.status == STATUS_CANCELLED).count()
    upcoming = _own_appointments().filter(Appointment.date_time >= utcnow()).count()
    return jsonify({"total": total, "completed": completed, "cancelled": cancelled, "upcoming": upcoming})


@appointments_bp.route("/", methods=["POST"], strict_slashes=False)
@login_required
def create_appointments():
    data = json_body()
    rows = expand_recurrence(
        professional_id=current_user.id,
        patient_id=parse_id(data.get("patientId"), "patientId"),
        start=data.get("dateTime"),
        recurrence=data.get("recurrence"),
        status=data.get("status"),
    )
    if db.session.get(Patient, rows[0].patient_id) is None:
        raise NotFound("Patient not found")

    # insertion en un seul commit : toute la série ou rien
    db.session.add_all(rows)
    commit_or_raise("creating appointments")
    current_app.logger.info(
        "%d turno(s) créé(s) pour professional=%s patient=%s (%s)",
        len(rows), current_user.id, rows[0].patient_id, rows[0].recurrence,
    )
    return jsonify({"message": "Appointments created", "count": len(rows)}), 201


@appointments_bp.route("/<int:appointment_id>", methods=["GET"])
@login_required
def get_appointment(appointment_id: int):
    appt = _own_appointment_or_404(appointment_id)
    return jsonify(appt.to_dict(with_patient=True, with_session=True))


@appointments_bp.route("/<int:appointment_id>", methods=["PUT"])
@login_required
def update_appointment(appointment_id: int):
    appt = _own_appointment_or_404(appointment_id)
    data = json_body()

    patient_id = parse_id(data.get("patientId"), "patientId")
    if patient_id:
        if db.session.get(Patient, patient_id) is None:
            raise NotFound("Patient not found")
        appt.patient_id = patient_id
    if data.get("dateTime"):
        when = parse_datetime(data["dateTime"])
        if when is None:
            raise ValidationFailure("Invalid date/time format")
        appt.date_time = when
    if data.get("status"):
        status = str(data["status"]).upper()
        if status not in APPOINTMENT_STATUSES:
            raise ValidationFailure(f"Invalid status: {status}")
        appt.status = status

    commit_or_raise("updating appointment")
    return jsonify(appt.to_dict())


@appointments_bp.route("/<int:appointment_id>", methods=["DELETE"])
@login_required
def delete_appointment(appointment_id: int):
    appt = _own_appointment_or_404(appointment_id)
    if appt.session is not None:
        raise Conflict("El turno tiene una sesión registrada. Elimine primero la sesión.")
    db.session.delete(appt)
    commit_or_raise("deleting appointment")
    return jsonify({"message": "Appointment deleted"})
