# patients_api.py — patients et contacts familiaux
from datetime import date

from dateutil.parser import isoparse
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import or_

from errors import Conflict, NotFound, ValidationFailure, commit_or_raise, json_body
from extensions import db
from models import Appointment, ConsultationSession, FamilyContact, Patient

patients_bp = Blueprint("patients", __name__)

PATIENT_FIELDS = {
    "dni": "dni",
    "firstName": "first_name",
    "lastName": "last_name",
    "birthDate": "birth_date",
    "mobilePhone": "mobile_phone",
    "email": "email",
}
PATIENT_REQUIRED = ("dni", "firstName", "lastName", "birthDate", "mobilePhone")

CONTACT_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "relationshipToPatient": "relationship_to_patient",
    "mobilePhone": "mobile_phone",
    "email": "email",
}

DUPLICATE_DNI = "Patient with this DNI already exists"
HAS_APPOINTMENTS = (
    "No se puede eliminar el paciente porque tiene turnos asignados. "
    "Elimine primero los turnos."
)


def _parse_birth_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value).strip()).date()
    except (ValueError, OverflowError):
        raise ValidationFailure("Invalid birth date format")


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _apply_patient_fields(patient: Patient, data: dict):
    for key, attr in PATIENT_FIELDS.items():
        if key not in data:
            continue
        value = _clean(data.get(key))
        if key in PATIENT_REQUIRED and value is None:
            raise ValidationFailure(f"Field {key} cannot be empty")
        if key == "birthDate":
            value = _parse_birth_date(value)
        setattr(patient, attr, value)


def _patient_or_404(patient_id: int) -> Patient:
    patient = db.session.get(Patient, patient_id)
    if patient is None:
        raise NotFound("Patient not found")
    return patient


def _contact_or_404(contact_id: int) -> FamilyContact:
    contact = db.session.get(FamilyContact, contact_id)
    if contact is None:
        raise NotFound("Contact not found")
    return contact


# ===== Patients =====
@patients_bp.route("/", methods=["GET"], strict_slashes=False)
@login_required
def list_patients():
    search = (request.args.get("search") or "").strip()
    query = Patient.query
    if search:
        like = f"%{search}%"
        query = query.filter(or_(
            Patient.dni.ilike(like),
            Patient.last_name.ilike(like),
            Patient.first_name.ilike(like),
        ))
    rows = query.order_by(Patient.last_name.asc(), Patient.first_name.asc()).all()
    return jsonify([p.to_dict() for p in rows])


@patients_bp.route("/<int:patient_id>", methods=["GET"])
@login_required
def get_patient(patient_id: int):
    patient = _patient_or_404(patient_id)
    # turnos et sessions : uniquement ceux du professionnel connecté
    appointments = (patient.appointments
                    .filter(Appointment.professional_id == current_user.id)
                    .order_by(Appointment.date_time.asc()).all())
    sessions = (patient.sessions
                .filter(ConsultationSession.professional_id == current_user.id)
                .order_by(ConsultationSession.date.desc()).all())
    payload = patient.to_dict()
    payload["familyContacts"] = [c.to_dict() for c in patient.family_contacts]
    payload["appointments"] = [a.to_dict() for a in appointments]
    payload["sessions"] = [s.to_dict() for s in sessions]
    return jsonify(payload)


@patients_bp.route("/", methods=["POST"], strict_slashes=False)
@login_required
def create_patient():
    data = json_body()
    missing = [k for k in PATIENT_REQUIRED if not _clean(data.get(k))]
    if missing:
        current_app.logger.warning("POST /api/patients - champs manquants: %s", ", ".join(missing))
        raise ValidationFailure("Missing required fields")

    dni = _clean(data.get("dni"))
    if Patient.query.filter_by(dni=dni).first():
        current_app.logger.warning("POST /api/patients - DNI %s déjà existant", dni)
        raise Conflict(DUPLICATE_DNI)

    patient = Patient()
    _apply_patient_fields(patient, data)
    db.session.add(patient)
    commit_or_raise("creating patient", DUPLICATE_DNI)
    current_app.logger.info("Patient %s créé", patient.id)
    return jsonify(patient.to_dict()), 201


@patients_bp.route("/<int:patient_id>", methods=["PUT"])
@login_required
def update_patient(patient_id: int):
    patient = _patient_or_404(patient_id)
    data = json_body()
    _apply_patient_fields(patient, data)
    commit_or_raise("updating patient", DUPLICATE_DNI)
    return jsonify(patient.to_dict())


@patients_bp.route("/<int:patient_id>", methods=["DELETE"])
@login_required
def delete_patient(patient_id: int):
    patient = _patient_or_404(patient_id)
    if Appointment.query.filter_by(patient_id=patient.id).count() > 0:
        raise Conflict(HAS_APPOINTMENTS)
    db.session.delete(patient)
    commit_or_raise("deleting patient", HAS_APPOINTMENTS)
    return jsonify({"message": "Paciente eliminado correctamente"})


# ===== Contacts familiaux =====
@patients_bp.route("/<int:patient_id>/contacts", methods=["GET"])
@login_required
def list_contacts(patient_id: int):
    patient = _patient_or_404(patient_id)
    return jsonify([c.to_dict() for c in patient.family_contacts])


@patients_bp.route("/<int:patient_id>/contacts", methods=["POST"])
@login_required
def create_contact(patient_id: int):
    patient = _patient_or_404(patient_id)
    data = json_body()
    if not _clean(data.get("firstName")):
        raise ValidationFailure("Missing required fields")
    contact = FamilyContact(patient_id=patient.id)
    for key, attr in CONTACT_FIELDS.items():
        setattr(contact, attr, _clean(data.get(key)))
    db.session.add(contact)
    commit_or_raise("creating contact")
    return jsonify(contact.to_dict()), 201


@patients_bp.route("/contacts/<int:contact_id>", methods=["PUT"])
@login_required
def update_contact(contact_id: int):
    contact = _contact_or_404(contact_id)
    data = json_body()
    if "firstName" in data and not _clean(data.get("firstName")):
        raise ValidationFailure("Field firstName cannot be empty")
    for key, attr in CONTACT_FIELDS.items():
        if key in data:
            setattr(contact, attr, _clean(data.get(key)))
    commit_or_raise("updating contact")
    return jsonify(contact.to_dict())


@patients_bp.route("/contacts/<int:contact_id>", methods=["DELETE"])
@login_required
def delete_contact(contact_id: int):
    contact = _contact_or_404(contact_id)
    db.session.delete(contact)
    commit_or_raise("deleting contact")
    return jsonify({"message": "Contact deleted successfully"})
