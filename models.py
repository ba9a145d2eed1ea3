# models.py — professionnels, patients, contacts familiaux, turnos (RDV) et sessions cliniques
from __future__ import annotations

from datetime import datetime, date, timezone

from flask_login import UserMixin

from extensions import db

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"

RECURRENCE_NONE = "NONE"
RECURRENCE_WEEKLY = "WEEKLY"
RECURRENCE_MONTHLY = "MONTHLY"
RECURRENCES = (RECURRENCE_NONE, RECURRENCE_WEEKLY, RECURRENCE_MONTHLY)

STATUS_RESERVED = "RESERVADO"
STATUS_CONFIRMED = "CONFIRMADO"
STATUS_CANCELLED = "CANCELADO"
APPOINTMENT_STATUSES = (STATUS_RESERVED, STATUS_CONFIRMED, STATUS_CANCELLED)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso_datetime(value: datetime | None) -> str | None:
    # stockage en UTC naïf → ISO-8601 avec suffixe Z
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"


def iso_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


# ======================
# Professionnels
# ======================
class Professional(UserMixin, db.Model):
    __tablename__ = "professionals"

    id = db.Column(db.Integer, primary_key=True)

    # Identité fédérée (sub Google), liée au premier login
    user_id = db.Column(db.String(255), unique=True, nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=False)

    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))

    # Champs de profil : absents tant que le profil n'est pas complété
    dni = db.Column(db.String(30))
    professional_license_number = db.Column(db.String(60))

    role = db.Column(db.String(10), nullable=False, default=ROLE_USER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    appointments = db.relationship("Appointment", back_populates="professional", lazy="dynamic")
    sessions = db.relationship("ConsultationSession", back_populates="professional", lazy="dynamic")

    __table_args__ = (
        db.Index("ix_professionals_role", "role"),
        db.Index("ix_professionals_created_at", "created_at"),
    )

    def get_id(self):
        return str(self.id)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def is_profile_complete(self) -> bool:
        return bool((self.dni or "").strip() and (self.professional_license_number or "").strip())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "dni": self.dni,
            "professionalLicenseNumber": self.professional_license_number,
            "role": self.role,
            "isActive": self.is_active,
            "profileComplete": self.is_profile_complete(),
            "createdAt": iso_datetime(self.created_at),
            "updatedAt": iso_datetime(self.updated_at),
        }

    def __repr__(self):
        return f"<Professional id={self.id} {self.email} role={self.role} active={self.is_active}>"


# ======================
# Patients
# ======================
class Patient(db.Model):
    __tablename__ = "patients"

    id = db.Column(db.Integer, primary_key=True)
    dni = db.Column(db.String(30), unique=True, nullable=False)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    birth_date = db.Column(db.Date, nullable=False)
    mobile_phone = db.Column(db.String(30), nullable=False)
    email = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    family_contacts = db.relationship(
        "FamilyContact", back_populates="patient", cascade="all, delete-orphan", lazy="select"
    )
    appointments = db.relationship("Appointment", back_populates="patient", lazy="dynamic")
    sessions = db.relationship("ConsultationSession", back_populates="patient", lazy="dynamic")

    __table_args__ = (
        db.Index("ix_patients_last_first", "last_name", "first_name"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dni": self.dni,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "birthDate": iso_date(self.birth_date),
            "mobilePhone": self.mobile_phone,
            "email": self.email,
            "createdAt": iso_datetime(self.created_at),
            "updatedAt": iso_datetime(self.updated_at),
        }

    def __repr__(self):
        return f"<Patient id={self.id} dni={self.dni} {self.last_name}, {self.first_name}>"


class FamilyContact(db.Model):
    __tablename__ = "family_contacts"

    id = db.Column(db.Integer, primary_key=True)
    patient_id = db.Column(
        db.Integer, db.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120))
    relationship_to_patient = db.Column(db.String(60))
    mobile_phone = db.Column(db.String(30))
    email = db.Column(db.String(255))

    patient = db.relationship("Patient", back_populates="family_contacts")

    __table_args__ = (
        db.Index("ix_family_contacts_patient", "patient_id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "patientId": self.patient_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "relationshipToPatient": self.relationship_to_patient,
            "mobilePhone": self.mobile_phone,
            "email": self.email,
        }

    def __repr__(self):
        return f"<FamilyContact id={self.id} patient={self.patient_id} {self.relationship_to_patient or '-'}>"


# ======================
# Turnos (rendez-vous)
# ======================
class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.Integer, primary_key=True)
    professional_id = db.Column(
        db.Integer, db.ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False
    )
    patient_id = db.Column(
        db.Integer, db.ForeignKey("patients.id"), nullable=False
    )
    date_time = db.Column(db.DateTime, nullable=False)
    recurrence = db.Column(db.String(10), nullable=False, default=RECURRENCE_NONE)
    status = db.Column(db.String(20), nullable=False, default=STATUS_RESERVED)

    created_at = db.Column(db.DateTime, default=utcnow)

    professional = db.relationship("Professional", back_populates="appointments")
    patient = db.relationship("Patient", back_populates="appointments", lazy="joined")
    session = db.relationship("ConsultationSession", back_populates="appointment", uselist=False)

    __table_args__ = (
        db.Index("ix_appointments_pro_datetime", "professional_id", "date_time"),
        db.Index("ix_appointments_patient", "patient_id"),
        db.Index("ix_appointments_status", "status"),
    )

    def to_dict(self, with_patient: bool = False, with_session: bool = False) -> dict:
        data = {
            "id": self.id,
            "professionalId": self.professional_id,
            "patientId": self.patient_id,
            "dateTime": iso_datetime(self.date_time),
            "recurrence": self.recurrence,
            "status": self.status,
            "createdAt": iso_datetime(self.created_at),
        }
        if with_patient:
            data["patient"] = self.patient.to_dict() if self.patient else None
        if with_session:
            data["session"] = self.session.to_dict() if self.session else None
        return data

    def __repr__(self):
        return f"<Appointment id={self.id} pro={self.professional_id} p={self.patient_id} at={self.date_time} {self.status}>"


# ======================
# Sessions cliniques (une par turno)
# ======================
class ConsultationSession(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True)
    appointment_id = db.Column(
        db.Integer, db.ForeignKey("appointments.id"), unique=True, nullable=False
    )
    professional_id = db.Column(
        db.Integer, db.ForeignKey("professionals.id", ondelete="CASCADE"), nullable=False
    )
    patient_id = db.Column(
        db.Integer, db.ForeignKey("patients.id"), nullable=False
    )

    # Copiés depuis le turno au moment de la création
    date = db.Column(db.DateTime, nullable=False)
    time = db.Column(db.DateTime, nullable=False)

    session_type = db.Column(db.String(60))
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    appointment = db.relationship("Appointment", back_populates="session")
    professional = db.relationship("Professional", back_populates="sessions")
    patient = db.relationship("Patient", back_populates="sessions", lazy="joined")

    __table_args__ = (
        db.Index("ix_sessions_pro_date", "professional_id", "date"),
        db.Index("ix_sessions_patient", "patient_id"),
    )

    def to_dict(self, with_patient: bool = False, with_appointment: bool = False) -> dict:
        data = {
            "id": self.id,
            "appointmentId": self.appointment_id,
            "professionalId": self.professional_id,
            "patientId": self.patient_id,
            "date": iso_datetime(self.date),
            "time": iso_datetime(self.time),
            "sessionType": self.session_type,
            "notes": self.notes,
            "createdAt": iso_datetime(self.created_at),
            "updatedAt": iso_datetime(self.updated_at),
        }
        if with_patient:
            data["patient"] = self.patient.to_dict() if self.patient else None
        if with_appointment:
            data["appointment"] = self.appointment.to_dict() if self.appointment else None
        return data

    def __repr__(self):
        return f"<ConsultationSession id={self.id} appt={self.appointment_id} pro={self.professional_id}>"
