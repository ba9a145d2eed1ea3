from datetime import date, datetime

import pytest

import auth_api
from app import create_app
from extensions import db
from identity import GoogleProfile
from models import Appointment, Patient, Professional, ROLE_USER


@pytest.fixture(scope="session")
def app():
    # une seule app par session : Flask-Session déclare sa table http_sessions à l'init
    return create_app({
        "TESTING": True,
        "ENV_NAME": "development",
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "SESSION_COOKIE_SECURE": False,
        "CLIENT_URL": None,
        "LOG_LEVEL": "WARNING",
    })


@pytest.fixture(autouse=True)
def _database(app):
    with app.app_context():
        db.create_all()
    yield
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_professional(app):
    def _make(email="ana@example.com", subject="google-ana", first_name="Ana", last_name="Pérez",
              dni=None, license_number=None, role=ROLE_USER, is_active=True):
        with app.app_context():
            pro = Professional(
                email=email, user_id=subject, first_name=first_name, last_name=last_name,
                dni=dni, professional_license_number=license_number,
                role=role, is_active=is_active,
            )
            db.session.add(pro)
            db.session.commit()
            return pro.id
    return _make


@pytest.fixture
def make_patient(app):
    counter = {"n": 0}

    def _make(dni=None, first_name="Lucía", last_name="Gómez", birth_date=date(1990, 5, 17),
              mobile_phone="1155550000", email=None):
        counter["n"] += 1
        with app.app_context():
            patient = Patient(
                dni=dni or f"3000000{counter['n']}", first_name=first_name, last_name=last_name,
                birth_date=birth_date, mobile_phone=mobile_phone, email=email,
            )
            db.session.add(patient)
            db.session.commit()
            return patient.id
    return _make


@pytest.fixture
def make_appointment(app):
    def _make(professional_id, patient_id, when=datetime(2025, 3, 10, 15, 0), status="RESERVADO"):
        with app.app_context():
            appt = Appointment(
                professional_id=professional_id, patient_id=patient_id,
                date_time=when, recurrence="NONE", status=status,
            )
            db.session.add(appt)
            db.session.commit()
            return appt.id
    return _make


@pytest.fixture
def login(client, monkeypatch):
    """Passe par le vrai callback Google, avec le profil fourni à la place d'Authlib."""
    def _login(email="ana@example.com", subject="google-ana", given_name="Ana", family_name="Pérez",
               email_verified=True, using=None):
        profile = GoogleProfile(
            subject=subject, email=email, email_verified=email_verified,
            given_name=given_name, family_name=family_name,
        )
        monkeypatch.setattr(auth_api, "_fetch_google_profile", lambda: profile)
        return (using or client).get("/api/auth/google/callback")
    return _login


@pytest.fixture
def logged_in(client, login, make_professional):
    """Client connecté avec un profil complet ; renvoie l'id du professionnel."""
    pro_id = make_professional(dni="20111222", license_number="MP-1234")
    resp = login()
    assert resp.status_code == 302
    return pro_id
