from extensions import db
from models import Professional


def test_google_login_redirects_to_provider(client):
    resp = client.get("/api/auth/google")
    assert resp.status_code == 302
    assert resp.headers["Location"].startswith("https://accounts.google.com/o/oauth2/v2/auth")


def test_first_login_goes_to_profile_completion(client, login):
    resp = login()
    assert resp.status_code == 302
    assert resp.headers["Location"] == "/complete-profile"

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    body = me.get_json()
    assert body["authenticated"] is True
    assert body["user"]["email"] == "ana@example.com"
    assert body["user"]["profileComplete"] is False


def test_complete_profile_goes_to_dashboard_on_client(app, client, login, make_professional, monkeypatch):
    make_professional(dni="20111222", license_number="MP-1234")
    monkeypatch.setitem(app.config, "CLIENT_URL", "http://front.test/")
    resp = login()
    assert resp.headers["Location"] == "http://front.test/dashboard"


def test_disabled_account_gets_no_session(client, login, make_professional):
    make_professional(is_active=False)
    resp = login()
    assert resp.status_code == 401
    assert resp.get_json() == {
        "message": "Login failed",
        "details": "Tu cuenta ha sido desactivada. Contacta al administrador.",
    }
    assert client.get("/api/auth/me").status_code == 401


def test_provider_failure_is_reported_as_auth_error(client, monkeypatch):
    import auth_api

    def _boom():
        raise RuntimeError("token exchange failed")

    monkeypatch.setattr(auth_api, "_fetch_google_profile", _boom)
    resp = client.get("/api/auth/google/callback")
    assert resp.status_code == 500
    assert resp.get_json()["message"] == "Auth Error"


def test_me_without_session(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.get_json()["authenticated"] is False


def test_logout_ends_session(client, logged_in):
    assert client.get("/api/auth/me").status_code == 200
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Logged out"}
    assert client.get("/api/auth/me").status_code == 401
    assert client.post("/api/auth/logout").status_code == 401


def test_deactivation_revokes_existing_session(app, client, logged_in):
    with app.app_context():
        db.session.get(Professional, logged_in).is_active = False
        db.session.commit()
    resp = client.get("/api/professionals/me")
    assert resp.status_code == 401
    assert resp.get_json() == {"message": "Unauthorized"}


def test_root_is_public(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert b"running" in resp.data


def test_unknown_route_is_json(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert "message" in resp.get_json()
