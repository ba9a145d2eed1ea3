from errors import InternalFailure, NotFound, _server_error_body


def test_server_error_body_hides_trace_in_production(app, monkeypatch):
    try:
        raise ValueError("boom")
    except ValueError as exc:
        error = exc

    with app.test_request_context():
        body = _server_error_body("Internal Server Error", error)
        assert body["error"] == "Internal Server Error"
        assert body["details"] == "boom"
        assert "ValueError" in body["trace"]

        monkeypatch.setitem(app.config, "ENV_NAME", "production")
        assert _server_error_body("Internal Server Error", error) == {"error": "Internal Server Error"}


def test_api_errors_carry_status_and_default_message():
    assert NotFound().status_code == 404
    assert NotFound("Patient not found").message == "Patient not found"
    assert InternalFailure("Error x", details="d").details == "d"
