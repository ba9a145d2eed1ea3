from datetime import datetime

import pytest

from errors import ValidationFailure
from recurrence import end_of_year, expand_recurrence, parse_datetime

IN_2025 = datetime(2025, 3, 1, 12, 0)


def test_none_yields_single_row_with_requested_status():
    rows = expand_recurrence(1, 7, "2025-01-06T10:00:00", "NONE", "CONFIRMADO", now=IN_2025)
    assert len(rows) == 1
    assert rows[0].date_time == datetime(2025, 1, 6, 10, 0)
    assert rows[0].status == "CONFIRMADO"
    assert rows[0].recurrence == "NONE"
    assert rows[0].professional_id == 1
    assert rows[0].patient_id == 7


def test_missing_recurrence_defaults_to_none():
    rows = expand_recurrence(1, 7, "2025-01-06T10:00:00", now=IN_2025)
    assert len(rows) == 1
    assert rows[0].recurrence == "NONE"
    assert rows[0].status == "RESERVADO"


def test_weekly_runs_to_last_week_of_the_year():
    rows = expand_recurrence(1, 7, "2025-01-06T10:00:00", "WEEKLY", now=IN_2025)
    assert len(rows) == 52
    assert rows[-1].date_time == datetime(2025, 12, 29, 10, 0)
    assert all(r.recurrence == "WEEKLY" for r in rows)
    assert [(b.date_time - a.date_time).days for a, b in zip(rows, rows[1:])] == [7] * 51


def test_follow_up_rows_reset_to_reserved():
    rows = expand_recurrence(1, 7, "2025-11-03T09:00:00", "WEEKLY", "CONFIRMADO", now=IN_2025)
    assert rows[0].status == "CONFIRMADO"
    assert {r.status for r in rows[1:]} == {"RESERVADO"}
    assert len(rows) == 9


def test_monthly_clamps_to_month_end_without_drift():
    rows = expand_recurrence(1, 7, "2025-01-31T10:00:00", "MONTHLY", now=IN_2025)
    days = [r.date_time.date().isoformat() for r in rows]
    assert days[:3] == ["2025-01-31", "2025-02-28", "2025-03-31"]
    assert days[-1] == "2025-12-31"
    assert len(rows) == 12


def test_cutoff_follows_wall_clock_year_not_start_year():
    # turno de janvier 2026 demandé en novembre 2025 : rien au-delà de décembre 2025
    rows = expand_recurrence(1, 7, "2026-01-10T10:00:00", "WEEKLY", now=datetime(2025, 11, 15))
    assert len(rows) == 1

    rows = expand_recurrence(1, 7, "2025-12-01T10:00:00", "MONTHLY", now=datetime(2025, 11, 15))
    assert [r.date_time for r in rows] == [datetime(2025, 12, 1, 10, 0)]


def test_occurrence_on_last_instant_is_kept():
    rows = expand_recurrence(1, 7, "2025-12-24T23:59:59.999999", "WEEKLY", now=IN_2025)
    assert rows[-1].date_time == datetime(2025, 12, 31, 23, 59, 59, 999999)


def test_timezone_aware_start_is_stored_as_utc():
    rows = expand_recurrence(1, 7, "2025-03-01T10:00:00-03:00", now=IN_2025)
    assert rows[0].date_time == datetime(2025, 3, 1, 13, 0)


@pytest.mark.parametrize("patient_id,start,message", [
    (None, "2025-01-06T10:00:00", "Missing required fields"),
    (7, None, "Missing required fields"),
    (7, "  ", "Missing required fields"),
    (7, "next tuesday", "Invalid date/time format"),
])
def test_rejects_bad_input_before_generating(patient_id, start, message):
    with pytest.raises(ValidationFailure) as exc:
        expand_recurrence(1, patient_id, start, "WEEKLY", now=IN_2025)
    assert exc.value.message == message
    assert exc.value.status_code == 400


def test_rejects_unknown_recurrence_and_status():
    with pytest.raises(ValidationFailure):
        expand_recurrence(1, 7, "2025-01-06T10:00:00", "DAILY", now=IN_2025)
    with pytest.raises(ValidationFailure):
        expand_recurrence(1, 7, "2025-01-06T10:00:00", "NONE", "PENDING", now=IN_2025)


def test_helpers():
    assert end_of_year(datetime(2025, 6, 1)) == datetime(2025, 12, 31, 23, 59, 59, 999999)
    assert parse_datetime("2025-01-06T10:00:00.000Z") == datetime(2025, 1, 6, 10, 0)
    assert parse_datetime("garbage") is None
    assert parse_datetime(42) is None


@pytest.mark.parametrize("recurrence", ["WEEKLY", "MONTHLY"])
def test_series_near_the_calendar_limit_stops_cleanly(recurrence):
    rows = expand_recurrence(1, 7, "9999-12-30T10:00:00Z", recurrence, now=datetime(9999, 6, 1))
    assert [r.date_time for r in rows] == [datetime(9999, 12, 30, 10, 0)]


def test_offset_that_leaves_the_calendar_is_unreadable():
    assert parse_datetime("9999-12-31T23:00:00-03:00") is None
