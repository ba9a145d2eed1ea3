# recurrence.py — expansion d'une demande de turno en série datée (hebdo / mensuelle)
from __future__ import annotations

from datetime import datetime, timezone, timedelta

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from errors import ValidationFailure
from models import (
    Appointment, APPOINTMENT_STATUSES, RECURRENCES,
    RECURRENCE_NONE, RECURRENCE_WEEKLY, STATUS_RESERVED, utcnow,
)


def parse_datetime(value) -> datetime | None:
    """Accepte datetime ou chaîne ISO-8601 ; renvoie un datetime UTC naïf, None si illisible."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None
    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            return None
    return dt


def end_of_year(moment: datetime) -> datetime:
    return datetime(moment.year, 12, 31, 23, 59, 59, 999999)


def _step(recurrence: str, k: int):
    # décalage calculé depuis le départ : pas de dérive 31/01 → 28/02 → 28/03
    if recurrence == RECURRENCE_WEEKLY:
        return timedelta(weeks=k)
    return relativedelta(months=k)


def expand_recurrence(professional_id, patient_id, start, recurrence=None, status=None, now=None):
    """
    Produit la liste (non persistée) des turnos impliqués par la demande.

    Le premier garde le statut demandé ; les suivants repartent en RESERVADO.
    La série s'arrête au dernier instant de l'année civile de `now` (horloge
    murale au moment de l'appel, pas l'année du premier turno).
    """
    if not patient_id or start is None or (isinstance(start, str) and not start.strip()):
        raise ValidationFailure("Missing required fields")
    start_dt = parse_datetime(start)
    if start_dt is None:
        raise ValidationFailure("Invalid date/time format")

    recurrence = (recurrence or RECURRENCE_NONE).upper()
    if recurrence not in RECURRENCES:
        raise ValidationFailure(f"Invalid recurrence: {recurrence}")
    status = (status or STATUS_RESERVED).upper()
    if status not in APPOINTMENT_STATUSES:
        raise ValidationFailure(f"Invalid status: {status}")

    rows = [Appointment(
        professional_id=professional_id,
        patient_id=patient_id,
        date_time=start_dt,
        recurrence=recurrence,
        status=status,
    )]
    if recurrence == RECURRENCE_NONE:
        return rows

    limit = end_of_year(now or utcnow())
    k = 1
    while True:
        try:
            candidate = start_dt + _step(recurrence, k)
        except (OverflowError, ValueError):
            # au-delà de datetime.max : forcément après la limite
            break
        if candidate > limit:
            break
        rows.append(Appointment(
            professional_id=professional_id,
            patient_id=patient_id,
            date_time=candidate,
            recurrence=recurrence,
            status=STATUS_RESERVED,
        ))
        k += 1
    return rows
