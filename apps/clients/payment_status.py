"""
Payment status classification.

`classify` is a pure function of (scheduled payment date, last payment, now).
The `payment_status` column on Client is only a cached projection of it and is
brought back in line by the reconciler; callers that need the current status
should classify rather than read the column.

Rules, first match wins:
    green   last payment falls in the current UTC month.
    yellow  the current UTC month is the month right after the scheduled
            date's month (December rolls over to January) and the scheduled
            date's own day of month is between 1 and 10.
    red     anything else.
"""
from datetime import date, datetime, timezone as dt_timezone

from dateutil.relativedelta import relativedelta
from django.db import models
from django.utils.dateparse import parse_date, parse_datetime

YELLOW_WINDOW_DAYS = range(1, 11)


class PaymentStatus(models.TextChoices):
    GREEN = 'green', 'Al día'
    YELLOW = 'yellow', 'Vence pronto'
    RED = 'red', 'Vencido'


def to_utc_date(value):
    """
    Normalize a date, datetime or ISO string to a UTC calendar date.
    Naive datetimes are taken as UTC. Returns None for None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        parsed = parse_datetime(value) or parse_date(value)
        if parsed is None:
            raise ValueError(f"Fecha inválida: {value!r}")
        value = parsed
    if isinstance(value, datetime):
        if value.tzinfo is not None and value.utcoffset() is not None:
            value = value.astimezone(dt_timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise ValueError(f"Fecha inválida: {value!r}")


def classify(scheduled_date, last_payment, now):
    """Return the PaymentStatus for a client at instant `now`."""
    scheduled = to_utc_date(scheduled_date)
    if scheduled is None:
        raise ValueError("Se requiere la fecha de pago programada")
    today = to_utc_date(now)
    if today is None:
        raise ValueError("Se requiere la fecha actual")
    paid = to_utc_date(last_payment)

    if paid is not None and (paid.year, paid.month) == (today.year, today.month):
        return PaymentStatus.GREEN

    following = scheduled.replace(day=1) + relativedelta(months=1)
    if (today.year, today.month) == (following.year, following.month) and scheduled.day in YELLOW_WINDOW_DAYS:
        return PaymentStatus.YELLOW

    return PaymentStatus.RED
