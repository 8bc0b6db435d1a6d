# purchase_intake/client/formatting.py
import datetime
from typing import Optional

_MONTHS_ES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def format_date_time(now: Optional[datetime.datetime] = None) -> str:
    """Long Spanish date with 12h clock, e.g. '18 de octubre de 2026, 03:05 p. m.'"""
    now = now or datetime.datetime.now()
    hour12 = now.hour % 12 or 12
    meridiem = "a. m." if now.hour < 12 else "p. m."
    return f"{now.day} de {_MONTHS_ES[now.month - 1]} de {now.year}, {hour12:02d}:{now.minute:02d} {meridiem}"
