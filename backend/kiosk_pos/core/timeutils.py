"""
Helpers de tiempo.
Los timestamps se guardan como UTC naive; la hora local del kiosco solo se usa
para evaluar horarios de listas de precios.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from kiosk_pos.core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def kiosk_zone(tz_name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name or settings.default_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(settings.default_timezone)


def to_kiosk_local(moment: datetime, tz_name: Optional[str]) -> datetime:
    """Convert a stored UTC timestamp (naive or aware) to the kiosk's wall clock."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(kiosk_zone(tz_name))
