from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from fundtrack.core.config import settings

APP_TZ = ZoneInfo(settings.app_timezone)


def now_local() -> datetime:
    return datetime.now(tz=APP_TZ)


def today_local() -> date:
    return now_local().date()


def parse_hhmm(value: str) -> time:
    hh, mm = value.strip().split(":")
    return time(int(hh), int(mm))
