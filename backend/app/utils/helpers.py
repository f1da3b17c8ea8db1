"""날짜 경계 계산과 소요 시간(분) 변환 공용 헬퍼입니다."""

import re
from datetime import date, datetime, time
from typing import Optional, Union

from sqlalchemy import func

from app.config import settings
from app.errors import ValidationError

TIME_TAKEN_PATTERN = re.compile(
    r"^(?:(?P<hours>\d+)\s*hours?)?\s*(?:(?P<minutes>\d+)\s*minutes?)?$",
    re.IGNORECASE,
)
SQLITE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def created_between(db, column, start: Optional[datetime] = None, end: Optional[datetime] = None) -> list:
    """DateTime 컬럼의 [start, end] 범위 조건을 만듭니다.

    SQLite는 DateTime을 문자열로 비교하므로 저장 형식(소수점 유무)과 무관하도록
    양쪽을 `datetime()` 초 단위 표현으로 맞춥니다.
    """
    bounds = []
    if db.get_bind().dialect.name == "sqlite":
        column = func.datetime(column)
        start = start.strftime(SQLITE_TIMESTAMP_FORMAT) if start is not None else None
        end = end.strftime(SQLITE_TIMESTAMP_FORMAT) if end is not None else None
    if start is not None:
        bounds.append(column >= start)
    if end is not None:
        bounds.append(column <= end)
    return bounds


def format_report_date(value: Optional[Union[date, datetime]]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(settings.REPORT_DATE_FORMAT)


def format_generated_at(value: datetime) -> str:
    return f"{value.strftime(settings.REPORT_DATE_FORMAT)} at {value.strftime('%H:%M')}"


def parse_time_taken(value: Union[int, float, str, None]) -> Optional[int]:
    """정수 분 또는 "1 hour 15 minutes" 형식 문자열을 분 단위 정수로 변환합니다."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError("소요 시간 형식이 올바르지 않습니다.")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("소요 시간은 분 단위 정수여야 합니다.")
        value = int(value)
    if isinstance(value, int):
        if value < 0:
            raise ValidationError("소요 시간은 0 이상이어야 합니다.")
        return value

    text = str(value).strip()
    if not text:
        return 0
    if text.isdigit():
        return int(text)
    match = TIME_TAKEN_PATTERN.match(text)
    if not match or not (match.group("hours") or match.group("minutes")):
        raise ValidationError("소요 시간 형식이 올바르지 않습니다. 예: '1 hour 15 minutes'")
    hours = int(match.group("hours") or 0)
    minutes = int(match.group("minutes") or 0)
    if minutes >= 60 or minutes % 15 != 0:
        raise ValidationError("분 단위는 15분 간격(0, 15, 30, 45)이어야 합니다.")
    return hours * 60 + minutes


def format_minutes(minutes: Optional[int]) -> str:
    total = int(minutes or 0)
    hours, rest = divmod(total, 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if rest or not hours:
        parts.append(f"{rest} minute{'s' if rest != 1 else ''}")
    return " ".join(parts)
