from datetime import date, datetime, time, timezone
from typing import Optional, Tuple, Union

from utils.exceptions import ValidationError


def utcnow() -> datetime:
    """DB 저장용 UTC 현재 시각 (naive)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: Union[str, date, datetime, None], field: str = "date") -> date:
    """
    ISO 문자열/날짜/일시를 '날짜'로 정규화.
    - "2025-03-01", "2025-03-01T00:00:00.000Z" 모두 2025-03-01
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", field=field)


def day_bounds(start: date, end: date) -> Tuple[datetime, datetime]:
    """[start 00:00:00, end 23:59:59.999999] 일 경계 구간"""
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def optional_range(
    date_from: Optional[date], date_to: Optional[date]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """한쪽만 주어지면 반대쪽은 열린 구간(None)으로 취급"""
    if date_from and date_to and date_from > date_to:
        raise ValidationError("date_from must not be after date_to", field="date_from")
    start = datetime.combine(date_from, time.min) if date_from else None
    end = datetime.combine(date_to, time.max) if date_to else None
    return start, end
