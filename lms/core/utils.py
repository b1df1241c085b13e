import datetime
from lms.core.exceptions import InvalidRequestError

DATE_FORMAT = "%Y-%m-%d"

def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)

def parse_date(value: str, name: str = "date") -> datetime.date:
    if not value:
        raise InvalidRequestError(f"{name} query parameter is required (YYYY-MM-DD)")
    try:
        return datetime.datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidRequestError(f"Invalid date format for {name}: {value!r} (expected YYYY-MM-DD)")

def day_start(day: datetime.date) -> datetime.datetime:
    return datetime.datetime.combine(day, datetime.time.min)

def required_text(value, field: str, min_length: int = 1) -> str:
    """Stripped `value`, or InvalidRequestError if that leaves too little."""
    text = "" if value is None else str(value).strip()
    if not text:
        raise InvalidRequestError(f"Missing required field: {field}")
    if len(text) < min_length:
        raise InvalidRequestError(f"{field} must be at least {min_length} characters")
    return text
