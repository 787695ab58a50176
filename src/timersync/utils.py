from datetime import UTC, datetime, timedelta

MILLISECOND = timedelta(milliseconds=1)


def now() -> datetime:
    """Current UTC time truncated to milliseconds (MongoDB date precision)."""
    value = datetime.now(UTC)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def elapsed_ms(start: datetime, end: datetime) -> int:
    return (end - start) // MILLISECOND
