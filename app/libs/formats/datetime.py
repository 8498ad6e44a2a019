from datetime import datetime, timedelta, timezone


def now() -> datetime:
    """Current UTC time without tzinfo (naive). Used for every stored timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_tzinfo() -> datetime:
    return datetime.now(timezone.utc)


def months_back(count: int, reference: datetime | None = None) -> list[tuple[int, int]]:
    """(year, month) pairs for the last `count` months, oldest first, current month included."""
    ref = reference or now()
    year, month = ref.year, ref.month
    result: list[tuple[int, int]] = []
    for _ in range(count):
        result.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(result))


def month_label(year: int, month: int) -> str:
    return datetime(year, month, 1).strftime("%b")


def days_ago(days: int) -> datetime:
    return now() - timedelta(days=days)
