from datetime import date


def parse_day(value: str | date | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def day_start_iso(day: date | None) -> str | None:
    return f"{day.isoformat()}T00:00:00.000Z" if day else None


def day_end_iso(day: date | None) -> str | None:
    return f"{day.isoformat()}T23:59:59.999Z" if day else None
