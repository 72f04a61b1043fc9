import re
from datetime import date

from admin_client.core.exceptions import ClientValidationError
from admin_client.utils.dates import parse_day

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DIGITS_RE = re.compile(r"^\d+$")


def is_numeric_string(value: str) -> bool:
    return bool(DIGITS_RE.match(value))


def parse_challenge_id(value: int | str | None) -> int:
    raw = str(value if value is not None else "").strip()
    try:
        challenge_id = int(raw)
    except ValueError:
        challenge_id = 0
    if challenge_id <= 0:
        raise ClientValidationError("Please enter a valid Challenge ID (number).")
    return challenge_id


def parse_date_range(
    date_from: str | date | None, date_to: str | date | None
) -> tuple[date | None, date | None]:
    try:
        start = parse_day(date_from)
        end = parse_day(date_to)
    except ValueError as exc:
        raise ClientValidationError("Dates must use the YYYY-MM-DD format.") from exc
    if start and end and start > end:
        raise ClientValidationError("The start date cannot be after the end date.")
    return start, end


def validate_admin_invite(email: str, username: str) -> tuple[str, str]:
    email = email.strip()
    username = username.strip()
    if not email or not username:
        raise ClientValidationError("Email and username are required to invite a new admin.")
    if not EMAIL_RE.match(email):
        raise ClientValidationError("Please enter a valid email address.")
    if len(username) < 3:
        raise ClientValidationError("Username must be at least 3 characters.")
    return email, username


def validate_group_bounds(min_members: str | int, max_members: str | int, lower: int, upper: int) -> tuple[int, int]:
    min_raw = str(min_members).strip()
    max_raw = str(max_members).strip()
    if not min_raw or not max_raw:
        raise ClientValidationError("Min and Max members are required.")
    if not is_numeric_string(min_raw) or not is_numeric_string(max_raw):
        raise ClientValidationError("Min/Max must be numbers only.")
    min_value, max_value = int(min_raw), int(max_raw)
    if min_value < lower:
        raise ClientValidationError(f"Minimum members must be at least {lower}.")
    if max_value > upper:
        raise ClientValidationError(f"Maximum members cannot exceed {upper}.")
    if min_value > max_value:
        raise ClientValidationError("Minimum members cannot be greater than maximum members.")
    return min_value, max_value
