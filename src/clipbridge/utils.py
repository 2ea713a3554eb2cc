import re
from datetime import UTC, datetime

DEVICE_CODE_RE = re.compile(r"^\d{6}$", re.ASCII)
UNSAFE_CHARS_RE = re.compile(r"[<>'\"&]")


def is_device_code(value: str | None) -> bool:
    return isinstance(value, str) and bool(DEVICE_CODE_RE.fullmatch(value))


def sanitize_text(text: str, max_length: int) -> str:
    """Remove markup-sensitive characters, trim whitespace and cut to max_length."""
    return UNSAFE_CHARS_RE.sub("", text).strip()[:max_length]


def now() -> datetime:
    return datetime.now(UTC)
