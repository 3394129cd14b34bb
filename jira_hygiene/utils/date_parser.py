"""Timestamp parsing utilities for Jira API payloads."""

from datetime import datetime, timezone

# Jira Cloud emits e.g. 2024-01-15T10:30:00.000+0000
JIRA_TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%f%z",  # 2024-01-15T10:30:00.000+0000
    "%Y-%m-%dT%H:%M:%S%z",  # 2024-01-15T10:30:00+0000
    "%Y-%m-%dT%H:%M:%S.%f",  # 2024-01-15T10:30:00.000
    "%Y-%m-%dT%H:%M:%S",  # 2024-01-15T10:30:00
]


def parse_jira_timestamp(value: str) -> datetime:
    """Parse a Jira timestamp into a timezone-aware datetime.

    Naive timestamps are assumed to be UTC.

    Args:
        value: Timestamp string from a Jira payload

    Returns:
        Parsed, timezone-aware datetime

    Raises:
        ValueError: If the timestamp format is not recognized
    """
    text = value.strip()
    parsed: datetime | None = None

    for fmt in JIRA_TIMESTAMP_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(
                f"Unable to parse timestamp '{value}'. "
                f"Expected ISO 8601, e.g. 2024-01-15T10:30:00.000+0000"
            ) from None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def try_parse_jira_timestamp(value: object) -> datetime | None:
    """Parse ``value`` when it is a recognizable timestamp string, else None."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return parse_jira_timestamp(value)
    except ValueError:
        return None


def age_in_days(then: datetime, now: datetime) -> float:
    """Fractional number of days elapsed between ``then`` and ``now``."""
    return (now - then).total_seconds() / 86400
