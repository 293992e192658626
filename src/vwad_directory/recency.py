"""Recency bands for an entry's last contribution date.

Elapsed time is measured in fixed 86 400 000 ms days from the contribution
timestamp to "now" and mapped onto half-open bands. Dates in the future
have negative elapsed time and therefore land in the freshest band.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict

_DAY = timedelta(days=1)


class RecencyBand(BaseModel):
    """Display label plus stable key for one recency band."""

    model_config = ConfigDict(frozen=True)

    label: str
    key: str


LT_1_MONTH = RecencyBand(label="< 1mo", key="lt1mo")
LT_6_MONTHS = RecencyBand(label="< 6mo", key="lt6mo")
LT_1_YEAR = RecencyBand(label="< 1y", key="lt1y")
LT_2_YEARS = RecencyBand(label="< 2y", key="lt2y")
OVER_2_YEARS = RecencyBand(label="2y +", key="2y")

# (exclusive upper bound in days, band), checked in order
_BANDS: tuple[tuple[float, RecencyBand], ...] = (
    (30, LT_1_MONTH),
    (180, LT_6_MONTHS),
    (365, LT_1_YEAR),
    (730, LT_2_YEARS),
)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def parse_timestamp(text: str | None) -> datetime | None:
    """Parse an ISO-8601 date or datetime into an aware UTC-based datetime.

    Naive values (including bare ``YYYY-MM-DD`` dates) are taken as UTC.
    Returns None for missing or unparseable input.
    """
    if not text or not text.strip():
        return None
    try:
        parsed = datetime.fromisoformat(text.strip())
    except ValueError:
        return None
    return _as_utc(parsed)


def elapsed_days(then: datetime, now: datetime | None = None) -> float:
    """Fractional days between ``then`` and ``now`` (negative if in the future).

    Naive datetimes on either side are taken as UTC.
    """
    current = now or datetime.now(tz=UTC)
    return (_as_utc(current) - _as_utc(then)) / _DAY


def classify_recency(
    date_text: str | None, now: datetime | None = None
) -> RecencyBand | None:
    """Map a last-contribution date onto its recency band.

    Args:
        date_text: ISO-8601 date text; may be missing or malformed.
        now: Reference time, defaults to the current UTC time.

    Returns:
        The matching band, or None when the date is absent or unparseable.
    """
    then = parse_timestamp(date_text)
    if then is None:
        return None
    days = elapsed_days(then, now)
    for upper, band in _BANDS:
        if days < upper:
            return band
    return OVER_2_YEARS


def format_date(date_text: str | None) -> str:
    """Render a date as ``"Jan 5, 2024"``.

    Unparseable text is returned unchanged and a missing date gives ``""``.
    """
    if not date_text:
        return ""
    parsed = parse_timestamp(date_text)
    if parsed is None:
        return date_text
    return f"{parsed:%b} {parsed.day}, {parsed.year}"
