from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_WEBKIT_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

# Width of a seconds-since-epoch value for any date between 2001 and 2286.
SECONDS_DIGITS = 10


def to_epoch_seconds(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int((dt - _EPOCH) // timedelta(seconds=1))


def from_epoch_value(value: Union[int, str, None]) -> Optional[datetime]:
    """Turn a seconds/milliseconds/microseconds epoch value into a UTC datetime.

    Sources disagree on resolution, so anything longer than 10 digits is cut
    down to its leading 10 digits and read as seconds. This is lossy: the
    sub-second part is dropped, and a genuine seconds value past the year 2286
    would be misread. Missing, non-numeric and non-positive input gives None.
    """
    iv = _maybe_int(value)
    if iv is None or iv <= 0:
        return None
    digits = str(abs(iv))
    if len(digits) > SECONDS_DIGITS:
        digits = digits[:SECONDS_DIGITS]
    try:
        return _EPOCH + timedelta(seconds=int(digits))
    except OverflowError:
        return None


def from_webkit_timestamp(value: Union[int, str, None]) -> Optional[datetime]:
    # Chrome profile files count microseconds since 1601-01-01.
    iv = _maybe_int(value)
    if iv is None or iv <= 0:
        return None
    try:
        return _WEBKIT_EPOCH + timedelta(microseconds=iv)
    except OverflowError:
        return None


def _maybe_int(v) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    try:
        return int(str(v).strip())
    except ValueError:
        return None
