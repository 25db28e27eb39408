"""Resolution of the trailing window used for averaging."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 365


def resolve_window_days(
    raw: Optional[Union[str, int]],
    default: int = DEFAULT_WINDOW_DAYS,
    maximum: int = MAX_WINDOW_DAYS,
) -> int:
    """Turn a request's ``days`` parameter into a window length.

    Missing, blank, non-integer and non-positive values fall back to
    ``default``; values above ``maximum`` are clamped silently.
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        days = raw
    else:
        candidate = raw.strip()
        if not candidate:
            return default
        try:
            days = int(candidate)
        except ValueError:
            return default
    if days < 1:
        return default
    return min(days, maximum)


def window_bounds(days: int, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    end = now or datetime.now(timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return end - timedelta(days=days), end
