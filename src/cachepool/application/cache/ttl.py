"""Application cache – TTL resolution.

A TTL can be given as an absolute ``datetime``, a relative ``timedelta`` or
:class:`Duration`, a number of seconds, or left to the configured default
(``None`` / :data:`USE_DEFAULT`).  Resolution always yields either a number of
seconds relative to now or ``None`` meaning "store indefinitely".
"""
from __future__ import annotations

import dataclasses
import enum
from datetime import datetime, timedelta
from typing import Union

from cachepool.kernel.time import Clock

__all__ = [
    "DAY",
    "Duration",
    "HOUR",
    "MINUTE",
    "MONTH",
    "TtlLike",
    "USE_DEFAULT",
    "UseDefault",
    "YEAR",
    "duration_to_seconds",
    "resolve_expiration",
    "resolve_ttl",
]

MINUTE = 60
HOUR = 3_600
DAY = 86_400
MONTH = 2_628_000
YEAR = 31_536_000


class UseDefault(enum.Enum):
    """Explicit marker for "apply the pool / façade default TTL"."""

    USE_DEFAULT = "USE_DEFAULT"

    def __repr__(self) -> str:
        return "USE_DEFAULT"


USE_DEFAULT = UseDefault.USE_DEFAULT


@dataclasses.dataclass(frozen=True)
class Duration:
    """Calendar-style relative duration.

    Higher units are converted with fixed average lengths (a month is
    2,628,000 seconds, a year 31,536,000).  ``invert`` marks a negative
    duration, which never yields a finite TTL.
    """

    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    invert: bool = False

    def __post_init__(self) -> None:
        for field in dataclasses.fields(self):
            if field.name != "invert" and getattr(self, field.name) < 0:
                raise ValueError(f"Duration component {field.name!r} must be >= 0")

    def total_seconds(self) -> int:
        return (
            self.years * YEAR
            + self.months * MONTH
            + self.days * DAY
            + self.hours * HOUR
            + self.minutes * MINUTE
            + self.seconds
        )


TtlLike = Union[datetime, timedelta, Duration, int, UseDefault, None]


def duration_to_seconds(duration: Duration | timedelta) -> int | None:
    """Convert a relative duration to whole seconds.

    Returns ``None`` for an inverted / negative duration.
    """
    if isinstance(duration, timedelta):
        if duration < timedelta(0):
            return None
        return int(duration.total_seconds())
    if duration.invert:
        return None
    return duration.total_seconds()


def resolve_ttl(ttl: TtlLike, default: TtlLike, clock: Clock) -> int | None:
    """Resolve *ttl* to seconds relative to now.

    ``None`` in the result means indefinite storage.  A result ``<= 0`` means
    the entry is already expired and must not be persisted.
    """
    if ttl is None or ttl is USE_DEFAULT:
        if default is None or default is USE_DEFAULT:
            return None
        return resolve_ttl(default, None, clock)
    if isinstance(ttl, bool):
        raise TypeError("TTL must not be a bool")
    if isinstance(ttl, int):
        return ttl
    if isinstance(ttl, datetime):
        return int(ttl.timestamp()) - clock.timestamp()
    if isinstance(ttl, (timedelta, Duration)):
        seconds = duration_to_seconds(ttl)
        if seconds is None:
            return resolve_ttl(default, None, clock)
        return seconds
    raise TypeError(f"Unsupported TTL type: {type(ttl).__name__}")


def resolve_expiration(ttl: TtlLike, clock: Clock) -> datetime | None:
    """Resolve *ttl* to an absolute expiration, ``None`` when left to the default."""
    if ttl is None or ttl is USE_DEFAULT:
        return None
    if isinstance(ttl, datetime):
        return ttl
    if isinstance(ttl, bool):
        raise TypeError("TTL must not be a bool")
    if isinstance(ttl, int):
        return clock.now() + timedelta(seconds=ttl)
    if isinstance(ttl, (timedelta, Duration)):
        seconds = duration_to_seconds(ttl)
        if seconds is None:
            return None
        return clock.now() + timedelta(seconds=seconds)
    raise TypeError(f"Unsupported TTL type: {type(ttl).__name__}")
