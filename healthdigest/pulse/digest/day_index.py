"""
Day calendar for the digest window

Maps a reference instant onto the canonical day keys of the digest: the
DIGEST_DAYS calendar days before the reference day, oldest first. A day key
is the local date in the reference timezone; two timestamps share a key
exactly when they fall between the same two local midnights.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterator, Optional, Tuple

from ..core import DIGEST_DAYS


def day_key(instant: datetime, tz: tzinfo) -> date:
    """Normalize a timestamp to the local calendar day it falls in"""
    if instant.tzinfo is None:
        raise ValueError(f"Naive timestamp cannot be mapped to a day: {instant.isoformat()}")
    return instant.astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    """Local midnight opening `day`"""
    return datetime.combine(day, time.min, tzinfo=tz)


@dataclass(frozen=True)
class CalendarIndex:
    """The ordered day keys of one digest run"""

    days: Tuple[date, ...]
    tz: tzinfo

    @classmethod
    def build(cls, now: datetime, tz: tzinfo, length: int = DIGEST_DAYS) -> "CalendarIndex":
        """
        Day keys from `length` days ago through yesterday, relative to `now` in `tz`

        The reference day itself is never part of the index.
        """
        today = day_key(now, tz)
        days = tuple(today - timedelta(days=offset) for offset in range(length, 0, -1))
        return cls(days=days, tz=tz)

    def __len__(self) -> int:
        return len(self.days)

    def __iter__(self) -> Iterator[date]:
        return iter(self.days)

    def __getitem__(self, position: int) -> date:
        return self.days[position]

    def __contains__(self, day: object) -> bool:
        return day in self.days

    def window(self) -> Tuple[datetime, datetime]:
        """[local midnight of the oldest day, local midnight of the reference day)"""
        return start_of_day(self.days[0], self.tz), start_of_day(self.days[-1] + timedelta(days=1), self.tz)

    def position(self, day: date) -> Optional[int]:
        try:
            return self.days.index(day)
        except ValueError:
            return None

    def key_for(self, instant: datetime) -> Optional[date]:
        """Day key of `instant`, or None when it falls outside the index"""
        key = day_key(instant, self.tz)
        return key if key in self.days else None

    def sleep_window(self, day: date, boundary_hour: int) -> Tuple[datetime, datetime]:
        """
        The sleep day attributed to `day`: [day-1 at boundary_hour, day at boundary_hour)

        A night's sleep starting in the evening of day-1 is counted toward `day`.
        """
        if not 0 <= boundary_hour <= 23:
            raise ValueError(f"Sleep boundary hour out of range: {boundary_hour}")

        boundary = time(hour=boundary_hour)
        end = datetime.combine(day, boundary, tzinfo=self.tz)
        start = datetime.combine(day - timedelta(days=1), boundary, tzinfo=self.tz)
        return start, end
