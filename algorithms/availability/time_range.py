"""
Interval primitives shared by the availability algorithms.

Every value handled here is an absolute (timezone-aware) instant. Wall-clock
times are converted before they reach this package, so no comparison below
ever mixes local and absolute representations.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional


class TimeRange:
    """Half-open time range [start, end)."""

    def __init__(self, start: datetime, end: datetime):
        """
        Initialize a time range.

        Args:
            start: Start instant of the range
            end: End instant of the range (exclusive)
        """
        self.start = start
        self.end = end

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.start.strftime('%Y-%m-%d %H:%M')} - {self.end.strftime('%H:%M')}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.start.isoformat()} -> {self.end.isoformat()}>"

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeRange):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __hash__(self) -> int:
        return hash((self.start, self.end))

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check if this time range overlaps with another.

        [a, b) and [c, d) overlap iff a < d and b > c, so ranges that only
        touch at an edge do not overlap.
        """
        return (self.start < other.end) and (self.end > other.start)

    def contains(self, point: datetime) -> bool:
        """Check if this time range contains a specific instant."""
        return self.start <= point < self.end

    def contains_range(self, other: "TimeRange") -> bool:
        """Check if this time range fully contains another range."""
        return (self.start <= other.start) and (self.end >= other.end)


class TimeSlot(TimeRange):
    """
    A computed, unpersisted candidate booking window for one staff member.
    """

    def __init__(
        self,
        staff_id: str,
        start: datetime,
        end: datetime,
        is_available: bool = True,
        price: Optional[Decimal] = None,
        is_peak: Optional[bool] = None,
    ):
        super().__init__(start, end)
        self.staff_id = str(staff_id)
        self.is_available = is_available
        self.price = price
        self.is_peak = is_peak

    def __repr__(self) -> str:
        return (
            f"<TimeSlot staff={self.staff_id} {self.start.isoformat()} -> "
            f"{self.end.isoformat()} price={self.price} peak={self.is_peak}>"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeSlot):
            return NotImplemented
        return (
            self.staff_id == other.staff_id
            and self.start == other.start
            and self.end == other.end
            and self.is_available == other.is_available
            and self.price == other.price
            and self.is_peak == other.is_peak
        )

    def __hash__(self) -> int:
        return hash((self.staff_id, self.start, self.end))

    def with_pricing(self, price: Decimal, is_peak: bool) -> "TimeSlot":
        """Return a copy of this slot carrying a price and peak flag."""
        return TimeSlot(
            staff_id=self.staff_id,
            start=self.start,
            end=self.end,
            is_available=self.is_available,
            price=price,
            is_peak=is_peak,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for API responses and JSON storage."""
        return {
            "staff_id": self.staff_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "is_available": self.is_available,
            "price": str(self.price) if self.price is not None else None,
            "is_peak": self.is_peak,
        }
