"""
Booking rule variants.

A booking rule is exactly one of four kinds, each carrying only the fields it
needs. Instances are built from the persisted BookingRule rows at the data
loading boundary, with every date and time-of-day already resolved to absolute
instants in the location's timezone.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional


class BookingRuleSpec:
    """Base class for all rule variants."""

    kind = None

    def __init__(self, rule_id: Optional[str] = None, staff_id: Optional[str] = None, priority: int = 0):
        self.rule_id = str(rule_id) if rule_id is not None else None
        # None means the rule applies to every staff member in scope
        self.staff_id = str(staff_id) if staff_id is not None else None
        self.priority = priority

    def applies_to_staff(self, staff_id: str) -> bool:
        return self.staff_id is None or self.staff_id == str(staff_id)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.rule_id} staff={self.staff_id}>"


class MinAdvanceRule(BookingRuleSpec):
    """Window start must be after now + min_advance."""

    kind = "MIN_ADVANCE_TIME"

    def __init__(self, min_advance_hours: int, **kwargs):
        super().__init__(**kwargs)
        self.min_advance = timedelta(hours=min_advance_hours)


class MaxAdvanceRule(BookingRuleSpec):
    """Window start must be before now + max_advance."""

    kind = "MAX_ADVANCE_TIME"

    def __init__(self, max_advance_days: int, **kwargs):
        super().__init__(**kwargs)
        self.max_advance = timedelta(days=max_advance_days)


class BlackoutRule(BookingRuleSpec):
    """Window start must not fall inside [starts_at, ends_at]."""

    kind = "BLACKOUT_DATE"

    def __init__(self, starts_at: datetime, ends_at: datetime, **kwargs):
        super().__init__(**kwargs)
        self.starts_at = starts_at
        self.ends_at = ends_at


class PeakPricingRule(BookingRuleSpec):
    """
    Price multiplier for windows starting inside [starts_at, ends_at).

    Not a pass/fail constraint; the pricing step consumes it.
    """

    kind = "PEAK_PRICING"

    def __init__(self, starts_at: datetime, ends_at: datetime, multiplier: Decimal, **kwargs):
        super().__init__(**kwargs)
        self.starts_at = starts_at
        self.ends_at = ends_at
        self.multiplier = Decimal(multiplier)
