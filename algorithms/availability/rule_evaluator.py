"""
Booking rule evaluation.

All applicable rules must pass for a window to be bookable; evaluation order
(rule priority) never changes the outcome.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from .booking_rules import (
    BlackoutRule,
    BookingRuleSpec,
    MaxAdvanceRule,
    MinAdvanceRule,
    PeakPricingRule,
)
from .time_range import TimeRange

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """
    Evaluates booking rules against candidate windows relative to a fixed
    reference instant, so one availability computation sees one "now".
    """

    def __init__(self, now: datetime):
        self.now = now

    def passes_rule(self, window: TimeRange, rule: BookingRuleSpec) -> bool:
        """
        Check a single window against a single rule.

        Args:
            window: Candidate window (absolute instants)
            rule: One of the rule variants

        Returns:
            True if the window satisfies the rule
        """
        if isinstance(rule, MinAdvanceRule):
            return window.start > self.now + rule.min_advance

        if isinstance(rule, MaxAdvanceRule):
            return window.start < self.now + rule.max_advance

        if isinstance(rule, BlackoutRule):
            return not (rule.starts_at <= window.start <= rule.ends_at)

        if isinstance(rule, PeakPricingRule):
            return True

        raise TypeError(f"Unsupported booking rule type: {type(rule).__name__}")

    def passes_all(self, window: TimeRange, rules: Iterable[BookingRuleSpec]) -> bool:
        """Pure conjunction over every rule."""
        return all(self.passes_rule(window, rule) for rule in rules)

    @staticmethod
    def peak_rule_for(window: TimeRange, rules: Iterable[BookingRuleSpec]) -> Optional[PeakPricingRule]:
        """
        Find the peak-pricing rule whose range contains the window start.

        Rules are expected in evaluation order (highest priority first); the
        first match wins.
        """
        for rule in rules:
            if isinstance(rule, PeakPricingRule) and rule.starts_at <= window.start < rule.ends_at:
                return rule
        return None
