"""
Availability calculation algorithms.

This package contains the pure computation behind availability: candidate
slot generation, booking rule evaluation, conflict detection, VIP ordering
and alternative selection. Nothing here reads storage; every input is an
absolute instant or a plain value built at the data loading boundary.

Key components:
- SlotGenerator: Generates candidate windows from a staff schedule
- RuleEvaluator: Checks windows against booking rules
- ConflictDetector: Detects scheduling conflicts for windows and proposals
- VipPrioritizer: Reorders slots for VIP customers
- AlternativeSelector: Picks replacement slots close to a requested time
"""

from .alternative_selector import AlternativeSelector
from .booking_rules import BlackoutRule, MaxAdvanceRule, MinAdvanceRule, PeakPricingRule
from .conflict_detector import BookingProposal, ConflictDetector, ConflictKind
from .rule_evaluator import RuleEvaluator
from .slot_generator import ScheduleWindow, SlotGenerator
from .time_range import TimeRange, TimeSlot
from .vip_prioritizer import VipPrioritizer

__all__ = [
    "AlternativeSelector",
    "BlackoutRule",
    "BookingProposal",
    "ConflictDetector",
    "ConflictKind",
    "MaxAdvanceRule",
    "MinAdvanceRule",
    "PeakPricingRule",
    "RuleEvaluator",
    "ScheduleWindow",
    "SlotGenerator",
    "TimeRange",
    "TimeSlot",
    "VipPrioritizer",
]
