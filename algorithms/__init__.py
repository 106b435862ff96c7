"""
Booking engine algorithms package.

Framework-independent computation used by the booking apps:
- availability: Slot generation, rule evaluation, conflict detection and slot ordering
- optimization: Staff workload scoring
"""

__version__ = "1.0.0"
