"""
VIP slot ordering.

Pure reordering of already-validated slots: nothing is filtered and no slot
field changes.
"""

from typing import List

from .time_range import TimeRange, TimeSlot


class VipPrioritizer:
    """
    Moves slots starting inside the prime band ahead of the rest.

    Args:
        prime_band: The preferred band for the requested date, already
            resolved to absolute instants
    """

    def __init__(self, prime_band: TimeRange):
        self.prime_band = prime_band

    def in_prime_band(self, slot: TimeSlot) -> bool:
        return self.prime_band.contains(slot.start)

    def prioritize(self, slots: List[TimeSlot]) -> List[TimeSlot]:
        """Prime-band slots first, chronological inside each group."""
        chronological = sorted(slots, key=lambda slot: slot.start)
        prime = [slot for slot in chronological if self.in_prime_band(slot)]
        rest = [slot for slot in chronological if not self.in_prime_band(slot)]
        return prime + rest
