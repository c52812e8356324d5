"""Cooldown gate between triggered calming-sound responses"""

from datetime import datetime
from typing import Optional


def cooldown_remaining(now: datetime, last_trigger: Optional[datetime], cooldown_seconds: float) -> float:
    """Seconds left before another response may trigger, clamped at 0.

    Args:
        now: Current instant
        last_trigger: Instant of the last triggered response, or None if never
        cooldown_seconds: Configured minimum interval between responses

    Returns:
        Remaining seconds, never negative
    """
    if last_trigger is None:
        return 0.0
    elapsed = (now - last_trigger).total_seconds()
    return max(0.0, cooldown_seconds - elapsed)


def can_trigger(now: datetime, last_trigger: Optional[datetime], cooldown_seconds: float) -> bool:
    return cooldown_remaining(now, last_trigger, cooldown_seconds) == 0


class CooldownGate:
    """Tracks the last trigger instant for one monitoring run.

    The gate only measures elapsed time against the interval. Choosing an
    interval longer than the calming sounds is the settings layer's job.
    """

    def __init__(self, cooldown_seconds: float = 15.0):
        self.cooldown_seconds = cooldown_seconds
        self.last_trigger: Optional[datetime] = None

    def remaining(self, now: datetime, cooldown_seconds: Optional[float] = None) -> float:
        if cooldown_seconds is None:
            cooldown_seconds = self.cooldown_seconds
        return cooldown_remaining(now, self.last_trigger, cooldown_seconds)

    def can_trigger(self, now: datetime, cooldown_seconds: Optional[float] = None) -> bool:
        return self.remaining(now, cooldown_seconds) == 0

    def mark_triggered(self, now: datetime):
        self.last_trigger = now

    def reset(self):
        """Forget the last trigger ("never triggered")."""
        self.last_trigger = None
