"""Break overlay presenter driven by the break-cycle signals."""

from .countdown import BreakCountdown

__all__ = ["BreakCountdown"]
