from .controller import (
    BreakCycleController,
    CycleActionResult,
    CyclePhase,
    CycleSnapshot,
    format_remaining,
)
from .scheduler import ManualScheduler, ScheduledCall, Scheduler, ThreadingScheduler
from .signals import Signal, Subscription

__all__ = [
    "BreakCycleController",
    "CycleActionResult",
    "CyclePhase",
    "CycleSnapshot",
    "ManualScheduler",
    "ScheduledCall",
    "Scheduler",
    "Signal",
    "Subscription",
    "ThreadingScheduler",
    "format_remaining",
]
