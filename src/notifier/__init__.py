"""Notifier for the pre-break warning."""

from .service import BreakWarningNotifier, WarningPublisher

__all__ = ["BreakWarningNotifier", "WarningPublisher"]
