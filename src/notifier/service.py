"""One-shot pre-break warning delivered through the shell UI channel."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

from breakcycle.constants import WARNING_BODY, WARNING_TITLE


class WarningPublisher(Protocol):
    def publish_warning(self, *, active: bool, title: str = "", body: str = "") -> None:
        ...


class BreakWarningNotifier:
    """Emits the "break coming soon" alert; delivery errors never propagate."""

    def __init__(
        self,
        publisher: Optional[WarningPublisher],
        logger: Optional[logging.Logger] = None,
    ):
        self._publisher = publisher
        self._logger = logger or logging.getLogger("notifier")
        self._lock = threading.Lock()
        self._outstanding = False

    @property
    def has_outstanding_warning(self) -> bool:
        with self._lock:
            return self._outstanding

    def send_break_warning(self) -> None:
        with self._lock:
            self._outstanding = True
        self._logger.info("Sending break warning notification")
        self._deliver(active=True, title=WARNING_TITLE, body=WARNING_BODY)

    def cancel_all(self) -> None:
        with self._lock:
            if not self._outstanding:
                return
            self._outstanding = False
        self._deliver(active=False)

    def _deliver(self, *, active: bool, title: str = "", body: str = "") -> None:
        if self._publisher is None:
            return
        try:
            self._publisher.publish_warning(active=active, title=title, body=body)
        except Exception as error:
            self._logger.error("Error sending notification: %s", error)
