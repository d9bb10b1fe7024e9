"""Runtime composition root wiring the cycle to presenter, notifier, and shell UI."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from queue import Empty, Queue
from typing import Any, Callable, Optional

from app_config import AppConfig
from breakcycle import BreakCycleController, CycleActionResult, CycleSnapshot, Scheduler
from contracts.ui_protocol import COMMAND_DISMISS_BREAK, EVENT_COMMAND_RESULT
from notifier import BreakWarningNotifier
from overlay import BreakCountdown
from server import UIServer

from .commands import CommandError, CycleCommand, parse_command
from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class RuntimeHooks:
    """Injectable lifecycle hooks used by runtime startup and shutdown flow."""
    setup_signal_handlers: Callable[[Callable[[], None]], None]


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the runtime engine."""
    logger: logging.Logger
    app_config: AppConfig
    scheduler: Scheduler
    ui_server: Optional[UIServer]
    hooks: RuntimeHooks


class RuntimeEngine:
    """Owns the break cycle and serializes shell commands onto the run loop."""
    def __init__(self, bootstrap: RuntimeBootstrap):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        cycle_settings = bootstrap.app_config.cycle

        self._ui = RuntimeUIPublisher(bootstrap.ui_server)
        self._controller = BreakCycleController(
            debug_mode=cycle_settings.debug_mode,
            scheduler=bootstrap.scheduler,
            logger=logging.getLogger("breakcycle"),
        )
        self._overlay = BreakCountdown(
            bootstrap.scheduler,
            logger=logging.getLogger("overlay"),
        )
        self._notifier = BreakWarningNotifier(
            self._ui,
            logger=logging.getLogger("notifier"),
        )
        self._allow_break_dismissal = cycle_settings.allow_break_dismissal
        self._commands: Queue[dict[str, Any]] = Queue()
        self._stop_requested = threading.Event()
        self._subscriptions = self._wire_collaborators()

        if bootstrap.ui_server is not None:
            bootstrap.ui_server.set_command_handler(self.submit_command)

    @property
    def controller(self) -> BreakCycleController:
        return self._controller

    @property
    def overlay(self) -> BreakCountdown:
        return self._overlay

    @property
    def notifier(self) -> BreakWarningNotifier:
        return self._notifier

    def submit_command(self, payload: dict[str, Any]) -> None:
        """Queue a shell message; safe to call from any thread."""
        self._commands.put(payload)

    def request_stop(self) -> None:
        self._stop_requested.set()

    def run(self) -> int:
        self._publish_startup_sync()

        try:
            self._bootstrap.hooks.setup_signal_handlers(self.request_stop)

            if self._bootstrap.app_config.cycle.start_on_launch:
                self._controller.start()
            self._logger.info(
                "Break cycle ready: next break in %s",
                self._controller.remaining_formatted,
            )

            while not self._stop_requested.is_set():
                self.process_pending_commands(timeout=0.25)
            return 0

        except KeyboardInterrupt:
            self._logger.info("Shutdown requested by keyboard interrupt.")
            return 0
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            self._shutdown()

    def process_pending_commands(self, timeout: float = 0.0) -> int:
        """Apply queued shell commands; waits up to `timeout` for the first one."""
        handled = 0
        while True:
            try:
                payload = self._commands.get(timeout=timeout if handled == 0 else 0)
            except Empty:
                return handled
            self.handle_command(payload)
            handled += 1

    def handle_command(self, payload: dict[str, Any]) -> Optional[CycleActionResult]:
        try:
            command = parse_command(payload)
        except CommandError as error:
            self._logger.warning("Rejected shell command: %s", error)
            self._ui.publish_error(f"Rejected command: {error}")
            return None

        self._logger.debug("Shell command: %s", command.action)
        if command.action == COMMAND_DISMISS_BREAK:
            self._dismiss_break()
            return None

        result = self._apply(command)
        self._ui.publish_command_result(result)
        return result

    def _apply(self, command: CycleCommand) -> CycleActionResult:
        return self._controller.apply(command.action, enabled=command.enabled)

    def _dismiss_break(self) -> None:
        dismissed = self._overlay.dismiss()
        self._ui.publish(
            EVENT_COMMAND_RESULT,
            command=COMMAND_DISMISS_BREAK,
            accepted=dismissed,
            reason="dismissed" if dismissed else "dismissal_not_allowed",
        )

    def _wire_collaborators(self) -> list[Any]:
        controller = self._controller
        overlay = self._overlay
        return [
            controller.on_break_warning.subscribe(self._notifier.send_break_warning),
            controller.on_break_started.subscribe(self._handle_break_started),
            controller.on_break_ended.subscribe(self._handle_break_ended),
            controller.on_update.subscribe(self._handle_cycle_update),
            overlay.on_finished.subscribe(self._handle_overlay_finished),
            overlay.on_visibility.subscribe(self._handle_overlay_visibility),
            overlay.on_tick.subscribe(self._handle_overlay_tick),
        ]

    def _handle_break_started(self) -> None:
        self._logger.info("Break started - showing overlay")
        self._notifier.cancel_all()
        self._overlay.show(allow_dismissal=self._allow_break_dismissal)

    def _handle_break_ended(self) -> None:
        # No-op when the overlay already closed itself.
        self._overlay.hide()

    def _handle_overlay_finished(self) -> None:
        self._logger.info("Break overlay completed - resetting timer")
        self._controller.break_completed()

    def _handle_cycle_update(self, snapshot: CycleSnapshot) -> None:
        # Stale snapshots from a racing tick must not clear a newer warning.
        if self._ui.publish_cycle_update(snapshot) and not snapshot.warning_fired:
            self._notifier.cancel_all()

    def _handle_overlay_visibility(self, showing: bool, remaining_seconds: int) -> None:
        self._ui.publish_overlay_update(
            showing=showing,
            remaining_seconds=remaining_seconds,
            allow_dismissal=self._allow_break_dismissal,
        )

    def _handle_overlay_tick(self, remaining_seconds: int) -> None:
        if remaining_seconds > 0:
            self._ui.publish_overlay_update(
                showing=True,
                remaining_seconds=remaining_seconds,
                allow_dismissal=self._allow_break_dismissal,
            )

    def _publish_startup_sync(self) -> None:
        self._ui.publish_cycle_update(self._controller.snapshot())

    def _shutdown(self) -> None:
        self._logger.info("Stopping break cycle...")
        self._controller.stop()
        self._overlay.hide()
        for subscription in self._subscriptions:
            subscription.cancel()

        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            self._logger.info("Stopping UI server...")
            try:
                ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                self._logger.error("Error stopping UI server: %s", error, exc_info=True)
