import logging
import unittest
from typing import Any, Callable, Optional

from app_config import AppConfig, CycleSettings, LoggingSettings, UIServerSettings
from breakcycle import ManualScheduler
from runtime import RuntimeBootstrap, RuntimeEngine, RuntimeHooks


class _UIServerStub:
    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.handler: Optional[Callable[[dict[str, Any]], None]] = None
        self.forgotten: list[str] = []
        self.stopped = False

    def publish(self, event_type: str, **payload):
        self.events.append((event_type, payload))

    def forget_sticky(self, event_type: str) -> None:
        self.forgotten.append(event_type)

    def set_command_handler(self, handler) -> None:
        self.handler = handler

    def stop(self, timeout_seconds: float = 5.0) -> None:
        self.stopped = True

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [payload for kind, payload in self.events if kind == event_type]


def _build_engine(
    *,
    debug_mode: bool = True,
    start_on_launch: bool = True,
    allow_break_dismissal: bool = False,
    stop_on_setup: bool = False,
):
    scheduler = ManualScheduler()
    ui_server = _UIServerStub()

    def setup_signal_handlers(stop: Callable[[], None]) -> None:
        if stop_on_setup:
            stop()

    app_config = AppConfig(
        cycle=CycleSettings(
            debug_mode=debug_mode,
            start_on_launch=start_on_launch,
            allow_break_dismissal=allow_break_dismissal,
        ),
        ui_server=UIServerSettings(),
        logging=LoggingSettings(),
        source_file="config.toml",
    )
    engine = RuntimeEngine(
        RuntimeBootstrap(
            logger=logging.getLogger("runtime"),
            app_config=app_config,
            scheduler=scheduler,
            ui_server=ui_server,
            hooks=RuntimeHooks(setup_signal_handlers=setup_signal_handlers),
        )
    )
    return engine, scheduler, ui_server


class RuntimeWiringTests(unittest.TestCase):
    def test_engine_registers_command_handler(self) -> None:
        engine, _, ui_server = _build_engine()
        self.assertIsNotNone(ui_server.handler)

    def test_full_cycle_shows_overlay_then_starts_next_interval(self) -> None:
        engine, scheduler, ui_server = _build_engine(debug_mode=True)
        engine.controller.start()

        scheduler.advance(5)

        self.assertEqual("on_break", engine.controller.phase)
        self.assertTrue(engine.overlay.is_showing)
        overlay_events = ui_server.of_type("break_overlay")
        self.assertEqual(
            {"showing": True, "remaining_seconds": 20, "allow_dismissal": False},
            overlay_events[0],
        )
        self.assertEqual("On Break", ui_server.of_type("cycle")[-1]["status"])

        scheduler.advance(20)

        self.assertFalse(engine.overlay.is_showing)
        self.assertEqual("active", engine.controller.phase)
        self.assertEqual(5, engine.controller.remaining_seconds)
        self.assertFalse(ui_server.of_type("break_overlay")[-1]["showing"])
        self.assertEqual("Active", ui_server.of_type("cycle")[-1]["status"])

    def test_warning_published_then_cleared_when_break_starts(self) -> None:
        engine, scheduler, ui_server = _build_engine(debug_mode=False)
        engine.controller.start()

        scheduler.advance(1170)

        warnings = ui_server.of_type("break_warning")
        self.assertEqual(1, len(warnings))
        self.assertTrue(warnings[0]["active"])
        self.assertEqual("Break Coming Soon", warnings[0]["title"])

        scheduler.advance(30)

        warnings = ui_server.of_type("break_warning")
        self.assertEqual(2, len(warnings))
        self.assertFalse(warnings[-1]["active"])
        self.assertTrue(engine.overlay.is_showing)

    def test_reset_after_warning_clears_notification(self) -> None:
        engine, scheduler, ui_server = _build_engine(debug_mode=False)
        engine.controller.start()
        scheduler.advance(1175)

        result = engine.handle_command({"type": "command", "command": "reset_timer"})

        self.assertIsNotNone(result)
        self.assertEqual(1200, engine.controller.remaining_seconds)
        self.assertFalse(ui_server.of_type("break_warning")[-1]["active"])
        self.assertFalse(engine.notifier.has_outstanding_warning)

    def test_pause_landing_mid_tick_leaves_latest_state_published(self) -> None:
        engine, scheduler, ui_server = _build_engine(debug_mode=False)
        controller = engine.controller
        # The pause runs while the tick is still emitting its own update.
        controller.on_break_warning.subscribe(controller.pause)
        controller.start()

        scheduler.advance(1170)

        self.assertEqual("paused", controller.phase)
        last_cycle = ui_server.of_type("cycle")[-1]
        self.assertEqual("paused", last_cycle["phase"])
        self.assertEqual(30, last_cycle["remaining_seconds"])
        self.assertTrue(engine.notifier.has_outstanding_warning)

    def test_accepted_command_drops_sticky_error(self) -> None:
        engine, _, ui_server = _build_engine()

        engine.handle_command({"type": "command", "command": "explode"})
        self.assertEqual([], ui_server.forgotten)

        engine.handle_command({"type": "command", "command": "pause_for_one_hour"})
        engine.handle_command({"type": "command", "command": "start"})

        self.assertEqual(["error"], ui_server.forgotten)

    def test_handle_command_applies_action_and_publishes_result(self) -> None:
        engine, scheduler, ui_server = _build_engine()
        engine.controller.start()

        result = engine.handle_command({"type": "command", "command": "pause_for_one_hour"})

        self.assertIsNotNone(result)
        self.assertEqual("paused", engine.controller.phase)
        self.assertEqual(
            {"command": "pause_for_one_hour", "accepted": True, "reason": "paused_for_hour"},
            ui_server.of_type("command_result")[-1],
        )
        self.assertEqual("Paused for an hour", ui_server.of_type("cycle")[-1]["status"])

        engine.handle_command({"type": "command", "command": "start"})
        self.assertFalse(ui_server.of_type("command_result")[-1]["accepted"])

    def test_malformed_command_publishes_error_without_touching_cycle(self) -> None:
        engine, _, ui_server = _build_engine()
        before = engine.controller.snapshot()

        result = engine.handle_command({"type": "command", "command": "explode"})

        self.assertIsNone(result)
        self.assertEqual(before, engine.controller.snapshot())
        self.assertIn("explode", ui_server.of_type("error")[-1]["message"])

    def test_submitted_commands_are_drained_on_owner_thread(self) -> None:
        engine, _, ui_server = _build_engine()

        ui_server.handler({"type": "command", "command": "start"})
        ui_server.handler({"type": "command", "command": "set_debug_mode", "enabled": False})

        self.assertEqual(2, engine.process_pending_commands(timeout=0))
        self.assertFalse(engine.controller.debug_mode)
        self.assertEqual(1200, engine.controller.remaining_seconds)
        self.assertEqual(0, engine.process_pending_commands(timeout=0))

    def test_dismiss_break_completes_break_when_allowed(self) -> None:
        engine, scheduler, ui_server = _build_engine(allow_break_dismissal=True)
        engine.controller.start()
        scheduler.advance(5)

        engine.handle_command({"type": "command", "command": "dismiss_break"})

        self.assertEqual("active", engine.controller.phase)
        self.assertFalse(engine.overlay.is_showing)
        self.assertEqual(
            {"command": "dismiss_break", "accepted": True, "reason": "dismissed"},
            ui_server.of_type("command_result")[-1],
        )

    def test_dismiss_break_rejected_for_mandatory_break(self) -> None:
        engine, scheduler, ui_server = _build_engine(allow_break_dismissal=False)
        engine.controller.start()
        scheduler.advance(5)

        engine.handle_command({"type": "command", "command": "dismiss_break"})

        self.assertEqual("on_break", engine.controller.phase)
        self.assertTrue(engine.overlay.is_showing)
        self.assertFalse(ui_server.of_type("command_result")[-1]["accepted"])

    def test_run_starts_cycle_and_shuts_down_cleanly(self) -> None:
        engine, _, ui_server = _build_engine(stop_on_setup=True)

        exit_code = engine.run()

        self.assertEqual(0, exit_code)
        self.assertEqual("cycle", ui_server.events[0][0])
        self.assertEqual("paused", engine.controller.phase)
        self.assertFalse(engine.controller.ticker_armed)
        self.assertTrue(ui_server.stopped)

    def test_run_without_start_on_launch_skips_start(self) -> None:
        engine, _, ui_server = _build_engine(start_on_launch=False, stop_on_setup=True)

        engine.run()

        # Startup sync and the shutdown stop only.
        phases = [payload["phase"] for payload in ui_server.of_type("cycle")]
        self.assertEqual(["active", "paused"], phases)
        self.assertTrue(ui_server.stopped)


if __name__ == "__main__":
    unittest.main()
