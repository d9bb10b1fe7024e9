"""Diagnostic tool that fast-forwards break cycles on virtual time."""

import logging
import sys

from app_config import AppConfigurationError, load_app_config, resolve_config_path
from breakcycle import BreakCycleController, ManualScheduler
from breakcycle.constants import WARNING_BODY, WARNING_TITLE
from overlay import BreakCountdown


def setup_logging():
    """Configure console logging for the diagnostic tool."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(message)s",
    )


def simulate(debug_mode: bool, cycles: int = 1) -> int:
    """Run `cycles` full work/break rounds and print every signal with its virtual time."""
    scheduler = ManualScheduler()
    controller = BreakCycleController(debug_mode=debug_mode, scheduler=scheduler)
    overlay = BreakCountdown(scheduler, on_finished=controller.break_completed)
    completed = 0

    def stamp(text: str) -> None:
        minutes, seconds = divmod(int(scheduler.now()), 60)
        print(f"[{minutes:03d}:{seconds:02d}] {text}")

    def on_break_ended() -> None:
        nonlocal completed
        completed += 1
        stamp("break ended")

    controller.on_break_warning.subscribe(
        lambda: stamp(f"warning: {WARNING_TITLE} - {WARNING_BODY}")
    )
    controller.on_break_started.subscribe(lambda: stamp("break started"))
    controller.on_break_started.subscribe(overlay.show)
    controller.on_break_ended.subscribe(on_break_ended)
    overlay.on_tick.subscribe(
        lambda remaining: stamp(f"overlay {remaining:02d}s") if remaining % 5 == 0 else None
    )

    controller.start()
    stamp(f"cycle started, next break in {controller.remaining_formatted}")

    # Guard against a stuck cycle instead of looping forever.
    limit = cycles * (controller.work_duration_seconds + 60)
    while completed < cycles and scheduler.now() < limit:
        scheduler.advance(1)

    controller.stop()
    if completed < cycles:
        print(f"Simulation stalled after {completed} of {cycles} cycles")
        return 1

    print(f"\nCompleted {completed} cycle(s) in {int(scheduler.now())} virtual seconds.")
    return 0


def main():
    """Simulate break cycles using the configured debug mode."""
    setup_logging()

    try:
        app_config = load_app_config(str(resolve_config_path()))
    except AppConfigurationError as e:
        print(f"Error: {e}")
        return 1

    cycles = 1
    if len(sys.argv) > 1:
        try:
            cycles = max(1, int(sys.argv[1]))
        except ValueError:
            print(f"Error: cycle count must be an integer, got {sys.argv[1]!r}")
            return 1

    mode = "debug" if app_config.cycle.debug_mode else "production"
    print(f"=== Break Cycle Simulation ({mode} mode, {cycles} cycle(s)) ===\n")
    return simulate(app_config.cycle.debug_mode, cycles)


if __name__ == "__main__":
    sys.exit(main())
