import unittest

from runtime.commands import CommandError, CycleCommand, parse_command


class ParseCommandTests(unittest.TestCase):
    def test_parses_cycle_actions(self) -> None:
        for action in (
            "start",
            "pause",
            "pause_for_one_hour",
            "resume_from_pause",
            "reset_timer",
            "stop",
            "break_completed",
        ):
            with self.subTest(action=action):
                self.assertEqual(
                    CycleCommand(action=action),
                    parse_command({"type": "command", "command": action}),
                )

    def test_normalizes_case_and_whitespace(self) -> None:
        command = parse_command({"type": "command", "command": "  Reset_Timer "})
        self.assertEqual("reset_timer", command.action)

    def test_accepts_dismiss_break_shell_command(self) -> None:
        command = parse_command({"type": "command", "command": "dismiss_break"})
        self.assertEqual("dismiss_break", command.action)
        self.assertIsNone(command.enabled)

    def test_set_debug_mode_requires_boolean_enabled(self) -> None:
        command = parse_command(
            {"type": "command", "command": "set_debug_mode", "enabled": True}
        )
        self.assertEqual(CycleCommand(action="set_debug_mode", enabled=True), command)

        with self.assertRaises(CommandError):
            parse_command({"type": "command", "command": "set_debug_mode"})
        with self.assertRaises(CommandError):
            parse_command(
                {"type": "command", "command": "set_debug_mode", "enabled": "true"}
            )

    def test_rejects_malformed_messages(self) -> None:
        malformed = (
            {},
            {"type": "chat", "command": "start"},
            {"type": "command"},
            {"type": "command", "command": ""},
            {"type": "command", "command": 7},
            {"type": "command", "command": "snooze"},
        )
        for payload in malformed:
            with self.subTest(payload=payload):
                with self.assertRaises(CommandError):
                    parse_command(payload)


if __name__ == "__main__":
    unittest.main()
