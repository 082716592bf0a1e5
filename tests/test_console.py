import io
import os
import unittest
from unittest import mock

from chatclient.config import ConnectionConfig, load_config, parse_port, show_security_banner
from chatclient.console import Console, with_spinner


def make_console(text=""):
    return Console(stdin=io.StringIO(text), stdout=io.StringIO())


class ConsoleTests(unittest.TestCase):
    def test_read_line_strips_newline_and_reports_eof(self):
        console = make_console("first\r\nsecond\n")
        self.assertEqual(console.read_line("> "), "first")
        self.assertEqual(console.read_line(), "second")
        self.assertIsNone(console.read_line())
        self.assertEqual(console.stdout.getvalue(), "> ")

    def test_spinner_returns_action_result(self):
        console = make_console()
        result = with_spinner(console, "Waiting", lambda: 42)
        self.assertEqual(result, 42)
        self.assertTrue(console.stdout.getvalue().endswith("\rWaiting\n"))

    def test_spinner_stops_when_action_raises(self):
        console = make_console()

        def boom():
            raise ValueError("boom")

        with self.assertRaises(ValueError):
            console.with_spinner("Waiting", boom)
        self.assertTrue(console.stdout.getvalue().endswith("\rWaiting\n"))


class ConfigTests(unittest.TestCase):
    def test_parse_port(self):
        self.assertEqual(parse_port(" 4040 "), 4040)
        for bad in ("0", "70000", "http"):
            with self.subTest(value=bad), self.assertRaises(ValueError):
                parse_port(bad)

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_prompts_until_valid_port(self):
        console = make_console("chat.example\nabc\n99999\n4040\n")
        config = load_config(console)

        self.assertEqual(config, ConnectionConfig("chat.example", 4040, None))
        self.assertFalse(config.pinned)
        self.assertEqual(console.stdout.getvalue().count("Port must be"), 2)

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_end_of_input_before_port(self):
        self.assertIsNone(load_config(make_console("chat.example\n")))

    def test_environment_overrides_prompts(self):
        pin = "AB:" * 31 + "AB"
        env = {
            "CHAT_SERVER_HOST": "10.1.2.3",
            "CHAT_SERVER_PORT": "7000",
            "CHAT_SERVER_FINGERPRINT": f"  {pin}  ",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_config(make_console())

        self.assertEqual(config.host, "10.1.2.3")
        self.assertEqual(config.port, 7000)
        self.assertEqual(config.expected_fingerprint, "ab" * 32)

    @mock.patch.dict(os.environ, {"CHAT_SERVER_FINGERPRINT": "  "}, clear=True)
    def test_blank_fingerprint_counts_as_unset(self):
        config = load_config(make_console("host\n1234\n"))
        self.assertIsNone(config.expected_fingerprint)

    def test_banner(self):
        console = make_console()
        show_security_banner(ConnectionConfig("h", 1, "ab" * 32), console)
        self.assertIn("Secure mode enabled", console.stdout.getvalue())

        console = make_console()
        show_security_banner(ConnectionConfig("h", 1), console)
        self.assertIn("CHAT_SERVER_FINGERPRINT is not set", console.stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
