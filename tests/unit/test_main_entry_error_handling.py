import io
import sys
from pathlib import Path
import unittest
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import idlemmo.__main__ as runtime_main
from idlemmo.errors import ConfigurationError


class MainEntryErrorHandlingTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch.object(runtime_main, "load_dotenv")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_main_handles_runtime_exceptions_without_traceback(self) -> None:
        output = io.StringIO()
        with mock.patch.object(runtime_main, "create_game_session", side_effect=RuntimeError("store unavailable")), mock.patch(
            "sys.stdout", output
        ):
            runtime_main.main()

        text = output.getvalue()
        self.assertIn("An unexpected error occurred", text)
        self.assertIn("store unavailable", text)
        self.assertIn("Help:", text)
        self.assertNotIn("Traceback", text)

    def test_main_reports_configuration_errors(self) -> None:
        output = io.StringIO()
        with mock.patch.object(
            runtime_main, "create_game_session", side_effect=ConfigurationError("SUPABASE_URL env var not set")
        ), mock.patch("sys.stdout", output):
            runtime_main.main()

        text = output.getvalue()
        self.assertIn("Configuration error: SUPABASE_URL env var not set", text)
        self.assertIn("Help:", text)

    def test_main_handles_keyboard_interrupt(self) -> None:
        output = io.StringIO()
        with mock.patch.object(runtime_main, "create_game_session", side_effect=KeyboardInterrupt), mock.patch(
            "sys.stdout", output
        ):
            runtime_main.main()

        self.assertIn("Session ended", output.getvalue())

    def test_session_is_closed_after_menu_failure(self) -> None:
        game = mock.Mock()
        output = io.StringIO()
        with mock.patch.object(runtime_main, "create_game_session", return_value=game), mock.patch.object(
            runtime_main, "main_menu", side_effect=RuntimeError("boom")
        ), mock.patch("sys.stdout", output):
            runtime_main.main()

        game.close.assert_called_once_with()
        self.assertIn("boom", output.getvalue())


if __name__ == "__main__":
    unittest.main()
