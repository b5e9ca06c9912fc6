import io
import unittest
from unittest.mock import MagicMock, patch

from rich.console import Console

from config import Config
from models import TransferFailure
from setup_wizard import run_setup_wizard


class TestSetupWizard(unittest.TestCase):
    def setUp(self):
        self.console = Console(file=io.StringIO())
        self.client = MagicMock()
        self.client.test_connection.return_value = "chill-user"
        self.client.find_or_create_folder.return_value = 77
        self.factory = MagicMock(return_value=self.client)

    @patch("setup_wizard.Prompt.ask")
    def test_full_setup_with_retries(self, mock_ask):
        self.client.test_connection.side_effect = [TransferFailure("HTTP 401"), "chill-user"]
        mock_ask.side_effect = [
            "", "short", "k" * 12,          # API key: empty, too short, ok
            "t" * 24, "u" * 24,             # token: rejected by Put.io, then ok
            "2", "Movies",                  # custom folder
        ]
        path = MagicMock()
        with patch.object(Config, "save") as mock_save:
            config = run_setup_wizard(Config(), console=self.console,
                                      client_factory=self.factory, path=path)

        self.assertEqual(config.chill_api_key, "k" * 12)
        self.assertEqual(config.putio_oauth_token, "u" * 24)
        self.assertEqual(config.putio_folder_name, "Movies")
        self.assertEqual(config.putio_folder_id, 77)
        self.client.find_or_create_folder.assert_called_once_with("Movies")
        mock_save.assert_called_once_with(path)
        self.assertIn("Connected as: chill-user", self.console.file.getvalue())

    @patch("setup_wizard.Prompt.ask")
    def test_existing_values_are_not_asked_again(self, mock_ask):
        config = Config(chill_api_key="k" * 12, putio_oauth_token="t" * 24, putio_folder_id=3)
        with patch.object(Config, "save"):
            run_setup_wizard(config, console=self.console, client_factory=self.factory)
        mock_ask.assert_not_called()
        self.factory.assert_not_called()

    @patch("setup_wizard.Prompt.ask")
    def test_default_folder(self, mock_ask):
        mock_ask.side_effect = ["1"]
        config = Config(chill_api_key="k" * 12, putio_oauth_token="t" * 24)
        with patch.object(Config, "save"):
            config = run_setup_wizard(config, console=self.console, client_factory=self.factory)
        self.assertEqual(config.putio_folder_name, "ChillTUI")
        self.assertEqual(config.putio_folder_id, 77)


if __name__ == "__main__":
    unittest.main()
