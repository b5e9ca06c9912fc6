import json

import pytest

from config import DEFAULT_FOLDER_NAME, Config
from models import ConfigError


def test_missing_file_gives_defaults(tmp_path):
    config = Config.load(tmp_path / "config.json")
    assert config.chill_api_key is None
    assert config.putio_folder_name == DEFAULT_FOLDER_NAME
    assert config.needs_setup()


def test_round_trip_only_persists_user_settings(tmp_path):
    path = tmp_path / "nested" / "config.json"
    Config(chill_api_key="k" * 12, putio_oauth_token="t" * 24, putio_folder_id=5,
           putio_folder_name="Movies").save(path)

    data = json.loads(path.read_text())
    assert set(data) == {"chill_api_key", "putio_oauth_token", "putio_folder_id", "putio_folder_name"}

    loaded = Config.load(path)
    assert loaded.putio_folder_id == 5
    assert loaded.putio_folder_name == "Movies"
    assert not loaded.needs_setup()


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"chill_api_key": "abc", "REQUEST_TIMEOUT": 1, "extra": True}))
    config = Config.load(path)
    assert config.chill_api_key == "abc"
    assert config.REQUEST_TIMEOUT == 30.0


def test_empty_folder_name_falls_back(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"putio_folder_name": ""}))
    assert Config.load(path).putio_folder_name == DEFAULT_FOLDER_NAME


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_malformed_config_raises(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        Config.load(path)
