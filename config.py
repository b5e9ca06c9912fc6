# config.py
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir, user_log_dir

from models import ConfigError

APP_NAME = "chilltui"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / "config.json"
LOG_DIR = Path(user_log_dir(APP_NAME, appauthor=False))
DEFAULT_FOLDER_NAME = "ChillTUI"
PERSISTED_KEYS = ("chill_api_key", "putio_oauth_token", "putio_folder_id", "putio_folder_name")

log = logging.getLogger(__name__)


@dataclass
class Config:
    """Holds all application configuration."""
    chill_api_key: Optional[str] = None
    putio_oauth_token: Optional[str] = None
    putio_folder_id: Optional[int] = None
    putio_folder_name: str = DEFAULT_FOLDER_NAME
    CHILL_BASE_URL: str = "https://chill.institute/api/v3"
    PUTIO_BASE_URL: str = "https://api.put.io/v2"
    REQUEST_TIMEOUT: float = 30.0

    @classmethod
    def load(cls, path: Path = CONFIG_PATH) -> "Config":
        """Reads the JSON config file; a missing file yields the defaults."""
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read config at {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config at {path} is not a JSON object.")
        config = cls(**{k: v for k, v in data.items() if k in PERSISTED_KEYS})
        if not config.putio_folder_name:
            config.putio_folder_name = DEFAULT_FOLDER_NAME
        return config

    def save(self, path: Path = CONFIG_PATH) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {k: v for k, v in asdict(self).items() if k in PERSISTED_KEYS}
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        log.debug("Saved config to %s", path)

    def needs_setup(self) -> bool:
        return not self.chill_api_key or not self.putio_oauth_token
