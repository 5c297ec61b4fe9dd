"""Configuration management for window-reader."""

import os
from pathlib import Path

import yaml

from . import log
from .errors import ConfigError

logger = log.get_logger()

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
API_KEY_ENV = "OPENAI_API_KEY"
CONFIG_DIR = Path.home() / ".window-reader"

DEFAULT_CONFIG = """# Window to capture (exact title, falls back to partial match)
window_title: "VRChat"

# Global hotkey that triggers capture, translation and speech
hotkey: "Control+F1"

# Vision model and the language to translate into
model: "gpt-4o"
target_language: "English"
api_url: "https://api.openai.com/v1/chat/completions"

# File holding the API key (the OPENAI_API_KEY environment variable wins)
api_key_file: "ChatGPT.API-Key"

# Seconds to wait for the translation service before giving up
request_timeout: 30

# Completion settings
max_tokens: 1000
temperature: 0.7

# Speech: rate multiplier (0.5-3.0) and volume (0-100)
speech_rate: 1.25
speech_volume: 100

# Seconds to wait after restoring a minimized window before capturing
restore_delay: 0.2

# Search by partial title when no window matches exactly
fallback_to_substring_search: true

# Delete the last capture before each attempt, so a failed attempt
# leaves no image behind. When false, it always shows the last success.
clear_last_capture_before_attempt: false
last_capture_path: "last_captured.png"

# Speak a short message when a capture or translation fails
speak_errors: true
"""


def _clamp(value, low, high):
    return max(low, min(high, value))


def _as_str(value, default: str) -> str:
    # A bare "key:" in YAML loads as None
    if value is None:
        return default
    return str(value)


def _as_float(value, default: float, low: float, high: float) -> float:
    try:
        return _clamp(float(value), low, high)
    except (TypeError, ValueError):
        return default


def _as_int(value, default: int, low: int, high: int) -> int:
    try:
        return _clamp(int(value), low, high)
    except (TypeError, ValueError):
        return default


def _as_bool(value, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
    return default


class Config:
    """Application configuration."""

    def __init__(
        self,
        window_title: str = "VRChat",
        hotkey: str = "Control+F1",
        model: str = "gpt-4o",
        target_language: str = "English",
        api_url: str = DEFAULT_API_URL,
        api_key_file: str = "ChatGPT.API-Key",
        request_timeout: float = 30.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        speech_rate: float = 1.25,
        speech_volume: int = 100,
        restore_delay: float = 0.2,
        fallback_to_substring_search: bool = True,
        clear_last_capture_before_attempt: bool = False,
        last_capture_path: str = "last_captured.png",
        speak_errors: bool = True,
    ):
        self.window_title = window_title
        self.hotkey = hotkey
        self.model = model
        self.target_language = target_language
        self.api_url = api_url
        self.api_key_file = api_key_file
        self.request_timeout = request_timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.speech_rate = speech_rate
        self.speech_volume = speech_volume
        self.restore_delay = restore_delay
        self.fallback_to_substring_search = fallback_to_substring_search
        self.clear_last_capture_before_attempt = clear_last_capture_before_attempt
        self.last_capture_path = last_capture_path
        self.speak_errors = speak_errors
        self._api_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build a config from parsed YAML, clamping numeric ranges."""
        defaults = cls()
        return cls(
            window_title=_as_str(data.get("window_title"), defaults.window_title),
            hotkey=_as_str(data.get("hotkey"), defaults.hotkey),
            model=_as_str(data.get("model"), defaults.model),
            target_language=_as_str(data.get("target_language"), defaults.target_language),
            api_url=_as_str(data.get("api_url"), defaults.api_url),
            api_key_file=_as_str(data.get("api_key_file"), defaults.api_key_file),
            request_timeout=_as_float(data.get("request_timeout"), defaults.request_timeout, 1.0, 300.0),
            max_tokens=_as_int(data.get("max_tokens"), defaults.max_tokens, 100, 4000),
            temperature=_as_float(data.get("temperature"), defaults.temperature, 0.0, 2.0),
            speech_rate=_as_float(data.get("speech_rate"), defaults.speech_rate, 0.5, 3.0),
            speech_volume=_as_int(data.get("speech_volume"), defaults.speech_volume, 0, 100),
            restore_delay=_as_float(data.get("restore_delay"), defaults.restore_delay, 0.0, 2.0),
            fallback_to_substring_search=_as_bool(
                data.get("fallback_to_substring_search"), defaults.fallback_to_substring_search
            ),
            clear_last_capture_before_attempt=_as_bool(
                data.get("clear_last_capture_before_attempt"), defaults.clear_last_capture_before_attempt
            ),
            last_capture_path=_as_str(data.get("last_capture_path"), defaults.last_capture_path),
            speak_errors=_as_bool(data.get("speak_errors"), defaults.speak_errors),
        )

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. If None, looks for config.yml
                        in common locations. A missing file falls back to
                        defaults.

        Returns:
            Config instance with loaded values.
        """
        if config_path is not None and not os.path.exists(config_path):
            logger.warning("config file not found, using defaults", path=config_path)
            return cls()

        if config_path is None:
            search_paths = [
                Path("config.yml"),
                CONFIG_DIR / "config.yml",
            ]
            for path in search_paths:
                if path.exists():
                    config_path = str(path)
                    break

        if config_path:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {config_path} must contain a mapping")
            logger.debug("config loaded", path=config_path)
            return cls.from_dict(data)

        # No config file found - create default in home directory
        config = cls()
        config._create_default_config()
        return config

    def _create_default_config(self) -> None:
        """Create a default config file in the user's home directory."""
        config_path = CONFIG_DIR / "config.yml"

        if config_path.exists():
            return

        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(DEFAULT_CONFIG)

        logger.info("created default config", path=str(config_path))

    @property
    def api_key(self) -> str:
        """The API key, read on first use.

        Raises:
            ConfigError: If neither the environment variable nor the key file
                provides a key.
        """
        if self._api_key:
            return self._api_key

        key = os.environ.get(API_KEY_ENV, "").strip()
        if not key:
            key_path = Path(self.api_key_file)
            if not key_path.exists():
                raise ConfigError(
                    f"API key not found. Set {API_KEY_ENV} or create a file named "
                    f"'{self.api_key_file}' containing your API key."
                )
            key = key_path.read_text(encoding="utf-8").strip()
            if not key:
                raise ConfigError(f"API key file '{self.api_key_file}' is empty")

        self._api_key = key
        return key
