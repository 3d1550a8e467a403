"""Configuration management for sparesync."""

import json
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sparesync.exceptions import ConfigError
from sparesync.models import AccountMapping, TokenState

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILENAME = "config.json"

DEFAULT_REDIRECT_URI = "https://auth-helper.herokuapp.com"
DEFAULT_FIN_INST = "fid-sr-bank"


def get_config_dir() -> Path:
    """Get the config directory path (XDG compliant)."""
    xdg_config_home = os.getenv("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config_home) / "sparesync"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_config_dir() / CONFIG_FILENAME


def find_config_file() -> Path | None:
    """Find the config file in standard locations.

    Searches for config in the following order:
    1. $CONFIG_PATH
    2. config.json in current directory
    3. XDG config: ~/.config/sparesync/config.json
    """
    if env_path := os.getenv("CONFIG_PATH"):
        return Path(env_path)

    for path in [Path(CONFIG_FILENAME), get_config_path()]:
        if path.exists():
            return path

    return None


def load_json_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    try:
        with open(config_path) as f:
            return json.load(f)  # type: ignore[no-any-return]
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {e}") from e


def save_json_config(config: dict[str, Any], config_path: Path | None = None) -> Path:
    """Save configuration to a JSON file.

    The whole document is rewritten.

    Args:
        config: Configuration dictionary to save
        config_path: Path to save to (defaults to XDG config location)

    Returns:
        Path where config was saved
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        json.dump(config, f, indent=2)
        f.write("\n")

    logger.debug("Saved config to %s", config_path)
    return config_path


def get_account_mappings(config: dict[str, Any] | None = None) -> dict[str, AccountMapping]:
    """Get account mappings keyed by bank account number.

    Args:
        config: Loaded JSON config

    Returns:
        Dictionary of bank account number to AccountMapping
    """
    if not config or "accounts" not in config:
        return {}

    mappings: dict[str, AccountMapping] = {}
    for number, acc in config["accounts"].items():
        try:
            mappings[number] = AccountMapping.from_config(acc)
        except KeyError as e:
            raise ConfigError(f"Account {number} is missing {e.args[0]!r} in config") from e
    return mappings


def get_account(mappings: dict[str, AccountMapping], number: str) -> AccountMapping:
    """Look up a mapped account by bank account number."""
    try:
        return mappings[number]
    except KeyError:
        raise ConfigError(f"Account {number} is not configured") from None


def get_token_state(config: dict[str, Any] | None) -> TokenState | None:
    """Get the stored token pair, or None if the bank was never authorized."""
    if not config:
        return None

    access_token = config.get("accessToken")
    refresh_token = config.get("refreshToken")
    if not refresh_token:
        return None
    return TokenState(access_token=access_token or "", refresh_token=refresh_token)


def set_token_state(config: dict[str, Any], state: TokenState) -> None:
    """Write a token pair into the config document."""
    config["accessToken"] = state.access_token
    config["refreshToken"] = state.refresh_token


def create_default_config() -> dict[str, Any]:
    """Create a default empty configuration."""
    return {
        "accounts": {},
        "accessToken": None,
        "refreshToken": None,
    }


def mask_token(token: str | None) -> str:
    """Mask a token for logging, showing only the first 8 characters."""
    if not token:
        return "(none)"
    if len(token) > 8:
        return token[:8] + "..."
    return "***"


def require_env(name: str) -> str:
    """Read a required environment variable."""
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"Missing required environment variable: {name}")
    return value


@dataclass(frozen=True)
class Settings:
    """Credentials and endpoints read from the environment."""

    client_id: str
    client_secret: str
    actual_url: str
    actual_api_key: str
    actual_budget_id: str
    actual_encryption_password: str | None = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    fin_inst: str = DEFAULT_FIN_INST

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Raises:
            ConfigError: If a required variable is missing
        """
        return cls(
            client_id=require_env("SPAREBANK1_CLIENT_ID"),
            client_secret=require_env("SPAREBANK1_CLIENT_SECRET"),
            actual_url=require_env("ACTUAL_URL"),
            actual_api_key=require_env("ACTUAL_API_KEY"),
            actual_budget_id=require_env("ACTUAL_BUDGET_ID"),
            actual_encryption_password=os.getenv("ACTUAL_ENCRYPTION_PASSWORD") or None,
            redirect_uri=os.getenv("SPAREBANK1_REDIRECT_URI", DEFAULT_REDIRECT_URI),
            fin_inst=os.getenv("SPAREBANK1_FIN_INST", DEFAULT_FIN_INST),
        )


class TokenStore:
    """Holds the current token pair and persists every change.

    Only TokenManager calls ``update``. The persist callback runs before
    ``update`` returns, so a rotated refresh token is on disk before it is used.
    """

    def __init__(
        self,
        state: TokenState | None,
        persist: Callable[[TokenState], None],
    ) -> None:
        self._state = state
        self._persist = persist

    @property
    def state(self) -> TokenState | None:
        return self._state

    @property
    def access_token(self) -> str | None:
        return self._state.access_token if self._state else None

    @property
    def refresh_token(self) -> str | None:
        return self._state.refresh_token if self._state else None

    def update(self, state: TokenState) -> None:
        """Replace the token pair and persist it."""
        self._state = state
        self._persist(state)


def config_token_persister(
    config: dict[str, Any], config_path: Path
) -> Callable[[TokenState], None]:
    """Build a persist callback that writes tokens into the config file."""

    def persist(state: TokenState) -> None:
        set_token_state(config, state)
        save_json_config(config, config_path)

    return persist
