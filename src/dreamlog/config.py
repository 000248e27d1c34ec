"""Configuration management for Dreamlog."""

import json
import logging
import os
import time
from dataclasses import dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)

DREAMLOG_HOME = Path(os.environ.get("DREAMLOG_HOME", Path.home() / "dreamlog"))
CONFIG_FILE = DREAMLOG_HOME / "config" / "dreamlog.conf"
SESSION_FILE = DREAMLOG_HOME / "config" / ".session.json"
DATA_DIR = DREAMLOG_HOME / "data"

ENV_PREFIX = "DREAMLOG_"


@dataclass
class Config:
    """Dreamlog configuration."""

    supabase_url: str = ""
    supabase_anon_key: str = ""
    data_dir: str = ""
    entries_table: str = "dreams"
    interpretations_table: str = "interpretations"
    request_timeout: float = 10.0
    online_cache_seconds: float = 5.0
    sync_interval_minutes: int = 15
    connectivity_poll_seconds: float = 2.0
    merge_policy: str = "remote_wins"
    force_offline: bool = False

    def resolved_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR


@dataclass
class Session:
    """Cached auth session for the signed-in user."""

    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0
    user_id: str = ""

    def is_expiring(self, leeway: int = 60) -> bool:
        """True if the access token expires within `leeway` seconds."""
        return bool(self.expires_at) and time.time() >= self.expires_at - leeway

    def save(self, path: Path | None = None) -> None:
        """Save session to file."""
        path = path or SESSION_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                {
                    "access_token": self.access_token,
                    "refresh_token": self.refresh_token,
                    "expires_at": self.expires_at,
                    "user_id": self.user_id,
                }
            )
        )
        path.chmod(0o600)

    @classmethod
    def load(cls, path: Path | None = None) -> "Session | None":
        """Load session from file. Returns None when signed out."""
        path = path or SESSION_FILE
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
            session = cls(
                access_token=data.get("access_token", ""),
                refresh_token=data.get("refresh_token", ""),
                expires_at=data.get("expires_at", 0),
                user_id=data.get("user_id", ""),
            )
        except (json.JSONDecodeError, AttributeError):
            return None
        if not session.access_token or not session.user_id:
            return None
        return session

    @staticmethod
    def clear(path: Path | None = None) -> None:
        """Remove the cached session."""
        path = path or SESSION_FILE
        path.unlink(missing_ok=True)


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"'):
        end_quote = value.find('"', 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if value.startswith("'"):
        end_quote = value.find("'", 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply(config: Config, key: str, value: str) -> None:
    """Set one config field from its string form."""
    match key:
        case "supabase_url":
            config.supabase_url = value.rstrip("/")
        case "supabase_anon_key":
            config.supabase_anon_key = value
        case "data_dir":
            config.data_dir = value
        case "entries_table":
            config.entries_table = value
        case "interpretations_table":
            config.interpretations_table = value
        case "request_timeout" | "online_cache_seconds" | "connectivity_poll_seconds":
            try:
                setattr(config, key, float(value))
            except ValueError:
                logger.warning(f"Invalid number for {key.upper()}: {value}")
        case "sync_interval_minutes":
            try:
                config.sync_interval_minutes = int(value)
            except ValueError:
                logger.warning(f"Invalid number for SYNC_INTERVAL_MINUTES: {value}")
        case "merge_policy":
            config.merge_policy = value.strip().lower()
        case "force_offline":
            config.force_offline = _parse_bool(value)


def load_config(config_file: Path | None = None, environ: dict | None = None) -> Config:
    """
    Load configuration.

    Precedence, lowest first: defaults, dreamlog.conf, DREAMLOG_* env vars.
    """
    config = Config()
    config_file = config_file or CONFIG_FILE
    environ = os.environ if environ is None else environ

    if config_file.exists():
        for line in config_file.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            _apply(config, key.strip().lower(), _unquote(value.strip()))

    for f in fields(Config):
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in environ:
            _apply(config, f.name, environ[env_key].strip())

    return config
