"""Configuration and shared settings."""

__version__ = "0.1.0"

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed"""
    pass


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


CONFIG = {
    "port": int(os.getenv("PORT", "5000")),
    "log_level": os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    # Slack
    "slack_signing_secret": os.getenv("SLACK_SIGNING_SECRET", ""),
    "slack_bot_token": os.getenv("SLACK_BOT_TOKEN", ""),
    "slack_bot_user_id": os.getenv("SLACK_BOT_USER_ID", ""),
    # LINE
    "line_channel_secret": os.getenv("LINE_CHANNEL_SECRET", ""),
    "line_access_token": os.getenv("LINE_ACCESS_TOKEN", ""),
    # Bridge directory file (channels + bridges), hot-reloaded
    "bridge_config_path": os.getenv("BRIDGE_CONFIG_PATH", "bridges.json"),
    # Overrides https://<request host> when building proxy URLs
    "public_base_url": os.getenv("PUBLIC_BASE_URL", "").rstrip("/"),
    "worker_poll_interval": os.getenv("WORKER_POLL_INTERVAL", "1.0"),
    "keepalive_url": os.getenv("KEEPALIVE_URL", ""),
    "keepalive_interval": os.getenv("KEEPALIVE_INTERVAL", "60"),
}


@dataclass
class SlackConfig:
    signing_secret: str = ""
    bot_token: str = ""
    bot_user_id: str = ""


@dataclass
class LineConfig:
    channel_secret: str = ""
    access_token: str = ""

    @property
    def channel_secret_bytes(self) -> bytes:
        """The channel secret is configured as hex and used as raw key bytes."""
        return bytes.fromhex(self.channel_secret)


@dataclass
class WorkerConfig:
    poll_interval: float = 1.0
    keepalive_url: str = ""
    keepalive_interval: float = 60.0


@dataclass
class AppConfig:
    """Typed configuration for the bridge service."""

    port: int = 5000
    log_level: str = "INFO"
    bridge_config_path: str = "bridges.json"
    public_base_url: str = ""
    slack: SlackConfig = field(default_factory=SlackConfig)
    line: LineConfig = field(default_factory=LineConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            log_level=CONFIG["log_level"],
            bridge_config_path=CONFIG["bridge_config_path"],
            public_base_url=CONFIG["public_base_url"],
            slack=SlackConfig(
                signing_secret=CONFIG["slack_signing_secret"],
                bot_token=CONFIG["slack_bot_token"],
                bot_user_id=CONFIG["slack_bot_user_id"],
            ),
            line=LineConfig(
                channel_secret=CONFIG["line_channel_secret"],
                access_token=CONFIG["line_access_token"],
            ),
            worker=WorkerConfig(
                poll_interval=_float_env("WORKER_POLL_INTERVAL", 1.0),
                keepalive_url=CONFIG["keepalive_url"],
                keepalive_interval=_float_env("KEEPALIVE_INTERVAL", 60.0),
            ),
        )

    def validate(self) -> None:
        """Fail fast on configuration that would break every request."""
        if not self.slack.signing_secret:
            raise ConfigError("SLACK_SIGNING_SECRET is not set")
        if not self.line.channel_secret:
            raise ConfigError("LINE_CHANNEL_SECRET is not set")
        try:
            self.line.channel_secret_bytes
        except ValueError:
            raise ConfigError("LINE_CHANNEL_SECRET must be a hex string")
        if self.worker.poll_interval <= 0:
            raise ConfigError("WORKER_POLL_INTERVAL must be positive")
