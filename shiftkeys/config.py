"""Configuration loaded from a ``.env`` file and the process environment."""

import os
from pathlib import Path
from typing import List, Optional, Union

from dotenv import dotenv_values

from .codes import Platform


class Config:
    """Centralized configuration management"""

    def __init__(self, env_file: Optional[Union[str, Path]] = ".env"):
        # .env values win over the process environment
        if env_file and Path(env_file).exists():
            self.env_config = dotenv_values(env_file)
        else:
            self.env_config = {}

        # Endpoints
        self.shift_base_url = "https://shift.gearboxsoftware.com"
        self.user_agent = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

        # Credentials (optional, prompted for when absent)
        self.email = self._get_str("SHIFT_EMAIL")
        self.password = self._get_str("SHIFT_PASSWORD")

        # Runtime
        self.verbose = self._get_bool("VERBOSE", False)
        self.delay_seconds = self._get_float("DELAY_SECONDS", 0.0)
        self.max_retries = self._get_int("MAX_RETRIES", 3)
        self.connection_timeout = self._get_int("CONNECTION_TIMEOUT", 10)
        self.read_timeout = self._get_int("READ_TIMEOUT", 30)

        # Redemption pacing
        self.poll_interval = self._get_float("POLL_INTERVAL", 2.0)
        self.rate_limit_backoff = self._get_float("RATE_LIMIT_BACKOFF", 60.0)
        self.rate_limit_retries = self._get_int("RATE_LIMIT_RETRIES", 8)

        self.allowed_platforms = self._parse_platforms(self._get_str("ALLOWED_PLATFORMS", "pc"))

    @property
    def timeout(self):
        return (self.connection_timeout, self.read_timeout)

    @staticmethod
    def _parse_platforms(value: str) -> List[Platform]:
        names = [p.strip().lower() for p in value.split(",") if p.strip()]
        if not names:
            raise ValueError("ALLOWED_PLATFORMS must name at least one platform: pc, playstation, xbox")

        platforms = []
        for name in names:
            try:
                platform = Platform(name)
            except ValueError:
                valid = ", ".join(p.value for p in Platform)
                raise ValueError(f"Invalid platform '{name}'. Supported platforms: {valid}") from None
            if platform not in platforms:
                platforms.append(platform)
        return platforms

    def _get_str(self, key: str, default: str = "") -> str:
        value = self.env_config.get(key)
        if value is None:
            value = os.environ.get(key, default)
        return value

    def _get_bool(self, key: str, default: bool = False) -> bool:
        value = self._get_str(key, "1" if default else "0")
        return value.strip().lower() in ("1", "true", "yes")

    def _get_int(self, key: str, default: int) -> int:
        try:
            return int(self._get_str(key, str(default)))
        except ValueError:
            return default

    def _get_float(self, key: str, default: float) -> float:
        try:
            return float(self._get_str(key, str(default)))
        except ValueError:
            return default


def load_config(env_file: Optional[Union[str, Path]] = ".env") -> Config:
    return Config(env_file)
