"""HTTP session state shared by the SHiFT redemption steps."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests
from requests.adapters import HTTPAdapter, Retry

from .config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str

    def __repr__(self):
        return f"Credentials(email={self.email!r}, password='***')"


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class RedemptionSession:
    """Cookie jar, CSRF token and credentials for one SHiFT account.

    Not thread safe; redemption runs sequentially.
    """

    def __init__(self, credentials: Credentials, config: Config):
        self.credentials = credentials
        self.config = config
        self.state = SessionState.UNAUTHENTICATED
        self.csrf_token: Optional[str] = None

        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        })

        # Transport retries for server errors only; 429 is left to the caller
        adapter = HTTPAdapter(
            max_retries=Retry(
                total=config.max_retries,
                backoff_factor=0.3,
                status_forcelist=[500, 502, 503, 504],
                raise_on_status=False,
            )
        )
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

        self._last_request_time = 0.0

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def mark_authenticated(self, csrf_token: str):
        self.state = SessionState.AUTHENTICATED
        self.csrf_token = csrf_token

    def _throttle(self):
        """Keep at least delay_seconds between requests"""
        elapsed = time.time() - self._last_request_time
        wait_time = max(0.0, self.config.delay_seconds - elapsed)
        if wait_time > 0:
            time.sleep(wait_time)
        self._last_request_time = time.time()

    def get(self, url: str, **kwargs) -> requests.Response:
        self._throttle()
        kwargs.setdefault('timeout', self.config.timeout)
        logger.debug(f"GET {url}")
        return self.session.get(url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        self._throttle()
        kwargs.setdefault('timeout', self.config.timeout)
        logger.debug(f"POST {url}")
        return self.session.post(url, **kwargs)

    def close(self):
        self.session.close()
