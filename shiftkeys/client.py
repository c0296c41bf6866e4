"""SHiFT website client: login, reward forms, submission and polling."""

import logging
import time
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from .config import Config
from .errors import (
    ExpiredShiftCode,
    IncorrectEmailOrPassword,
    InvalidRedemptionJson,
    InvalidRedirect,
    LaunchShiftGame,
    MissingAlertNotice,
    NonExistentShiftCode,
    NotAuthenticated,
    ShiftCodeAlreadyRedeemed,
    ShiftCodeRedeemFail,
    UnavailableShiftCode,
)
from .pages import (
    AccountPage,
    AlertNotice,
    CodeRedemptionPage,
    CodeRedemptionResult,
    HomePage,
    RewardForm,
    RewardsPage,
)
from .session import Credentials, RedemptionSession

logger = logging.getLogger(__name__)

# Plain-text answers of the entitlement lookup
FORMS_REJECTIONS = {
    "This SHiFT code has expired": ExpiredShiftCode,
    "This SHiFT code does not exist": NonExistentShiftCode,
    "This code is not available for your account": UnavailableShiftCode,
}

ALERT_REJECTIONS = {
    AlertNotice.ALREADY_REDEEMED: ShiftCodeAlreadyRedeemed,
    AlertNotice.LAUNCH_SHIFT_GAME: LaunchShiftGame,
    AlertNotice.REDEEM_FAILED: ShiftCodeRedeemFail,
}


def _soup(resp: requests.Response) -> BeautifulSoup:
    resp.raise_for_status()
    return BeautifulSoup(resp.text, 'html.parser')


class ShiftClient:
    """Drives one account through the SHiFT redemption workflow.

    ``login()`` must succeed before any other call. Every response is checked
    with ``raise_for_status()``, so a 429 surfaces as ``requests.HTTPError``
    and retrying is left to the caller.
    """

    def __init__(self, credentials: Credentials, config: Config,
                 session: Optional[RedemptionSession] = None):
        self.config = config
        self.session = session or RedemptionSession(credentials, config)

        base = config.shift_base_url
        self.home_url = f"{base}/home"
        self.sessions_url = f"{base}/sessions"
        self.account_url = f"{base}/account"
        self.login_failed_url = f"{base}/home?redirect_to=false"
        self.rewards_url = f"{base}/rewards"
        self.code_redemptions_url = f"{base}/code_redemptions"
        self.entitlement_url = f"{base}/entitlement_offer_codes"

    @property
    def authenticated(self) -> bool:
        return self.session.authenticated

    def close(self):
        self.session.close()

    def _require_auth(self):
        if not self.session.authenticated:
            raise NotAuthenticated()

    def get_home_page(self) -> HomePage:
        return HomePage.from_html(_soup(self.session.get(self.home_url)))

    def login(self) -> AccountPage:
        """Sign in; returns the account page the server redirects to"""
        home_page = self.get_home_page()
        credentials = self.session.credentials

        login_data = {
            'utf8': '✓',
            'authenticity_token': home_page.csrf_token,
            'user[email]': credentials.email,
            'user[password]': credentials.password,
            'commit': 'SIGN IN',
        }

        logger.debug("Submitting login form...")
        resp = self.session.post(self.sessions_url, data=login_data, allow_redirects=True)
        resp.raise_for_status()

        if resp.url == self.login_failed_url:
            raise IncorrectEmailOrPassword()
        if resp.url != self.account_url:
            raise InvalidRedirect(resp.url)

        account_page = AccountPage.from_html(_soup(resp))
        self.session.mark_authenticated(account_page.csrf_token)
        logger.debug(f"Logged in as {account_page.display_name}")
        return account_page

    def get_rewards_page(self) -> RewardsPage:
        self._require_auth()
        page = RewardsPage.from_html(_soup(self.session.get(self.rewards_url)))
        self.session.csrf_token = page.csrf_token
        return page

    def get_reward_forms(self, code: str, rewards_page: Optional[RewardsPage] = None) -> List[RewardForm]:
        """List the redeemable (service, title) forms for ``code``.

        Uses the token of ``rewards_page`` when given, else the session's
        current token (fetching the rewards page if there is none yet).
        """
        self._require_auth()
        if rewards_page is not None:
            csrf_token = rewards_page.csrf_token
        else:
            csrf_token = self.session.csrf_token or self.get_rewards_page().csrf_token

        headers = {
            "X-CSRF-Token": csrf_token,
            "X-Requested-With": "XMLHttpRequest",
        }
        resp = self.session.get(self.entitlement_url, params={"code": code.strip()}, headers=headers)
        resp.raise_for_status()

        body = resp.text.strip()
        rejection = FORMS_REJECTIONS.get(body)
        if rejection is not None:
            raise rejection(details={"code": code})

        forms = RewardForm.from_html(BeautifulSoup(resp.text, 'html.parser'))
        logger.debug(f"{len(forms)} reward form(s) for {code}")
        return forms

    def redeem(self, form: RewardForm) -> Optional[CodeRedemptionResult]:
        """Submit one form.

        Returns ``None`` when the server reports success directly on the
        rewards page, otherwise the final polled status.
        """
        self._require_auth()
        resp = self.session.post(self.code_redemptions_url, data=form.to_form_data(), allow_redirects=True)
        resp.raise_for_status()

        if resp.url.startswith(self.rewards_url):
            page = RewardsPage.from_html(_soup(resp))
            self.session.csrf_token = page.csrf_token
            if page.alert_notice is None:
                raise MissingAlertNotice("Rewards page has no alert notice", details={"code": form.code})
            if page.alert_notice is AlertNotice.REDEEMED:
                return None
            raise ALERT_REJECTIONS[page.alert_notice](details={"code": form.code})

        if not resp.url.startswith(self.code_redemptions_url):
            raise InvalidRedirect(resp.url)

        page = CodeRedemptionPage.from_html(_soup(resp))
        self.session.csrf_token = page.csrf_token
        return self._poll(page)

    def _poll(self, page: CodeRedemptionPage) -> CodeRedemptionResult:
        headers = {
            "X-CSRF-Token": page.csrf_token,
            "X-Requested-With": "XMLHttpRequest",
        }
        while True:
            resp = self.session.get(page.check_redemption_status_url, headers=headers)
            resp.raise_for_status()
            try:
                data = resp.json()
            except ValueError as e:
                raise InvalidRedemptionJson("Redemption status is not JSON", cause=e) from e
            result = CodeRedemptionResult.from_json(data)

            time.sleep(self.config.poll_interval)

            if not result.in_progress:
                return result
            logger.debug("Redemption still in progress...")
