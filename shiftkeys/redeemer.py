"""Redemption orchestration: per-code results and rate-limit backoff."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional, Set, TypeVar

import requests

from .client import ShiftClient
from .config import Config
from .errors import (
    ExpiredShiftCode,
    LaunchShiftGame,
    NonExistentShiftCode,
    ShiftCodeAlreadyRedeemed,
    ShiftCodeRedeemFail,
    ShiftCodeRejected,
    UnavailableShiftCode,
)
from .logs import Colors, log_code
from .pages import RewardForm, RewardsPage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedemptionStatus(Enum):
    """Enumeration of possible redemption statuses"""
    SUCCESS = "success"
    REDEEMED = "redeemed"  # success reported on the rewards page, nothing polled
    ALREADY_REDEEMED = "already_redeemed"
    EXPIRED = "expired"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"
    GAME_REQUIRED = "game_required"
    FAILED = "failed"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"

    @property
    def succeeded(self) -> bool:
        return self in (RedemptionStatus.SUCCESS, RedemptionStatus.REDEEMED)


REJECTION_STATUSES = {
    ExpiredShiftCode: RedemptionStatus.EXPIRED,
    NonExistentShiftCode: RedemptionStatus.INVALID,
    UnavailableShiftCode: RedemptionStatus.UNAVAILABLE,
    ShiftCodeAlreadyRedeemed: RedemptionStatus.ALREADY_REDEEMED,
    LaunchShiftGame: RedemptionStatus.GAME_REQUIRED,
    ShiftCodeRedeemFail: RedemptionStatus.FAILED,
}

STATUS_COLORS = {
    RedemptionStatus.SUCCESS: Colors.GREEN,
    RedemptionStatus.REDEEMED: Colors.GREEN,
    RedemptionStatus.ALREADY_REDEEMED: Colors.GRAY,
    RedemptionStatus.EXPIRED: Colors.RED,
    RedemptionStatus.INVALID: Colors.RED,
    RedemptionStatus.UNAVAILABLE: Colors.BLUE,
    RedemptionStatus.GAME_REQUIRED: Colors.YELLOW,
    RedemptionStatus.RATE_LIMITED: Colors.YELLOW,
}


@dataclass
class RedemptionResult:
    """Result of a code redemption attempt"""
    code: str
    status: RedemptionStatus
    message: str
    service: Optional[str] = None
    title: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class RateLimited(Exception):
    """429 persisted through every backoff"""

    def __init__(self, step: str, error: requests.HTTPError):
        super().__init__(f"Rate limited during {step}")
        self.step = step
        self.error = error


def is_rate_limited(error: BaseException) -> bool:
    response = getattr(error, "response", None)
    return isinstance(error, requests.HTTPError) and response is not None and response.status_code == 429


def with_backoff(config: Config, step: str, func: Callable[..., T], *args) -> T:
    """Call ``func``, sleeping and calling again while it answers 429"""
    retries = 0
    while True:
        try:
            return func(*args)
        except requests.HTTPError as e:
            if not is_rate_limited(e):
                raise
            if retries >= config.rate_limit_retries:
                logger.error(f"Rate limited (429) during {step} after {retries} retries")
                raise RateLimited(step, e) from e
            retries += 1
            logger.warning(
                f"Rate limited (429) during {step}, waiting {config.rate_limit_backoff:g} seconds "
                f"before retry {retries}/{config.rate_limit_retries}"
            )
            time.sleep(config.rate_limit_backoff)


class CodeRedeemer:
    """Redeems codes one after another, recording a result per form.

    A 429 on any step sleeps ``rate_limit_backoff`` seconds and repeats only
    that step. Any other failure is recorded and the next code is processed.
    """

    def __init__(self, client: ShiftClient, config: Config):
        self.client = client
        self.config = config
        self.submitted: Set[str] = set()
        self.rewards_page: Optional[RewardsPage] = None

    def _with_backoff(self, step: str, func: Callable[..., T], *args) -> T:
        return with_backoff(self.config, step, func, *args)

    def refresh_rewards_page(self) -> RewardsPage:
        self.rewards_page = self._with_backoff("rewards page", self.client.get_rewards_page)
        return self.rewards_page

    def already_submitted(self, code: str) -> bool:
        return code.strip() in self.submitted

    def redeem_code(self, code: str) -> List[RedemptionResult]:
        """Look up every form for ``code`` and submit each one"""
        code = code.strip()
        self.submitted.add(code)

        try:
            if self.rewards_page is None:
                self.refresh_rewards_page()
            forms = self._with_backoff("reward forms", self.client.get_reward_forms, code, self.rewards_page)
        except Exception as e:
            return [self._result_from_error(code, e)]

        if not forms:
            return [RedemptionResult(code, RedemptionStatus.ERROR, "No forms retrieved for code")]

        return [self.redeem_form(form) for form in forms]

    def redeem_form(self, form: RewardForm) -> RedemptionResult:
        try:
            response = self._with_backoff("redemption", self.client.redeem, form)
        except Exception as e:
            return self._result_from_error(form.code, e, form)

        if response is None:
            return RedemptionResult(form.code, RedemptionStatus.REDEEMED, "Redeemed",
                                    service=form.service, title=form.title)
        if response.is_success():
            return RedemptionResult(form.code, RedemptionStatus.SUCCESS, response.text,
                                    service=form.service, title=form.title)
        message = response.text or f"Unknown redeem response: {response.extra}"
        return RedemptionResult(form.code, RedemptionStatus.FAILED, message,
                                service=form.service, title=form.title)

    def redeem_codes(self, codes: Iterable[str]) -> List[RedemptionResult]:
        """Redeem codes in order; stops early once a game launch is required"""
        all_results = []
        for code in codes:
            if self.already_submitted(code):
                logger.debug(f"Skipping {code.strip()}, already submitted this run")
                continue

            results = self.redeem_code(code)
            for result in results:
                log_result(result)
            all_results.extend(results)

            if any(r.status is RedemptionStatus.GAME_REQUIRED for r in results):
                logger.warning("Launch a SHiFT-enabled game before redeeming more codes")
                break

        success_count = sum(1 for r in all_results if r.status.succeeded)
        if success_count:
            logger.info(f"{Colors.GREEN}[OK] Successfully redeemed {success_count} code{'s' if success_count != 1 else ''}{Colors.END}")
        return all_results

    def _result_from_error(self, code: str, error: Exception,
                           form: Optional[RewardForm] = None) -> RedemptionResult:
        service = form.service if form is not None else None
        title = form.title if form is not None else None

        if isinstance(error, ShiftCodeRejected):
            status = REJECTION_STATUSES.get(type(error), RedemptionStatus.ERROR)
            return RedemptionResult(code, status, error.message, service=service, title=title)
        if isinstance(error, RateLimited):
            return RedemptionResult(code, RedemptionStatus.RATE_LIMITED, str(error), service=service, title=title)

        logger.debug(f"Redemption of {code} failed", exc_info=error)
        return RedemptionResult(code, RedemptionStatus.ERROR, str(error), service=service, title=title)


def log_result(result: RedemptionResult):
    color = STATUS_COLORS.get(result.status, Colors.RED)
    target = " / ".join(part for part in (result.service, result.title) if part)
    details = f"[{target}] {result.message}" if target else result.message
    log_code(result.code, result.status.value.replace("_", " ").capitalize(), details, color)
