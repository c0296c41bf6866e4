"""Parsers for the SHiFT website pages and the redemption status JSON."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from .errors import (
    InvalidRedemptionJson,
    InvalidRewardForm,
    MissingAccountField,
    MissingAlertText,
    MissingCsrfToken,
    MissingRedemptionStatusUrl,
    UnknownAlertNotice,
)

SHIFT_ORIGIN = "https://shift.gearboxsoftware.com"

CSRF_META_SELECTOR = 'meta[name="csrf-token"][content]'
ALERT_NOTICE_SELECTOR = ".alert.notice p"
REDEMPTION_STATUS_SELECTOR = "#check_redemption_status[data-url]"
FORM_SELECTOR = "form"

SUCCESS_TEXT = "Your code was successfully redeemed"


def extract_csrf_token(soup: BeautifulSoup) -> str:
    meta = soup.select_one(CSRF_META_SELECTOR)
    if meta is None:
        raise MissingCsrfToken("Page has no csrf-token meta tag")
    return meta["content"]


def _first_text(element: Tag) -> Optional[str]:
    # First text node as-is; alert text is compared exactly
    return next(iter(element.strings), None)


@dataclass
class HomePage:
    csrf_token: str

    @classmethod
    def from_html(cls, soup: BeautifulSoup) -> "HomePage":
        return cls(csrf_token=extract_csrf_token(soup))


@dataclass
class AccountPage:
    csrf_token: str
    email: str
    display_name: str
    first_name: str

    @classmethod
    def from_html(cls, soup: BeautifulSoup) -> "AccountPage":
        csrf_token = extract_csrf_token(soup)
        values = {}
        for name in ("email", "display_name", "first_name"):
            element = soup.select_one(f"#current_{name}")
            text = _first_text(element) if element is not None else None
            if text is None:
                raise MissingAccountField(f"Account page is missing {name}", details={"field": name})
            values[name] = text
        return cls(csrf_token=csrf_token, **values)


class AlertNotice(Enum):
    """Flash notice shown on the rewards page after a submission"""
    ALREADY_REDEEMED = "This SHiFT code has already been redeemed"
    LAUNCH_SHIFT_GAME = "To continue to redeem SHiFT codes, please launch a SHiFT-enabled title first!"
    REDEEMED = SUCCESS_TEXT
    REDEEM_FAILED = "Failed to redeem your SHiFT code"

    @classmethod
    def from_element(cls, element: Tag) -> "AlertNotice":
        text = _first_text(element)
        if text is None:
            raise MissingAlertText("Alert notice has no text")
        try:
            return cls(text)
        except ValueError:
            raise UnknownAlertNotice(text) from None


@dataclass
class RewardsPage:
    csrf_token: str
    alert_notice: Optional[AlertNotice] = None

    @classmethod
    def from_html(cls, soup: BeautifulSoup) -> "RewardsPage":
        csrf_token = extract_csrf_token(soup)
        element = soup.select_one(ALERT_NOTICE_SELECTOR)
        alert_notice = AlertNotice.from_element(element) if element is not None else None
        return cls(csrf_token=csrf_token, alert_notice=alert_notice)


@dataclass
class CodeRedemptionPage:
    """Interstitial page shown while a submission is processed"""
    csrf_token: str
    check_redemption_status_url: str

    @classmethod
    def from_html(cls, soup: BeautifulSoup) -> "CodeRedemptionPage":
        csrf_token = extract_csrf_token(soup)
        element = soup.select_one(REDEMPTION_STATUS_SELECTOR)
        if element is None:
            raise MissingRedemptionStatusUrl("Page has no redemption status element")
        return cls(
            csrf_token=csrf_token,
            check_redemption_status_url=f"{SHIFT_ORIGIN}{element['data-url']}",
        )


# Field order of the submitted form
REWARD_FORM_FIELDS = (
    "utf8",
    "authenticity_token",
    "archway_code_redemption[code]",
    "archway_code_redemption[check]",
    "archway_code_redemption[service]",
    "archway_code_redemption[title]",
    "commit",
)


@dataclass(frozen=True)
class RewardForm:
    """One redeemable (service, title) combination for a code.

    The field values are opaque and are posted back unchanged.
    """

    fields: Dict[str, str]

    @classmethod
    def from_element(cls, element: Tag) -> "RewardForm":
        values = {}
        for name in REWARD_FORM_FIELDS:
            input_el = element.select_one(f'[name="{name}"][value]')
            if input_el is None:
                raise InvalidRewardForm(name)
            values[name] = input_el["value"]
        return cls(fields=values)

    @classmethod
    def from_html(cls, soup: BeautifulSoup) -> List["RewardForm"]:
        return [cls.from_element(form) for form in soup.select(FORM_SELECTOR)]

    @property
    def code(self) -> str:
        return self.fields["archway_code_redemption[code]"]

    @property
    def service(self) -> str:
        return self.fields["archway_code_redemption[service]"]

    @property
    def title(self) -> str:
        return self.fields["archway_code_redemption[title]"]

    def to_form_data(self) -> List[tuple]:
        return [(name, self.fields[name]) for name in REWARD_FORM_FIELDS]


@dataclass
class CodeRedemptionResult:
    """Decoded redemption status JSON"""
    in_progress: bool = False
    text: Optional[str] = None
    url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Any) -> "CodeRedemptionResult":
        if not isinstance(data, dict):
            raise InvalidRedemptionJson(
                "Redemption status is not a JSON object",
                details={"type": type(data).__name__},
            )
        data = dict(data)
        in_progress = data.pop("in_progress", False)
        if not isinstance(in_progress, bool):
            raise InvalidRedemptionJson(
                "Redemption status in_progress is not a boolean",
                details={"in_progress": in_progress},
            )
        return cls(
            in_progress=in_progress,
            text=data.pop("text", None),
            url=data.pop("url", None),
            extra=data,
        )

    def is_success(self) -> bool:
        return self.text == SUCCESS_TEXT
