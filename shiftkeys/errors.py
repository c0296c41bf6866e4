"""Exception hierarchy for shiftkeys.

Parse failures and domain outcomes live on separate branches, so callers can
tell "the page changed" apart from "the code expired".
Transport failures are left as ``requests`` exceptions.
"""

from typing import Any, Dict, Optional


class ShiftKeysError(Exception):
    """Base exception for every error raised by shiftkeys."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base = f"{base} ({details_str})"
        if self.cause:
            base = f"{base} | cause: {self.cause}"
        return base

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# -------------------------------
# Issue dates
# -------------------------------

class InvalidDate(ShiftKeysError):
    """Free-text date could not be normalized."""


class InvalidToken(InvalidDate):
    def __init__(self, token: str, text: str):
        super().__init__(f"Invalid token {token!r} in date", details={"text": text})
        self.token = token


class MissingMonth(InvalidDate):
    pass


class MissingDay(InvalidDate):
    pass


class MissingYear(InvalidDate):
    pass


class ComponentRange(InvalidDate):
    """Year/month/day were found but do not form a real calendar date."""


# -------------------------------
# Code table
# -------------------------------

class TableError(ShiftKeysError):
    """The code table could not be extracted."""


class MissingTable(TableError):
    pass


class MissingTableBody(TableError):
    pass


class RowError(TableError):
    """A single table row is malformed; aborts the whole extraction."""


class MissingSource(RowError):
    pass


class MissingRewards(RowError):
    pass


class MissingIssueDate(RowError):
    pass


class MissingExpiration(RowError):
    pass


class MissingCode(RowError):
    pass


class InvalidIssueDate(RowError):
    pass


class CrossReferenceError(TableError):
    """A backreference placeholder could not be rewritten."""


class UnresolvedReference(CrossReferenceError):
    pass


class NoPreviousRecord(CrossReferenceError):
    pass


# -------------------------------
# SHiFT pages
# -------------------------------

class PageError(ShiftKeysError):
    """A SHiFT page no longer matches the structure we expect."""


class MissingCsrfToken(PageError):
    pass


class MissingAccountField(PageError):
    pass


class UnknownAlertNotice(PageError):
    def __init__(self, text: str):
        super().__init__(f"Unknown alert notice {text!r}", details={"text": text})
        self.text = text


class MissingAlertText(PageError):
    pass


class MissingAlertNotice(PageError):
    pass


class MissingRedemptionStatusUrl(PageError):
    pass


class InvalidRewardForm(PageError):
    def __init__(self, field: str):
        super().__init__(f"Reward form is missing {field!r}", details={"field": field})
        self.field = field


class InvalidRedemptionJson(PageError):
    pass


# -------------------------------
# Authentication / protocol
# -------------------------------

class AuthenticationError(ShiftKeysError):
    pass


class IncorrectEmailOrPassword(AuthenticationError):
    def __init__(self):
        super().__init__("Incorrect email or password")


class NotAuthenticated(AuthenticationError):
    def __init__(self):
        super().__init__("Not logged in; call login() first")


class InvalidRedirect(ShiftKeysError):
    def __init__(self, url: str):
        super().__init__(f"Invalid redirect to {url!r}", details={"url": url})
        self.url = url


# -------------------------------
# Domain outcomes
# -------------------------------

class ShiftCodeRejected(ShiftKeysError):
    """The server classified the code; nothing went wrong on our side."""

    default_message = "SHiFT code rejected"

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(message or self.default_message, **kwargs)


class ExpiredShiftCode(ShiftCodeRejected):
    default_message = "This SHiFT code has expired"


class NonExistentShiftCode(ShiftCodeRejected):
    default_message = "This SHiFT code does not exist"


class UnavailableShiftCode(ShiftCodeRejected):
    default_message = "This code is not available for your account"


class ShiftCodeAlreadyRedeemed(ShiftCodeRejected):
    default_message = "This SHiFT code has already been redeemed"


class LaunchShiftGame(ShiftCodeRejected):
    default_message = "Launch a SHiFT-enabled title to keep redeeming codes"


class ShiftCodeRedeemFail(ShiftCodeRejected):
    default_message = "Failed to redeem your SHiFT code"
