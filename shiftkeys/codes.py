"""Code and table-record types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .dates import IssueDate


class Platform(Enum):
    PC = "pc"
    PLAYSTATION = "playstation"
    XBOX = "xbox"


# Column order of the per-platform code cells
PLATFORM_ORDER = (Platform.PC, Platform.PLAYSTATION, Platform.XBOX)


class CodeKind(Enum):
    VALID = "valid"
    EXPIRED = "expired"


@dataclass(unsafe_hash=True)
class Code:
    """A SHiFT code as printed in the table, tagged valid or expired.

    Only cross-reference resolution rewrites ``text`` in place.
    """

    kind: CodeKind
    text: str

    @classmethod
    def valid(cls, text: str) -> "Code":
        return cls(CodeKind.VALID, text)

    @classmethod
    def expired(cls, text: str) -> "Code":
        return cls(CodeKind.EXPIRED, text)

    def is_valid(self) -> bool:
        return self.kind is CodeKind.VALID

    def is_expired(self) -> bool:
        return self.kind is CodeKind.EXPIRED

    def copy(self) -> "Code":
        return Code(self.kind, self.text)

    def __str__(self):
        return self.text


@dataclass
class ShiftCodeRecord:
    """One row of a code table."""

    source: str
    issue_date: IssueDate
    rewards: str
    platform_codes: Dict[Platform, Code] = field(default_factory=dict)

    def code_for(self, platform: Platform) -> Code:
        return self.platform_codes[platform]

    def codes(self) -> List[Code]:
        return [self.platform_codes[p] for p in PLATFORM_ORDER]

    def valid_codes(self) -> List[Code]:
        return [code for code in self.codes() if code.is_valid()]
