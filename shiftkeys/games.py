"""Supported games and the per-game table quirks."""

from dataclasses import dataclass
from enum import Enum

from .dates import DateDialect


@dataclass(frozen=True)
class GameInfo:
    abbreviation: str
    display_name: str
    page_url: str
    # One code serves every platform; the table has a single code column
    platform_unified: bool = False
    date_dialect: DateDialect = DateDialect.STANDARD


class Game(Enum):
    BORDERLANDS = GameInfo(
        "bl", "Borderlands", "http://orcz.com/Borderlands:_Golden_Key",
    )
    BORDERLANDS_2 = GameInfo(
        "bl2", "Borderlands 2", "http://orcz.com/borderlands_2:_Golden_Key",
    )
    BORDERLANDS_PRE_SEQUEL = GameInfo(
        "blps", "Borderlands: The Pre-Sequel", "http://orcz.com/Borderlands_Pre-Sequel:_Shift_Codes",
    )
    BORDERLANDS_3 = GameInfo(
        "bl3", "Borderlands 3", "http://orcz.com/Borderlands_3:_Shift_Codes",
        platform_unified=True, date_dialect=DateDialect.ALTERNATE,
    )

    @property
    def info(self) -> GameInfo:
        return self.value

    @property
    def page_url(self) -> str:
        return self.value.page_url

    @property
    def platform_unified(self) -> bool:
        return self.value.platform_unified

    @property
    def date_dialect(self) -> DateDialect:
        return self.value.date_dialect

    @property
    def display_name(self) -> str:
        return self.value.display_name

    @classmethod
    def from_abbreviation(cls, abbreviation: str) -> "Game":
        wanted = abbreviation.strip().lower()
        for game in cls:
            if game.value.abbreviation == wanted:
                return game
        valid = ", ".join(game.value.abbreviation for game in cls)
        raise ValueError(f"Invalid game '{abbreviation}'. Supported abbreviations: {valid}")
