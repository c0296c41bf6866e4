"""Extraction of typed records from an orcz.com code table.

Table layout, one row per code drop::

    | source | rewards | issue date | expiration | code(s) |

Platform-specific games have three code columns (PC, PlayStation, Xbox);
platform-unified games have one. Expired codes are wrapped in a red span.
Some cells do not hold a code at all but point elsewhere in the table
("Same code as 9/13/2019", "See Key Above"); those are rewritten once the
whole table has been parsed.
"""

import logging
from typing import List, Optional, Set, Tuple

from bs4 import BeautifulSoup, Tag

from .codes import PLATFORM_ORDER, Code, Platform, ShiftCodeRecord
from .dates import DateDialect, parse_issue_date
from .errors import (
    InvalidDate,
    InvalidIssueDate,
    MissingCode,
    MissingExpiration,
    MissingIssueDate,
    MissingRewards,
    MissingSource,
    MissingTable,
    MissingTableBody,
    NoPreviousRecord,
    UnresolvedReference,
)
from .games import Game

logger = logging.getLogger(__name__)

TABLE_SELECTOR = "table"
TABLE_BODY_SELECTOR = "tbody"
ROW_SELECTOR = "tr"
CELL_SELECTOR = "td"
EXPIRED_CODE_SELECTOR = 'span[style="color:red"]'

SAME_CODE_PREFIX = "Same code as "
SEE_KEY_ABOVE_PREFIX = "See Key Above"


def _first_text(element: Tag) -> Optional[str]:
    """First non-blank text node under ``element``, trimmed."""
    return next(element.stripped_strings, None)


def parse_code_cell(cell: Tag) -> Code:
    struck = cell.select_one(EXPIRED_CODE_SELECTOR)
    if struck is not None:
        text = _first_text(struck)
        if text is None:
            raise MissingCode("Expired code cell has no text")
        return Code.expired(text)

    text = _first_text(cell)
    if text is None:
        raise MissingCode("Code cell has no text")
    return Code.valid(text)


def parse_rewards_cell(cell: Tag) -> str:
    fragments = [text for text in cell.strings if text.strip()]
    return " ".join(fragments).rstrip()


def parse_row(row: Tag, game: Game) -> ShiftCodeRecord:
    """Parse one table row; raises a ``RowError`` on the first missing field."""
    cells = iter(row.select(CELL_SELECTOR))

    source_cell = next(cells, None)
    source = _first_text(source_cell) if source_cell is not None else None
    if source is None:
        raise MissingSource("Row has no source")

    rewards_cell = next(cells, None)
    if rewards_cell is None:
        raise MissingRewards("Row has no rewards cell")
    rewards = parse_rewards_cell(rewards_cell)

    date_cell = next(cells, None)
    date_text = _first_text(date_cell) if date_cell is not None else None
    if date_text is None:
        raise MissingIssueDate("Row has no issue date", details={"source": source})
    if game.platform_unified:
        # Unified tables write an unknown day as "??"
        date_text = date_text.replace("??", "1")
    try:
        issue_date = parse_issue_date(date_text, game.date_dialect)
    except InvalidDate as e:
        raise InvalidIssueDate(f"Bad issue date {date_text!r}", details={"source": source}, cause=e) from e

    if next(cells, None) is None:
        raise MissingExpiration("Row has no expiration cell", details={"source": source})

    if game.platform_unified:
        code_cell = next(cells, None)
        if code_cell is None:
            raise MissingCode("Row has no code cell", details={"source": source})
        code = parse_code_cell(code_cell)
        platform_codes = {platform: code.copy() for platform in PLATFORM_ORDER}
    else:
        platform_codes = {}
        for platform in PLATFORM_ORDER:
            code_cell = next(cells, None)
            if code_cell is None:
                raise MissingCode(
                    f"Row has no {platform.value} code cell",
                    details={"source": source, "platform": platform.value},
                )
            platform_codes[platform] = parse_code_cell(code_cell)

    return ShiftCodeRecord(
        source=source,
        issue_date=issue_date,
        rewards=rewards,
        platform_codes=platform_codes,
    )


def _is_placeholder(text: str) -> bool:
    return text.startswith(SAME_CODE_PREFIX) or text.startswith(SEE_KEY_ABOVE_PREFIX)


def resolve_cross_references(records: List[ShiftCodeRecord],
                             dialect: DateDialect = DateDialect.STANDARD) -> None:
    """Rewrite placeholder code text in place, front to back, slot by slot."""
    for index in range(len(records)):
        for platform in PLATFORM_ORDER:
            _resolve_slot(records, index, platform, dialect, set())


def _resolve_slot(records: List[ShiftCodeRecord], index: int, platform: Platform,
                  dialect: DateDialect, visiting: Set[Tuple[int, Platform]]) -> None:
    code = records[index].platform_codes[platform]
    text = code.text
    if not _is_placeholder(text):
        return

    key = (index, platform)
    if key in visiting:
        raise UnresolvedReference(
            f"Circular reference {text!r}",
            details={"row": index, "platform": platform.value},
        )
    visiting.add(key)

    if text.startswith(SAME_CODE_PREFIX):
        date_text = text[len(SAME_CODE_PREFIX):]
        try:
            lookup_date = parse_issue_date(date_text, dialect)
        except InvalidDate as e:
            raise UnresolvedReference(
                f"Bad date in {text!r}",
                details={"row": index, "platform": platform.value},
                cause=e,
            ) from e

        # Forward references are allowed; the whole table is searched
        target = next(
            (i for i, record in enumerate(records) if i != index and record.issue_date == lookup_date),
            None,
        )
        if target is None:
            raise UnresolvedReference(
                f"No row issued on {lookup_date} for {text!r}",
                details={"row": index, "platform": platform.value},
            )

        _resolve_slot(records, target, platform, dialect, visiting)
        code.text = records[target].platform_codes[platform].text
        logger.debug(f"Row {index} {platform.value}: resolved '{text}' to row {target}")

    else:
        if index == 0:
            raise NoPreviousRecord(
                "'See Key Above' on the first row",
                details={"platform": platform.value},
            )
        _resolve_slot(records, index - 1, platform, dialect, visiting)
        code.text = records[index - 1].platform_codes[platform].text
        logger.debug(f"Row {index} {platform.value}: resolved '{text}' to previous row")


def extract_shift_codes(soup: BeautifulSoup, game: Game) -> List[ShiftCodeRecord]:
    """Extract every record of the first table in ``soup``.

    Any malformed row aborts the extraction; no partial list is returned.
    """
    table = soup.select_one(TABLE_SELECTOR)
    if table is None:
        raise MissingTable("Page has no table", details={"game": game.display_name})

    body = table.select_one(TABLE_BODY_SELECTOR)
    if body is None:
        raise MissingTableBody("Table has no body", details={"game": game.display_name})

    rows = body.select(ROW_SELECTOR)[1:]  # skip header row
    records = [parse_row(row, game) for row in rows]

    resolve_cross_references(records, game.date_dialect)
    logger.debug(f"Extracted {len(records)} rows for {game.display_name}")
    return records
