"""
Tests for code table extraction.
"""

from datetime import date

import pytest

from shiftkeys.codes import Code, CodeKind, Platform, ShiftCodeRecord
from shiftkeys.dates import UNKNOWN, DateDialect
from shiftkeys.errors import (
    InvalidIssueDate,
    MissingCode,
    MissingExpiration,
    MissingIssueDate,
    MissingRewards,
    MissingSource,
    MissingTable,
    MissingTableBody,
    NoPreviousRecord,
    RowError,
    UnresolvedReference,
)
from shiftkeys.games import Game
from shiftkeys.table import (
    SAME_CODE_PREFIX,
    SEE_KEY_ABOVE_PREFIX,
    extract_shift_codes,
    parse_code_cell,
    parse_row,
    resolve_cross_references,
)

PC_CODE = "KBKBT-BZ3CT-H5CBB-JJ33B-BHXFZ"
PS_CODE = "5TKJ3-TFJ95-9FBWJ-3JTTT-WWCC6"
XBOX_CODE = "WTW3B-FHTJ9-RF5TT-BTJBB-K9JBR"
RED = '<span style="color:red">{}</span>'


def record(issue_date, *texts, kind=CodeKind.VALID):
    """Record whose three platform slots hold ``texts``."""
    return ShiftCodeRecord(
        source="Twitter",
        issue_date=issue_date,
        rewards="5 Golden Keys",
        platform_codes={
            platform: Code(kind, text)
            for platform, text in zip((Platform.PC, Platform.PLAYSTATION, Platform.XBOX), texts)
        },
    )


def cell(soup_factory, inner):
    return soup_factory(f"<table><tr><td>{inner}</td></tr></table>").select_one("td")


def row(soup_factory, row_html):
    return soup_factory(f"<table>{row_html}</table>").select_one("tr")


class TestParseCodeCell:
    """Tests for parse_code_cell."""

    def test_valid_code(self, soup_factory):
        code = parse_code_cell(cell(soup_factory, f"  {PC_CODE}  "))
        assert code == Code.valid(PC_CODE)
        assert code.is_valid()

    def test_red_span_marks_expired(self, soup_factory):
        code = parse_code_cell(cell(soup_factory, RED.format(PC_CODE)))
        assert code == Code.expired(PC_CODE)
        assert code.is_expired()

    def test_expired_text_comes_from_span(self, soup_factory):
        """Should read the struck-out code, not text preceding the span."""
        code = parse_code_cell(cell(soup_factory, "<br>" + RED.format(f"<b>{PC_CODE}</b>")))
        assert code.text == PC_CODE

    def test_first_non_blank_text(self, soup_factory):
        code = parse_code_cell(cell(soup_factory, f"\n <p> </p><p>{PC_CODE}</p><p>extra</p>"))
        assert code.text == PC_CODE

    def test_other_colors_are_valid(self, soup_factory):
        code = parse_code_cell(cell(soup_factory, f'<span style="color:green">{PC_CODE}</span>'))
        assert code.is_valid()

    def test_empty_cell(self, soup_factory):
        with pytest.raises(MissingCode):
            parse_code_cell(cell(soup_factory, "   "))

    def test_empty_expired_span(self, soup_factory):
        with pytest.raises(MissingCode):
            parse_code_cell(cell(soup_factory, RED.format(" ")))


class TestParseRow:
    """Tests for parse_row."""

    def test_platform_specific_row(self, soup_factory, row_factory):
        html = row_factory("Twitter", "5 Golden Keys", "January 5, 2019", "Unknown",
                           PC_CODE, RED.format(PS_CODE), XBOX_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS_2)

        assert result.source == "Twitter"
        assert result.rewards == "5 Golden Keys"
        assert result.issue_date == date(2019, 1, 5)
        assert result.code_for(Platform.PC) == Code.valid(PC_CODE)
        assert result.code_for(Platform.PLAYSTATION) == Code.expired(PS_CODE)
        assert result.code_for(Platform.XBOX) == Code.valid(XBOX_CODE)
        assert [c.text for c in result.valid_codes()] == [PC_CODE, XBOX_CODE]

    def test_platform_order(self, soup_factory, row_factory):
        html = row_factory("Twitter", "1 Golden Key", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS)
        assert [c.text for c in result.codes()] == [PC_CODE, PS_CODE, XBOX_CODE]
        assert list(result.platform_codes) == [Platform.PC, Platform.PLAYSTATION, Platform.XBOX]

    def test_unknown_issue_date(self, soup_factory, row_factory):
        html = row_factory("Facebook", "Skin", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS_PRE_SEQUEL)
        assert result.issue_date is UNKNOWN

    def test_unified_row_copies_code(self, soup_factory, row_factory):
        html = row_factory("Twitter", "3 Golden Keys", "September 13, 2019", "Oct 1", PC_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS_3)

        assert [c.text for c in result.codes()] == [PC_CODE] * 3
        # Independent copies: rewriting one slot leaves the others alone
        result.code_for(Platform.PC).text = "changed"
        assert result.code_for(Platform.XBOX).text == PC_CODE

    def test_unified_row_unknown_day(self, soup_factory, row_factory):
        html = row_factory("Twitter", "Skin", "September ??, 2019", "Unknown", PC_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS_3)
        assert result.issue_date == date(2019, 9, 1)

    def test_unified_row_alternate_dialect(self, soup_factory, row_factory):
        html = row_factory("Twitter", "Skin", "2019.09.13", "Unknown", PC_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS_3)
        assert result.issue_date == date(2019, 9, 13)

    def test_rewards_fragments_joined(self, soup_factory, row_factory):
        html = row_factory("Twitter", "3 Golden Keys<br>\n<b>Bonus</b> skin  \n", "Unknown", "Unknown",
                           PC_CODE, PS_CODE, XBOX_CODE)
        result = parse_row(row(soup_factory, html), Game.BORDERLANDS_2)
        assert result.rewards == "3 Golden Keys Bonus  skin"

    def test_empty_rewards_allowed(self, soup_factory, row_factory):
        html = row_factory("Twitter", "", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE)
        assert parse_row(row(soup_factory, html), Game.BORDERLANDS_2).rewards == ""

    def test_missing_source(self, soup_factory):
        with pytest.raises(MissingSource):
            parse_row(row(soup_factory, "<tr></tr>"), Game.BORDERLANDS_2)

    def test_blank_source(self, soup_factory, row_factory):
        html = row_factory(" ", "Keys", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE)
        with pytest.raises(MissingSource):
            parse_row(row(soup_factory, html), Game.BORDERLANDS_2)

    def test_missing_rewards(self, soup_factory, row_factory):
        with pytest.raises(MissingRewards):
            parse_row(row(soup_factory, row_factory("Twitter")), Game.BORDERLANDS_2)

    def test_missing_issue_date(self, soup_factory, row_factory):
        with pytest.raises(MissingIssueDate):
            parse_row(row(soup_factory, row_factory("Twitter", "Keys", "")), Game.BORDERLANDS_2)

    def test_invalid_issue_date(self, soup_factory, row_factory):
        html = row_factory("Twitter", "Keys", "Someday", "Unknown", PC_CODE, PS_CODE, XBOX_CODE)
        with pytest.raises(InvalidIssueDate) as exc_info:
            parse_row(row(soup_factory, html), Game.BORDERLANDS_2)
        assert exc_info.value.cause is not None

    def test_missing_expiration(self, soup_factory, row_factory):
        with pytest.raises(MissingExpiration):
            parse_row(row(soup_factory, row_factory("Twitter", "Keys", "Unknown")), Game.BORDERLANDS_2)

    def test_missing_platform_code(self, soup_factory, row_factory):
        html = row_factory("Twitter", "Keys", "Unknown", "Unknown", PC_CODE, PS_CODE)
        with pytest.raises(MissingCode) as exc_info:
            parse_row(row(soup_factory, html), Game.BORDERLANDS_2)
        assert exc_info.value.details["platform"] == "xbox"

    def test_missing_unified_code(self, soup_factory, row_factory):
        html = row_factory("Twitter", "Keys", "Unknown", "Unknown")
        with pytest.raises(MissingCode):
            parse_row(row(soup_factory, html), Game.BORDERLANDS_3)


class TestResolveCrossReferences:
    """Tests for resolve_cross_references."""

    def test_same_code_as_earlier_row(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), "Same code as 9/13/2019", PS_CODE, "Same code as 9/13/2019"),
        ]
        resolve_cross_references(records)
        assert [c.text for c in records[1].codes()] == [PC_CODE, PS_CODE, XBOX_CODE]

    def test_same_code_as_later_row(self):
        """Should search the whole table, not only earlier rows."""
        records = [
            record(date(2019, 9, 20), "Same code as 9/13/2019", PS_CODE, XBOX_CODE),
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
        ]
        resolve_cross_references(records)
        assert records[0].code_for(Platform.PC).text == PC_CODE

    def test_same_code_keeps_tag(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), "Same code as 9/13/2019", PS_CODE, XBOX_CODE, kind=CodeKind.EXPIRED),
        ]
        resolve_cross_references(records)
        assert records[1].code_for(Platform.PC) == Code.expired(PC_CODE)

    def test_chained_references(self):
        records = [
            record(date(2019, 9, 27), "Same code as 9/20/2019", PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), "Same code as 9/13/2019", PS_CODE, XBOX_CODE),
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
        ]
        resolve_cross_references(records)
        assert all(r.code_for(Platform.PC).text == PC_CODE for r in records)

    def test_circular_reference(self):
        records = [
            record(date(2019, 9, 13), "Same code as 9/20/2019", PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), "Same code as 9/13/2019", PS_CODE, XBOX_CODE),
        ]
        with pytest.raises(UnresolvedReference):
            resolve_cross_references(records)

    def test_self_reference_is_not_a_match(self):
        records = [record(date(2019, 9, 13), "Same code as 9/13/2019", PS_CODE, XBOX_CODE)]
        with pytest.raises(UnresolvedReference):
            resolve_cross_references(records)

    def test_no_matching_date(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), "Same code as 1/1/2000", PS_CODE, XBOX_CODE),
        ]
        with pytest.raises(UnresolvedReference):
            resolve_cross_references(records)

    def test_bad_reference_date(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), "Same code as last week", PS_CODE, XBOX_CODE),
        ]
        with pytest.raises(UnresolvedReference) as exc_info:
            resolve_cross_references(records)
        assert exc_info.value.cause is not None

    def test_see_key_above(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), SEE_KEY_ABOVE_PREFIX, SEE_KEY_ABOVE_PREFIX, XBOX_CODE),
        ]
        resolve_cross_references(records)
        assert [c.text for c in records[1].codes()] == [PC_CODE, PS_CODE, XBOX_CODE]

    def test_see_key_above_chain(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), SEE_KEY_ABOVE_PREFIX, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 27), SEE_KEY_ABOVE_PREFIX, PS_CODE, XBOX_CODE),
        ]
        resolve_cross_references(records)
        assert records[2].code_for(Platform.PC).text == PC_CODE

    def test_see_key_above_on_first_row(self):
        records = [record(date(2019, 9, 13), SEE_KEY_ABOVE_PREFIX, PS_CODE, XBOX_CODE)]
        with pytest.raises(NoPreviousRecord):
            resolve_cross_references(records)

    def test_alternate_dialect_reference(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PC_CODE, PC_CODE),
            record(date(2019, 9, 20), *["Same code as 2019.09.13"] * 3),
        ]
        resolve_cross_references(records, DateDialect.ALTERNATE)
        assert [c.text for c in records[1].codes()] == [PC_CODE] * 3

    def test_no_placeholders_left(self):
        records = [
            record(date(2019, 9, 13), PC_CODE, PS_CODE, XBOX_CODE),
            record(date(2019, 9, 20), SEE_KEY_ABOVE_PREFIX, "Same code as 9/13/2019", SEE_KEY_ABOVE_PREFIX),
            record(UNKNOWN, "Same code as 9/20/2019", SEE_KEY_ABOVE_PREFIX, XBOX_CODE),
        ]
        resolve_cross_references(records)
        for r in records:
            for code in r.codes():
                assert not code.text.startswith(SAME_CODE_PREFIX)
                assert not code.text.startswith(SEE_KEY_ABOVE_PREFIX)


class TestExtractShiftCodes:
    """Tests for extract_shift_codes."""

    def test_extracts_all_rows(self, soup_factory, table_factory, row_factory):
        html = table_factory(
            row_factory("Twitter", "5 Golden Keys", "September 13, 2019", "Unknown",
                        PC_CODE, RED.format(PS_CODE), XBOX_CODE),
            row_factory("Facebook", "1 Golden Key", "September 20, 2019", "Unknown",
                        "Same code as 9/13/2019", PS_CODE, SEE_KEY_ABOVE_PREFIX),
        )
        records = extract_shift_codes(soup_factory(html), Game.BORDERLANDS_2)

        assert len(records) == 2
        assert records[0].source == "Twitter"
        assert records[1].code_for(Platform.PC) == Code.valid(PC_CODE)
        assert records[1].code_for(Platform.XBOX) == Code.valid(XBOX_CODE)

    def test_skips_header_row(self, soup_factory, table_factory):
        records = extract_shift_codes(soup_factory(table_factory()), Game.BORDERLANDS_2)
        assert records == []

    def test_unified_game(self, soup_factory, table_factory, row_factory):
        html = table_factory(
            row_factory("Twitter", "Skin", "September ??, 2019", "Unknown", PC_CODE),
            row_factory("Twitter", "Keys", "2019.09.20", "Unknown", "Same code as 9/1/2019"),
        )
        records = extract_shift_codes(soup_factory(html), Game.BORDERLANDS_3)
        assert [c.text for c in records[1].codes()] == [PC_CODE] * 3

    def test_only_first_table(self, soup_factory, table_factory, row_factory):
        first = table_factory(row_factory("Twitter", "Keys", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE))
        second = "<table><tbody><tr></tr><tr><td>broken</td></tr></tbody></table>"
        records = extract_shift_codes(soup_factory(first + second), Game.BORDERLANDS_2)
        assert len(records) == 1

    def test_row_without_expiration_aborts(self, soup_factory, table_factory, row_factory):
        """A malformed row fails the whole extraction instead of being skipped."""
        html = table_factory(
            row_factory("Twitter", "Keys", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE),
            row_factory("Twitter", "Keys", "Unknown"),
            row_factory("Twitter", "Keys", "Unknown", "Unknown", PC_CODE, PS_CODE, XBOX_CODE),
        )
        with pytest.raises(MissingExpiration) as exc_info:
            extract_shift_codes(soup_factory(html), Game.BORDERLANDS_2)
        assert isinstance(exc_info.value, RowError)

    def test_missing_table(self, soup_factory):
        with pytest.raises(MissingTable):
            extract_shift_codes(soup_factory("<html><body><p>gone</p></body></html>"), Game.BORDERLANDS)

    def test_missing_table_body(self, soup_factory):
        with pytest.raises(MissingTableBody):
            extract_shift_codes(soup_factory("<table><tr><td>x</td></tr></table>"), Game.BORDERLANDS)
