"""
Pytest configuration and fixtures for the shiftkeys test suite.
"""

import pytest
from bs4 import BeautifulSoup

from shiftkeys.config import Config
from shiftkeys.session import Credentials


@pytest.fixture
def config(monkeypatch):
    """Config with every sleep disabled and no environment leaking in."""
    for key in ("SHIFT_EMAIL", "SHIFT_PASSWORD", "ALLOWED_PLATFORMS", "VERBOSE"):
        monkeypatch.delenv(key, raising=False)

    cfg = Config(env_file=None)
    cfg.poll_interval = 0
    cfg.rate_limit_backoff = 0
    cfg.delay_seconds = 0
    cfg.max_retries = 0
    return cfg


@pytest.fixture
def credentials():
    return Credentials(email="vault@hunter.com", password="claptrap")


@pytest.fixture
def row_factory():
    """Build one ``<tr>`` from cell contents (raw HTML allowed)."""

    def _create_row(*cells):
        return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"

    return _create_row


@pytest.fixture
def table_factory():
    """Wrap rows in a page with a header row, as orcz.com renders it."""

    def _create_table(*rows, header_cells=5):
        header = "<tr>" + "<th>Header</th>" * header_cells + "</tr>"
        return (
            "<html><body><table><tbody>"
            + header
            + "".join(rows)
            + "</tbody></table></body></html>"
        )

    return _create_table


@pytest.fixture
def soup_factory():
    def _create_soup(html):
        return BeautifulSoup(html, "html.parser")

    return _create_soup


@pytest.fixture
def page_factory():
    """Build a SHiFT page carrying a csrf token and optional body markup."""

    def _create_page(body="", csrf_token="page-token"):
        return (
            "<html><head>"
            f'<meta name="csrf-token" content="{csrf_token}">'
            "</head><body>"
            f"{body}"
            "</body></html>"
        )

    return _create_page


@pytest.fixture
def account_html(page_factory):
    return page_factory(
        '<div id="current_email">vault@hunter.com</div>'
        '<div id="current_display_name">Lilith</div>'
        '<div id="current_first_name">Lilith</div>',
        csrf_token="account-token",
    )


@pytest.fixture
def reward_form_factory():
    """Build a reward form; pass ``omit`` to leave a field out."""

    def _create_form(code="ABCDE-FGHIJ-KLMNO-PQRST-UVWXY", service="steam",
                     title="willow2", omit=()):
        fields = {
            "utf8": "✓",
            "authenticity_token": "form-token",
            "archway_code_redemption[code]": code,
            "archway_code_redemption[check]": f"{code}{service}{title}",
            "archway_code_redemption[service]": service,
            "archway_code_redemption[title]": title,
        }
        inputs = "".join(
            f'<input type="hidden" name="{name}" value="{value}">'
            for name, value in fields.items()
            if name not in omit
        )
        if "commit" not in omit:
            inputs += '<input type="submit" name="commit" value="Redeem for Steam">'
        return f'<form action="/code_redemptions" method="post">{inputs}</form>'

    return _create_form
