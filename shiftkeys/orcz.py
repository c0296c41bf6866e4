"""Fetching code tables from orcz.com."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional

import requests
from bs4 import BeautifulSoup

from .codes import ShiftCodeRecord
from .config import Config
from .games import Game
from .table import extract_shift_codes

logger = logging.getLogger(__name__)


class OrczClient:
    """Downloads and extracts the code table for each game"""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': config.user_agent})

    def get_shift_codes(self, game: Game) -> List[ShiftCodeRecord]:
        """Fetch one game's page and extract its table"""
        logger.debug(f"Fetching {game.display_name} codes from {game.page_url}")
        resp = self.session.get(game.page_url, timeout=self.config.timeout)
        resp.raise_for_status()

        soup = BeautifulSoup(resp.text, 'html.parser')
        return extract_shift_codes(soup, game)

    def get_all_shift_codes(self, games: Iterable[Game] = tuple(Game)) -> Dict[Game, List[ShiftCodeRecord]]:
        """Fetch several games concurrently; a failing game maps to an empty list"""
        games = list(games)
        all_results = {}
        if not games:
            return all_results

        with ThreadPoolExecutor(max_workers=len(games)) as executor:
            future_to_game = {
                executor.submit(self.get_shift_codes, game): game
                for game in games
            }

            for future in as_completed(future_to_game):
                game = future_to_game[future]
                try:
                    all_results[game] = future.result()
                except Exception as e:
                    logger.error(f"Error fetching {game.display_name} codes: {e}")
                    all_results[game] = []

        return all_results
