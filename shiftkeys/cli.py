"""Interactive command line front end."""

import getpass
import logging
import sys
from typing import List, Optional

from . import __version__
from .client import ShiftClient
from .codes import ShiftCodeRecord
from .config import Config, load_config
from .errors import AuthenticationError
from .games import Game
from .logs import Colors, log_section, setup_logging
from .orcz import OrczClient
from .redeemer import CodeRedeemer, log_result, with_backoff
from .session import Credentials

logger = logging.getLogger(__name__)

USAGE = """shiftkeys - redeem SHiFT codes from orcz.com - Usage:
  python -m shiftkeys            # Interactive redemption
  python -m shiftkeys --verbose  # Enable debug logging
  python -m shiftkeys --help     # Show this help"""

MAX_LOGIN_ATTEMPTS = 3


def input_yn(prompt: str) -> bool:
    while True:
        answer = input(f"{prompt} (Y/N) ").strip().lower()
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        print(f'"{answer}" is not a valid option')


def prompt_credentials(config: Config) -> Credentials:
    email = config.email or input("Email: ").strip()
    password = config.password or getpass.getpass("Password: ")
    return Credentials(email=email.strip(), password=password)


def login_client(config: Config) -> Optional[ShiftClient]:
    """Log in, prompting again after a failed attempt"""
    for attempt in range(1, MAX_LOGIN_ATTEMPTS + 1):
        credentials = prompt_credentials(config)
        client = ShiftClient(credentials, config)
        try:
            account = with_backoff(config, "login", client.login)
        except AuthenticationError as e:
            client.close()
            logger.error(f"[FAIL] Login failed: {e}")
            # Prompt next time instead of reusing bad configured credentials
            config.email = config.password = ""
            continue
        except Exception as e:
            client.close()
            logger.error(f"[FAIL] Login failed ({attempt}/{MAX_LOGIN_ATTEMPTS}): {e}")
            continue

        logger.info(f"{Colors.GREEN}[OK] Logged in as {account.display_name} ({account.email}){Colors.END}")
        return client

    return None


def manual_loop(redeemer: CodeRedeemer):
    while True:
        code = input("Enter a shift code, or type 'exit' to exit: ").strip()
        if code.lower() == "exit":
            print("Exiting...")
            break
        if not code:
            continue
        if redeemer.already_submitted(code):
            logger.info(f"{code} was already submitted this run")
            continue

        for result in redeemer.redeem_code(code):
            log_result(result)


def choose_game() -> Game:
    while True:
        choice = input("What game do you want to target? (bl, bl2, blps, bl3) ").strip().lower()
        try:
            return Game.from_abbreviation(choice)
        except ValueError:
            print(f'"{choice}" is not a valid option')


def redeemable_codes(record: ShiftCodeRecord, config: Config) -> List[str]:
    """Valid code texts for the configured platforms, without duplicates"""
    codes = []
    for platform in config.allowed_platforms:
        code = record.code_for(platform)
        if code.is_valid() and code.text not in codes:
            codes.append(code.text)
    return codes


def auto_loop(redeemer: CodeRedeemer, config: Config):
    game = choose_game()
    logger.info(f"Targeting game: {game.display_name}")

    try:
        records = OrczClient(config).get_shift_codes(game)
    except Exception as e:
        logger.error(f"Failed to get shift codes: {e}")
        return

    for record in records:
        for code in redeemable_codes(record, config):
            if redeemer.already_submitted(code):
                continue

            print(f"Code: {code}")
            print(f"Reward: {record.rewards}")
            print(f"Issue Date: {record.issue_date}")
            print(f"Source: {record.source}")
            if not input_yn("Redeem this code?"):
                print()
                continue

            logger.info("Redeeming code...")
            for result in redeemer.redeem_code(code):
                log_result(result)
            print()


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point"""
    args = sys.argv[1:] if argv is None else argv

    if "--help" in args or "-h" in args:
        print(USAGE)
        return 0

    try:
        config = load_config()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(verbose=config.verbose or "--verbose" in args)
    log_section(f"shiftkeys v{__version__}", show_time=True)

    client = None
    try:
        client = login_client(config)
        if client is None:
            logger.error("Giving up after repeated login failures")
            return 1

        redeemer = CodeRedeemer(client, config)
        try:
            redeemer.refresh_rewards_page()
        except Exception as e:
            logger.error(f"Failed to get rewards page: {e}")
            return 1

        if input_yn("Would you like to use manual mode?"):
            logger.info("Using manual mode...")
            manual_loop(redeemer)
        else:
            logger.info("Using auto mode...")
            auto_loop(redeemer, config)
    except (KeyboardInterrupt, EOFError):
        logger.info("Interrupted by user")
        return 130
    finally:
        if client is not None:
            client.close()

    return 0
