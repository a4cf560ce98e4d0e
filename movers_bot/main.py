"""
Benzinga Pro Movers Scraper

Logs in to pro.benzinga.com, opens the Movers tool, filters it to pre-market
gainers (change > 10%, volume >= 100K, price $1-$20) and writes the matching
rows to benzinga_movers.json.

Usage:
    movers-bot                  # One scrape, then exit
    movers-bot --headless       # Same, without a visible browser
    movers-bot --schedule       # Scrape every trading day at SCHEDULE_TIME ET
    movers-bot --output out.json --no-screenshots

Exit codes:
    0  Success (including an empty result)
    1  Configuration error (credentials missing)
    2  Login failed
    3  Any other fatal error
"""

import argparse
import logging
import sys
import traceback

from movers_bot.config import (
    LOG_LEVEL, OUTPUT_FILE, SCHEDULE_TIME, SCREENSHOTS_ENABLED,
    HEADLESS_MODE, load_credentials
)
from movers_bot.errors import AuthenticationError, ConfigError, MoversBotError
from movers_bot.scheduler import run_scheduler
from movers_bot.utils import setup_logging
from movers_bot.workflow import run_scrape

EXIT_OK = 0
EXIT_CONFIG = 1
EXIT_AUTH = 2
EXIT_FATAL = 3

logger = logging.getLogger('movers_bot')


def run_once(args, driver_factory=None) -> int:
    """
    One scrape. Credentials are checked before any browser is started.

    Returns:
        Process exit code
    """
    try:
        credentials = load_credentials()
    except ConfigError as e:
        logger.error(f"Error: {e}")
        return EXIT_CONFIG

    try:
        run_scrape(
            credentials,
            output_path=args.output,
            headless=args.headless,
            screenshots=args.screenshots,
            driver_factory=driver_factory,
        )
    except AuthenticationError as e:
        logger.critical(f"Login failed: {e}")
        return EXIT_AUTH
    except MoversBotError as e:
        logger.critical(f"Fatal error: {e}")
        return EXIT_FATAL
    except Exception as e:
        logger.critical(f"Fatal error: {e}")
        logger.critical(traceback.format_exc())
        return EXIT_FATAL

    return EXIT_OK


def scheduler_mode(args, driver_factory=None) -> int:
    """Check credentials once, then hand off to the scheduler loop."""
    try:
        load_credentials()
    except ConfigError as e:
        logger.error(f"Error: {e}")
        return EXIT_CONFIG

    run_scheduler(scheduled_job(args, driver_factory), args.schedule_time)
    return EXIT_OK


def scheduled_job(args, driver_factory=None):
    """Wrap run_once so a failed scrape raises inside the scheduler."""
    def _job():
        exit_code = run_once(args, driver_factory)
        if exit_code != EXIT_OK:
            raise MoversBotError(f"Scheduled scrape exited with code {exit_code}")
    return _job


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Benzinga Pro Movers scraper',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    movers-bot                 Scrape once with a visible browser
    movers-bot --headless      Scrape once headless
    movers-bot --schedule      Scrape every trading day (pre-market)
        """
    )

    headless = parser.add_mutually_exclusive_group()
    headless.add_argument('--headless', dest='headless', action='store_true', default=HEADLESS_MODE,
                          help='Run the browser without a window')
    headless.add_argument('--headed', dest='headless', action='store_false',
                          help='Show the browser window (default unless MOVERS_HEADLESS is set)')

    parser.add_argument('--output', default=OUTPUT_FILE,
                        help=f'JSON output path (default: {OUTPUT_FILE})')
    parser.add_argument('--no-screenshots', dest='screenshots', action='store_false',
                        default=SCREENSHOTS_ENABLED,
                        help='Do not write diagnostic screenshots')
    parser.add_argument('--schedule', action='store_true',
                        help='Run every trading day at --schedule-time ET instead of once')
    parser.add_argument('--schedule-time', default=SCHEDULE_TIME,
                        help=f'Daily run time in Eastern Time, HH:MM (default: {SCHEDULE_TIME})')
    parser.add_argument('--log-level', default=LOG_LEVEL.upper(),
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    return parser


def main(argv=None, driver_factory=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)

    try:
        if args.schedule:
            exit_code = scheduler_mode(args, driver_factory)
        else:
            exit_code = run_once(args, driver_factory)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
        exit_code = EXIT_OK

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
