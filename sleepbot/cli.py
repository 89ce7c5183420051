"""Command line entry point for the Fitbit sleep bot.

Commands::

    # One-time interactive authorization; prints the consent URL and serves
    # the OAuth callback until it is interrupted.
    sleepbot setup

    # Run the daemon: refresh the token every few hours and post a sleep
    # summary to Slack once per day.
    sleepbot run

    # Same as ``run`` but skips waiting for the first morning window.
    sleepbot test
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from sleepbot.core.config import AppSettings, get_settings
from sleepbot.core.logging import configure_logging
from sleepbot.dependencies import (
    get_client_credentials,
    get_fitbit_oauth_client,
    get_fitbit_sleep_client,
    get_fitbit_token_service,
    get_slack_client,
)
from sleepbot.services import DailyScheduler, TokenNotFoundError, TokenStoreError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISSING_TOKENS = 1
EXIT_CONFIG_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sleepbot",
        description="Post a daily Fitbit sleep summary to Slack.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=("run", "test", "setup"),
        help="run (default), test (skip the first wait) or setup (authorize).",
    )
    return parser


def _ignore_sigpipe() -> None:
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_IGN)


def _run_setup(settings: AppSettings) -> int:
    import uvicorn

    from sleepbot.main import app

    credentials = get_client_credentials()
    login_url = get_fitbit_oauth_client().build_authorization_url(credentials)
    print(login_url)
    logger.info("Visit the following URL to authorize the application:")
    logger.info(login_url)

    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())
    return EXIT_OK


async def _serve(scheduler: DailyScheduler) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.stop)
        except NotImplementedError:  # pragma: no cover - Windows event loops
            pass
    await scheduler.run()


def _run_daemon(settings: AppSettings, *, test_mode: bool) -> int:
    token_service = get_fitbit_token_service()
    try:
        token_service.load()
    except TokenNotFoundError as exc:
        logger.error("%s", exc)
        return EXIT_MISSING_TOKENS
    except TokenStoreError as exc:
        logger.error("Unable to load saved tokens: %s", exc)
        return EXIT_MISSING_TOKENS

    notifier = get_slack_client()
    if notifier is None or not settings.slack.channel_id:
        logger.error("SLACK_BOT_TOKEN and SLACK_CHANNEL_ID must be set to run the bot")
        return EXIT_CONFIG_ERROR

    scheduler = DailyScheduler(
        token_service=token_service,
        sleep_client=get_fitbit_sleep_client(),
        notifier=notifier,
        channel=settings.slack.channel_id,
        settings=settings.scheduler,
        skip_first_wait=test_mode,
    )
    logger.info("Starting sleep bot%s", " in test mode" if test_mode else "")
    asyncio.run(_serve(scheduler))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _ignore_sigpipe()

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc}",
            file=sys.stderr,
        )
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)

    if args.command == "setup":
        return _run_setup(settings)
    return _run_daemon(settings, test_mode=args.command == "test")


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
