"""Command-line entry points.

Each subcommand is a standalone run meant for cron or a shell pipeline:

    wekan-sync check-merged-prs
    CARDS_JSON=$(wekan-sync pending-cards) PER_CARD_TOKENS=1000 wekan-sync accumulate-tokens
    wekan-sync has-pending-cards && echo "work to do"
    CARD_ID=... BOARD_ID=... wekan-sync card-info

Exit codes: 0 on success (including "nothing to do"), 1 when
``has-pending-cards`` finds nothing, 2 on configuration or authentication
failure and on any unexpected error. Skipped cards never change the exit
code. Progress goes to stderr; JSON results are the only stdout output.
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable

from .config import ConfigurationError, ConfigurationLoader
from .github.oracle import GhCliStateOracle, OracleAuthenticationError
from .reconcile.aggregator import PullRequestStateAggregator
from .reconcile.merge_check import MergeCheckRunner
from .reconcile.queries import card_info, pending_cards
from .reconcile.token_accumulation import TokenAccumulationRunner
from .wekan.client import WekanClient
from .wekan.exceptions import WekanAuthenticationError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOTHING_PENDING = 1
EXIT_ERROR = 2

SEPARATOR = "=" * 42


async def check_merged_prs(loader: ConfigurationLoader, args: argparse.Namespace) -> int:
    """Move cards whose pull requests are all merged."""
    wekan_settings = loader.wekan_settings()
    settings = loader.merge_check_settings()

    oracle = GhCliStateOracle(settings.gh_binary, timeout=settings.oracle_timeout)
    await oracle.verify_auth()

    logger.info(SEPARATOR)
    logger.info("Checking merged pull requests")
    if wekan_settings.uses_login:
        logger.info(f"User: {wekan_settings.username} (password login)")
    else:
        logger.info("User: API token")
    logger.info(f"User ID: {wekan_settings.user_id}")
    logger.info(SEPARATOR)

    async with WekanClient.from_settings(wekan_settings) as client:
        runner = MergeCheckRunner(
            client,
            PullRequestStateAggregator(oracle),
            wekan_settings.user_id,
            source_list_keyword=settings.source_list_keyword,
            target_list_keywords=settings.target_list_keywords,
            pr_field_name=settings.pr_field_name,
        )
        result = await runner.run()

    logger.info(SEPARATOR)
    logger.info("Merge check finished")
    for line in result.summary_lines():
        logger.info(f"  {line}")
    logger.info(SEPARATOR)
    return EXIT_OK


async def accumulate_tokens(loader: ConfigurationLoader, args: argparse.Namespace) -> int:
    """Add PER_CARD_TOKENS to the token field of each card in CARDS_JSON."""
    wekan_settings = loader.wekan_settings()
    settings = loader.token_run_settings()

    if settings.per_card_tokens <= 0:
        logger.info("No tokens to accumulate")
        return EXIT_OK
    if not settings.cards:
        logger.info(
            f"No cards to accumulate tokens on ({settings.rejected_cards} malformed entries skipped)"
        )
        return EXIT_OK

    async with WekanClient.from_settings(wekan_settings) as client:
        runner = TokenAccumulationRunner(client, field_name=settings.field_name)
        result = await runner.run(
            settings.cards,
            settings.per_card_tokens,
            rejected_cards=settings.rejected_cards,
        )

    for line in result.summary_lines():
        logger.info(line)
    return EXIT_OK


async def list_pending_cards(loader: ConfigurationLoader, args: argparse.Namespace) -> int:
    """Print the pending cards of the acting user as JSON."""
    wekan_settings = loader.wekan_settings()

    async with WekanClient.from_settings(wekan_settings) as client:
        cards = await pending_cards(
            client,
            wekan_settings.user_id,
            board_name=args.board,
            include_comments=args.with_comments,
        )

    if args.with_comments:
        payload = [
            {
                **card.to_metadata(),
                "comments": [
                    {"id": c.id, "author": c.author, "text": c.text}
                    for c in card.comments or []
                ],
            }
            for card in cards
        ]
    else:
        payload = [card.to_metadata() for card in cards]

    print(json.dumps(payload, ensure_ascii=False))
    return EXIT_OK


async def has_pending_cards(loader: ConfigurationLoader, args: argparse.Namespace) -> int:
    """Exit 0 when the acting user has pending cards, 1 otherwise."""
    wekan_settings = loader.wekan_settings()

    async with WekanClient.from_settings(wekan_settings) as client:
        cards = await pending_cards(client, wekan_settings.user_id, board_name=args.board)

    if cards:
        logger.info(f"{len(cards)} pending card(s) found")
        return EXIT_OK

    logger.info("No pending cards found")
    return EXIT_NOTHING_PENDING


async def show_card_info(loader: ConfigurationLoader, args: argparse.Namespace) -> int:
    """Print uuid, own comment count and current list of one card as JSON."""
    wekan_settings = loader.wekan_settings()
    board_id, card_id = loader.card_query()

    async with WekanClient.from_settings(wekan_settings) as client:
        info = await card_info(client, board_id, card_id, wekan_settings.user_id)

    print(json.dumps(info.to_dict(), ensure_ascii=False))
    return EXIT_OK


Command = Callable[[ConfigurationLoader, argparse.Namespace], Awaitable[int]]

COMMANDS: dict[str, tuple[Command, str]] = {
    "check-merged-prs": (check_merged_prs, "Move cards whose PRs are all merged"),
    "accumulate-tokens": (accumulate_tokens, "Accumulate consumed tokens on cards"),
    "pending-cards": (list_pending_cards, "Print pending cards as JSON"),
    "has-pending-cards": (has_pending_cards, "Exit 0 if there are pending cards"),
    "card-info": (show_card_info, "Print derived metadata of one card as JSON"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wekan-sync",
        description="Keep Wekan cards in sync with GitHub pull requests and token usage",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-level", default="INFO", help="Log level")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (_, help_text) in COMMANDS.items():
        subparser = subparsers.add_parser(name, help=help_text)
        if name in ("pending-cards", "has-pending-cards"):
            subparser.add_argument("--board", help="Only boards whose title contains this")
        if name == "pending-cards":
            subparser.add_argument(
                "--with-comments",
                action="store_true",
                help="Include comments with author names",
            )

    return parser


async def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command and return its exit code."""
    args = build_parser().parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    command, _ = COMMANDS[args.command]
    try:
        loader = ConfigurationLoader(config_path=args.config)
        return await command(loader, args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR
    except (WekanAuthenticationError, OracleAuthenticationError) as e:
        logger.error(f"Authentication failed: {e}")
        return EXIT_ERROR
    except Exception as e:
        logger.exception(f"{args.command} failed: {e}")
        return EXIT_ERROR


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
