"""
CLI runner for airdrop-checker.

Usage:
    python -m airdrop_checker.run [--config PATH] [-v] COMMAND [OPTIONS]

    # Check which backends are configured
    python -m airdrop_checker.run check-config

    # Submit a suggestion through the full pipeline
    python -m airdrop_checker.run submit --project-name Zeta \\
        --description "A new layer-2 rollup project" \\
        --official-link https://zeta.example

    # Follow airdrop changes live
    python -m airdrop_checker.run watch
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .config import DEFAULT_CONFIG_PATH, AppConfig
from .models import ChangeEvent, SuggestionInput
from .pipeline import SubmissionPipeline
from .realtime import RealtimeClient, SubscriptionError
from .supabase import SupabaseClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("airdrop-checker")


def check_config(config: AppConfig) -> int:
    """Report backend configuration. Returns 1 if anything is missing."""
    print(json.dumps(config.to_dict(), indent=2, ensure_ascii=False))
    ok = config.emailjs.is_configured() and config.supabase.is_configured()
    if not ok:
        config.warn_if_unconfigured()
    return 0 if ok else 1


async def submit(config: AppConfig, args: argparse.Namespace) -> int:
    """Run one suggestion through the pipeline."""
    pipeline = SubmissionPipeline.from_config(config)
    suggestion = SuggestionInput(
        project_name=args.project_name,
        description=args.description,
        official_link=args.official_link,
        email=args.email,
        criteria=args.criteria,
    )
    result = await pipeline.submit(suggestion)
    print(result.user_message)
    if result.notification_error:
        print(result.notification_error.message)
    return 0 if result.persisted else 1


async def list_suggestions(config: AppConfig, unprocessed_only: bool) -> int:
    client = SupabaseClient(config.supabase)
    suggestions = await client.list_suggestions()
    if unprocessed_only:
        suggestions = [s for s in suggestions if not s.processed]

    for s in suggestions:
        flag = "x" if s.processed else " "
        print(f"[{flag}] {s.id}  {s.created_at or '-'}  {s.project_name}  {s.official_link}")
    logger.info(f"{len(suggestions)} suggestion(s)")
    return 0


async def mark_processed(config: AppConfig, suggestion_id: str) -> int:
    client = SupabaseClient(config.supabase)
    record = await client.mark_suggestion_processed(suggestion_id)
    if record is None:
        logger.error(f"Could not mark suggestion {suggestion_id} as processed")
        return 1
    print(f"Suggestion {record.id} marked as processed")
    return 0


async def list_airdrops(config: AppConfig, active_only: bool) -> int:
    client = SupabaseClient(config.supabase)
    if active_only:
        airdrops = await client.list_active_airdrops()
    else:
        airdrops = await client.list_airdrops()

    for a in airdrops:
        print(f"{a.id}  {a.status or '-':<9} {a.name or ''}")
    logger.info(f"{len(airdrops)} airdrop(s)")
    return 0


async def show_counts(config: AppConfig) -> int:
    client = SupabaseClient(config.supabase)
    total = await client.count_airdrops()
    by_status = await client.count_airdrops_by_status()
    print(f"total: {total}")
    for status, count in by_status.items():
        print(f"{status}: {count}")
    return 0


def print_change(change: ChangeEvent) -> None:
    record = change.record or change.old_record
    print(f"{change.type.value:<6} {change.table} {json.dumps(record, ensure_ascii=False)}")


async def watch(config: AppConfig, table: str) -> int:
    """Print change events until interrupted."""
    client = RealtimeClient(config.supabase)
    try:
        async with await client.subscribe(table) as subscription:
            logger.info(f"Watching {table} (Ctrl-C to stop)")
            async for change in subscription:
                print_change(change)
    except SubscriptionError as e:
        logger.error(f"Subscription failed: {e}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="airdrop-checker: suggestion pipeline and admin tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Submit a suggestion
    python -m airdrop_checker.run submit --project-name Zeta \\
        --description "A new layer-2 rollup project" --official-link https://zeta.example

    # Review pending suggestions
    python -m airdrop_checker.run suggestions --unprocessed

    # Use a specific config file
    python -m airdrop_checker.run --config prod.yaml counts
        """,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    commands = parser.add_subparsers(dest="command")

    commands.add_parser("check-config", help="Show configuration and check backends")

    submit_cmd = commands.add_parser("submit", help="Submit a suggestion")
    submit_cmd.add_argument("--project-name", required=True)
    submit_cmd.add_argument("--description", required=True)
    submit_cmd.add_argument("--official-link", required=True)
    submit_cmd.add_argument("--email", default=None)
    submit_cmd.add_argument("--criteria", default=None)

    suggestions_cmd = commands.add_parser("suggestions", help="List suggestions")
    suggestions_cmd.add_argument(
        "--unprocessed",
        action="store_true",
        help="Only show suggestions not yet processed",
    )

    mark_cmd = commands.add_parser("mark-processed", help="Mark a suggestion as processed")
    mark_cmd.add_argument("suggestion_id")

    airdrops_cmd = commands.add_parser("airdrops", help="List airdrops")
    airdrops_cmd.add_argument(
        "--active",
        action="store_true",
        help="Only active and upcoming airdrops",
    )

    commands.add_parser("counts", help="Count airdrops by status")

    watch_cmd = commands.add_parser("watch", help="Print live changes")
    watch_cmd.add_argument("--table", default=None, help="Table to watch (default: airdrops)")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = AppConfig.load(args.config)
    logger.debug(f"Config loaded from {args.config}")

    if args.command == "check-config":
        return check_config(config)

    if args.command == "submit":
        return asyncio.run(submit(config, args))

    if args.command == "suggestions":
        return asyncio.run(list_suggestions(config, args.unprocessed))

    if args.command == "mark-processed":
        return asyncio.run(mark_processed(config, args.suggestion_id))

    if args.command == "airdrops":
        return asyncio.run(list_airdrops(config, args.active))

    if args.command == "counts":
        return asyncio.run(show_counts(config))

    if args.command == "watch":
        table = args.table or config.supabase.airdrops_table
        try:
            return asyncio.run(watch(config, table))
        except KeyboardInterrupt:
            logger.info("Watch stopped by user")
            return 0

    # Default: show help
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
