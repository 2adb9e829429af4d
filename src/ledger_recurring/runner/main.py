"""
CLI main entry point.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from ..config import Config, create_default_config, load_config
from ..errors import InvalidArgumentError, RecurringError
from ..schemas.dates import parse_iso_date_strict
from ..services import load_cached_recurring, refresh_recurring_cache, run_recurring
from ..state_store import LedgerStore
from .output import (
    failure_envelope,
    render_error_text,
    render_recurring_text,
    render_refresh_text,
    render_status_text,
    success_envelope,
    to_json,
)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging (stderr, so stdout stays machine-readable)."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ledger-recurring",
        description="Detect recurring transaction series in a local ledger",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON envelopes instead of text (overrides output.format)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # recurring command
    recurring_parser = subparsers.add_parser(
        "recurring", help="Detect recurring payment series"
    )
    recurring_parser.add_argument(
        "--from",
        dest="from_value",
        type=str,
        default=None,
        help="Inclusive lower bound (YYYY-MM-DD)",
    )
    recurring_parser.add_argument(
        "--to",
        dest="to_value",
        type=str,
        default=None,
        help="Inclusive upper bound (YYYY-MM-DD)",
    )
    recurring_parser.add_argument(
        "--as-of",
        dest="as_of",
        type=str,
        default=None,
        help="Activity boundary when --to is omitted (default: today)",
    )
    recurring_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker threads for group scoring (default: detection.max_workers)",
    )
    recurring_parser.add_argument(
        "--cached",
        action="store_true",
        help="Serve the last refresh from the recurring cache instead of recomputing",
    )

    # refresh command
    refresh_parser = subparsers.add_parser(
        "refresh", help="Recompute the recurring cache over the full ledger"
    )
    refresh_parser.add_argument(
        "--as-of",
        dest="as_of",
        type=str,
        default=None,
        help="Activity boundary (default: today)",
    )

    # status command
    subparsers.add_parser("status", help="Show ledger and cache statistics")

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )

    return parser


def _emit_error(error: RecurringError, as_json: bool) -> int:
    if as_json:
        print(to_json(failure_envelope(error)))
    else:
        print(render_error_text(error))
    return 1


def _parse_as_of(value: str | None, command: str) -> date | None:
    if value is None:
        return None
    return parse_iso_date_strict(value, "as-of", command)


def cmd_recurring(
    config: Config,
    from_value: str | None,
    to_value: str | None,
    as_of: str | None,
    workers: int | None,
    as_json: bool,
    cached: bool = False,
) -> int:
    """Detect and print recurring patterns."""
    try:
        if cached:
            if from_value or to_value or as_of:
                raise InvalidArgumentError.for_command(
                    "`--cached` serves the full ledger window; drop `--from`, `--to` and `--as-of`.",
                    "recurring",
                )
            data = load_cached_recurring(LedgerStore(config.ledger.db_path), config)
        else:
            store = LedgerStore(config.ledger.db_path)
            result = run_recurring(
                store,
                config,
                from_value=from_value,
                to_value=to_value,
                as_of=_parse_as_of(as_of, "recurring"),
                max_workers=workers,
            )
            data = result.to_dict()
    except RecurringError as e:
        logger.debug("recurring failed: %s", e.code)
        return _emit_error(e, as_json)

    if as_json:
        print(to_json(success_envelope("recurring", data)))
    else:
        print(render_recurring_text(data))
    return 0


def cmd_refresh(config: Config, as_of: str | None, as_json: bool) -> int:
    """Recompute and store the recurring cache."""
    try:
        store = LedgerStore(config.ledger.db_path)
        summary = refresh_recurring_cache(store, config, as_of=_parse_as_of(as_of, "refresh"))
    except RecurringError as e:
        return _emit_error(e, as_json)

    if as_json:
        print(to_json(success_envelope("refresh", summary.to_dict())))
    else:
        print(render_refresh_text(summary.to_dict()))
    return 0


def cmd_status(config: Config, as_json: bool) -> int:
    """Show ledger status."""
    try:
        store = LedgerStore(config.ledger.db_path)
        stats = store.get_stats()
    except RecurringError as e:
        return _emit_error(e, as_json)

    if as_json:
        print(to_json(success_envelope("status", stats)))
    else:
        print(render_status_text(stats))
    return 0


def cmd_init_config(config_path: Path, force: bool) -> int:
    """Write a default config file."""
    if config_path.exists() and not force:
        print(f"❌ {config_path} already exists (use --force to overwrite)")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config, parsed.force)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    as_json = parsed.json or config.output.format == "json"

    # Route to command
    if parsed.command == "recurring":
        return cmd_recurring(
            config,
            from_value=parsed.from_value,
            to_value=parsed.to_value,
            as_of=parsed.as_of,
            workers=parsed.workers,
            as_json=as_json,
            cached=parsed.cached,
        )
    elif parsed.command == "refresh":
        return cmd_refresh(config, parsed.as_of, as_json)
    elif parsed.command == "status":
        return cmd_status(config, as_json)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
