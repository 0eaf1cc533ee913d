"""CLI entry point for boardsync."""

import argparse
from pathlib import Path

from .config import Settings
from .logging import setup_logging
from .services.config_service import ConfigService


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="boardsync",
        description="Terminal kanban client with optimistic board synchronization",
    )
    parser.add_argument(
        "project_id",
        metavar="PROJECT_ID",
        help="Id of the project to open",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Remote store base URL (default: from boardsync.yml or http://localhost:5001/api)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token (default: BOARDSYNC_TOKEN)",
    )
    parser.add_argument(
        "--board",
        default=None,
        metavar="BOARD_ID",
        help="Board to open first",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to boardsync.yml (default: ./boardsync.yml)",
    )
    parser.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print the board as plain text and exit instead of starting the TUI",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    return parser.parse_args()


def main() -> None:
    """Main entry point."""
    args = parse_args()

    # Build settings from CLI args
    settings_kwargs: dict = {}
    if args.api_url:
        settings_kwargs["api_url"] = args.api_url
    if args.token:
        settings_kwargs["token"] = args.token
    if args.config:
        settings_kwargs["config_file"] = args.config
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)

    setup_logging(settings.verbose, settings.log_file)

    config_service = ConfigService(settings.config_file)
    config = settings.apply_to(config_service.get_config())

    if args.print_only:
        from .cli.dump import run_print
        from .cli.output import error

        if config_service.has_config_error:
            error(config_service.config_error)
        raise SystemExit(run_print(config, settings.token, args.project_id, args.board))

    # Import here to keep --print free of the TUI import cost
    from .app import run

    run(
        config,
        args.project_id,
        token=settings.token,
        board_id=args.board,
        config_error=config_service.config_error,
    )


if __name__ == "__main__":
    main()
