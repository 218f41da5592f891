"""Entry point for TaskTree application.

This module allows running TaskTree as a module:
    python -m tasktree

Or as an installed command:
    tasktree
"""

import argparse
import sys
from typing import Optional

from tasktree import __version__
from tasktree.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="tasktree",
        description="Terminal task manager with nested, multi-parent tasks",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy database URL (overrides config and TASKTREE_DATABASE_URL)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (overrides TASKTREE_LOG_LEVEL)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point for TaskTree.

    Args:
        args: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]
    options = build_parser().parse_args(args)

    # Initialize logging before any other operations
    setup_logging(log_level=options.log_level)

    # Import here to keep startup light when only --help/--version is used
    from tasktree.ui.app import TaskTreeApp

    try:
        app = TaskTreeApp(database_url=options.database_url)
        app.run()
        logger.info("TaskTree application exited normally")
        return 0
    except KeyboardInterrupt:
        logger.info("TaskTree closed by user (Ctrl+C)")
        return 0
    except Exception:
        logger.error("Error running TaskTree", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
