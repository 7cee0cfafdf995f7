"""
Main CLI module for the primate store.

Provides a command-line interface to check connectivity and dump the
species table.
Example: python -m services.primate_store.main species
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from . import __version__
from .db.connector import Database
from .log_config import get_logger, module_label
from .repository import get_all_species
from .settings import Settings, settings

logger = get_logger(__name__, label=module_label(__file__))

COMMANDS = ("species", "ping")


async def dump_species(db: Database) -> bool:
    """
    Print every species row as a JSON array on stdout.

    Returns:
        True if the query succeeded, False otherwise
    """
    result = await get_all_species(db)

    if not result.ok:
        logger.error("Could not fetch species", error_type=type(result.error).__name__)
        return False

    print(json.dumps(result.rows, default=str, indent=2))
    logger.info("Species dumped", total_rows=len(result))
    return True


async def ping(db: Database) -> bool:
    """Run a trivial statement to confirm the database answers."""
    result = await db.query("SELECT 1 AS ok")
    return result.ok


async def run_command(command: str, config: Settings) -> bool:
    """
    Open the pool, run one command and close the pool again.

    Args:
        command: One of COMMANDS
        config: Settings used to build the pool

    Returns:
        True if the command succeeded
    """
    async with Database.from_settings(config) as db:
        if command == "species":
            return await dump_species(db)
        return await ping(db)


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Primate Store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m services.primate_store.main species
  python -m services.primate_store.main ping --log-level DEBUG
  python -m services.primate_store.main --version
        """
    )

    parser.add_argument(
        "command",
        choices=COMMANDS,
        help="species: dump the species table as JSON; ping: check connectivity"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override log level from configuration"
    )

    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        help="Override log format from configuration"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Primate Store {__version__}"
    )

    return parser


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging with CLI overrides
    if args.log_level or args.log_format:
        from .log_config import configure_logging
        configure_logging(args.log_level, args.log_format)

    config = settings()
    logger.info(
        "Service starting",
        service_name=config.service_name,
        version=__version__,
        environment=config.environment,
        command=args.command,
        db_host=config.db_host,
        db_name=config.db_name,
    )

    try:
        success = await run_command(args.command, config)

        if success:
            logger.info("Service completed successfully")
            return 0
        else:
            logger.error("Service completed with errors")
            return 1

    except KeyboardInterrupt:
        logger.warning("Service interrupted by user")
        return 1
    except Exception as e:
        logger.error(
            "Service failed with unexpected error",
            error=str(e),
            error_type=type(e).__name__
        )
        return 1


def cli_main():
    """Synchronous entry point for setuptools console scripts."""
    return asyncio.run(main())


if __name__ == "__main__":
    sys.exit(cli_main())
