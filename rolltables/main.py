"""
D&D Roll Tables - Main Entry Point

Command-line front end for authoring and rolling on D&D roll tables.
Tables live as JSON documents in a data directory; entries can nest other
tables or reference spells, equipment and magic items from the D&D 5e API.

This module provides configuration, logging setup, the RollTableApp that
wires the store, content client, engine and manager together, and the
sub-command handlers.
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rolltables.content_loader.dnd5e_client import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    Dnd5eApiClient,
)
from rolltables.data_models import DiceRoller
from rolltables.observability.run_log import get_run_log
from rolltables.storage.bootstrap import (
    BUNDLED_TABLES_DIR,
    BootstrapResult,
    bootstrap_data_directory,
    resolve_data_dir,
)
from rolltables.storage.importer import import_table_file
from rolltables.storage.table_store import DEFAULT_FORMULA, DEFAULT_TABLE_NAME, TableStore
from rolltables.tables.dice_rng_adapter import DiceRngAdapter
from rolltables.tables.errors import ConfigurationError, RollTableError
from rolltables.tables.lookup import StoreLookupService
from rolltables.tables.resolution_engine import DEFAULT_MAX_DEPTH, ResolutionEngine
from rolltables.tables.table_manager import RollTableManager
from rolltables.tables.table_types import EntryKind, RollMode, TableEntry, parse_range_text


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_DATA_DIR = Path.home() / ".dnd-roll-tables" / "json"

# Command-line spelling of each content kind
KIND_CHOICES = {
    "spell": EntryKind.SPELL,
    "equipment": EntryKind.EQUIPMENT,
    "magic-item": EntryKind.MAGIC_ITEM,
}


@dataclass
class AppConfig:
    """Configuration for a roll table session."""

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    bundled_dir: Path = field(default_factory=lambda: BUNDLED_TABLES_DIR)
    development: bool = False  # Work directly on the bundled tables

    # D&D 5e API
    api_base_url: str = DEFAULT_BASE_URL
    api_timeout: float = DEFAULT_TIMEOUT

    # Resolution
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: Optional[int] = None

    # Runtime options
    run_log_path: Optional[Path] = None
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)
        if isinstance(self.bundled_dir, str):
            self.bundled_dir = Path(self.bundled_dir)
        if isinstance(self.run_log_path, str):
            self.run_log_path = Path(self.run_log_path)

    def validate(self) -> None:
        """
        Check settings that cannot be used.

        Raises:
            ConfigurationError: For a max_depth below 1 or a non-positive timeout
        """
        if self.max_depth < 1:
            raise ConfigurationError("max_depth", self.max_depth, "must be at least 1")
        if self.api_timeout <= 0:
            raise ConfigurationError("api_timeout", self.api_timeout, "must be positive")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build a configuration from ROLL_TABLES_* environment variables.

        Unset variables keep their defaults; unparsable numbers are
        logged and ignored.
        """
        config = cls()
        data_dir = os.getenv("ROLL_TABLES_DATA_DIR")
        if data_dir:
            config.data_dir = Path(data_dir).expanduser()
        config.development = os.getenv("ROLL_TABLES_ENV", "").lower() == "development"
        config.api_base_url = os.getenv("ROLL_TABLES_API_URL") or config.api_base_url

        max_depth = _int_from_env("ROLL_TABLES_MAX_DEPTH")
        if max_depth is not None:
            config.max_depth = max_depth
        config.seed = _int_from_env("ROLL_TABLES_SEED")
        return config


def _int_from_env(name: str) -> Optional[int]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not an integer")
        return None


# =============================================================================
# APPLICATION
# =============================================================================

class RollTableApp:
    """
    Wires together the store, content client, engine and manager for one
    session.

    Usage:
        app = RollTableApp(config)
        app.start()
        try:
            result = await app.manager.roll("Treasure")
        finally:
            await app.close()
    """

    def __init__(self, config: AppConfig, client: Optional[Dnd5eApiClient] = None):
        config.validate()
        self.config = config
        self.data_dir = resolve_data_dir(config)
        self.store = TableStore(self.data_dir)
        self.client = client or Dnd5eApiClient(
            base_url=config.api_base_url,
            timeout=config.api_timeout,
        )
        self.engine = ResolutionEngine(
            StoreLookupService(self.store, self.client),
            rng=DiceRngAdapter("Roll table"),
            max_depth=config.max_depth,
        )
        self.manager = RollTableManager(self.store, self.engine)
        self.bootstrap_result: Optional[BootstrapResult] = None

    def start(self) -> None:
        """Seed the dice and prepare the data directory."""
        if self.config.seed is not None:
            DiceRoller.set_seed(self.config.seed)
            get_run_log().set_seed(self.config.seed)

        if self.config.development:
            logger.info(f"Development mode: using bundled tables in {self.data_dir}")
            self.store.ensure_directory()
        else:
            self.bootstrap_result = bootstrap_data_directory(
                self.data_dir, self.config.bundled_dir
            )

    async def close(self) -> None:
        await self.client.close()
        if self.config.run_log_path:
            get_run_log().save(self.config.run_log_path)


# =============================================================================
# COMMANDS
# =============================================================================

async def cmd_list(app: RollTableApp, args: argparse.Namespace) -> None:
    summaries = app.store.list_summaries()
    if not summaries:
        print(f"No roll tables in {app.data_dir}")
        return
    for table_id, name in summaries:
        print(f"{table_id:<32} {name}")


async def cmd_show(app: RollTableApp, args: argparse.Namespace) -> None:
    table = app.manager.find_table(args.table)
    print(f"{table.name} [{table.table_id}]")
    print(f"Formula: {table.formula}")
    if table.description:
        print(f"Description: {table.description}")
    for position, entry in enumerate(table.results, start=1):
        span = (
            str(entry.roll_min) if entry.roll_min == entry.roll_max
            else f"{entry.roll_min}-{entry.roll_max}"
        )
        line = f"  {position:>3}. {span:>7}  {entry.text}"
        if entry.kind != EntryKind.PLAIN:
            line += f"  ({entry.kind.label}: {entry.reference_id})"
        print(line)


async def cmd_roll(app: RollTableApp, args: argparse.Namespace) -> None:
    table = app.manager.find_table(args.table)
    mode = RollMode.manual(args.value) if args.value is not None else RollMode.automatic()
    for _ in range(max(1, args.times)):
        result = await app.manager.roll_table(table, mode)
        print(f"[{result.table_name}] {result.text}")


async def cmd_create(app: RollTableApp, args: argparse.Namespace) -> None:
    table = app.store.create_table(name=args.name, formula=args.formula)
    path = app.store.save_table(table)
    print(f"Created '{table.name}' ({table.table_id}) at {path}")


async def cmd_add_result(app: RollTableApp, args: argparse.Namespace) -> None:
    roll_min, roll_max = parse_range_text(args.range)
    entry = TableEntry(
        roll_min=roll_min,
        roll_max=roll_max,
        text=args.text,
        nested_table_id=args.nested_table,
        spell_id=args.spell,
        equipment_id=args.equipment,
        magic_item_id=args.magic_item,
    )
    table = app.manager.add_result(args.table, entry)
    print(f"Added {roll_min}-{roll_max} '{entry.text}' to '{table.name}'")


async def cmd_edit(app: RollTableApp, args: argparse.Namespace) -> None:
    if args.name is None and args.formula is None and args.description is None:
        print("Nothing to change: give --name, --formula or --description")
        return
    table = app.manager.edit_table(
        args.table,
        name=args.name,
        formula=args.formula,
        description=args.description,
    )
    print(f"Updated '{table.name}' ({table.table_id})")


async def cmd_remove_result(app: RollTableApp, args: argparse.Namespace) -> None:
    entry = app.manager.remove_result(args.table, args.position)
    print(f"Removed {entry.roll_min}-{entry.roll_max} '{entry.text}' from '{args.table}'")


async def cmd_clone(app: RollTableApp, args: argparse.Namespace) -> None:
    clone = app.store.clone_table(app.manager.find_table(args.table))
    app.store.save_table(clone)
    print(f"Created '{clone.name}' ({clone.table_id})")


async def cmd_delete(app: RollTableApp, args: argparse.Namespace) -> None:
    table = app.manager.delete_table(args.table)
    print(f"Deleted '{table.name}' ({table.table_id})")


async def cmd_import(app: RollTableApp, args: argparse.Namespace) -> None:
    path = import_table_file(args.file, app.store)
    print(f"Imported {args.file} as {path.stem}")


async def cmd_options(app: RollTableApp, args: argparse.Namespace) -> None:
    for index, name in await app.client.list_options(KIND_CHOICES[args.kind]):
        print(f"{index:<40} {name}")


async def cmd_bootstrap(app: RollTableApp, args: argparse.Namespace) -> None:
    result = app.bootstrap_result
    if result is None:
        print(f"Development mode: bundled tables used in place ({app.data_dir})")
        return
    print(f"Data directory: {app.data_dir}")
    print(f"  Copied: {len(result.copied)}")
    print(f"  Already present: {len(result.skipped)}")
    print(f"  Duplicates removed: {len(result.duplicates_removed)}")
    for warning in result.warnings:
        print(f"  Warning: {warning}")


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "roll": cmd_roll,
    "create": cmd_create,
    "add-result": cmd_add_result,
    "edit": cmd_edit,
    "remove-result": cmd_remove_result,
    "clone": cmd_clone,
    "delete": cmd_delete,
    "import": cmd_import,
    "options": cmd_options,
    "bootstrap": cmd_bootstrap,
}


async def run_command(config: AppConfig, args: argparse.Namespace) -> int:
    """
    Run one sub-command and return the process exit status.

    Errors are reported as "Error: <message>" on stderr without any
    partial result.
    """
    app = None
    try:
        app = RollTableApp(config)
        app.start()
        await COMMANDS[args.command](app, args)
    except (RollTableError, FileNotFoundError) as e:
        logger.debug(f"Command {args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if app is not None:
            await app.close()
    return 0


# =============================================================================
# ARGUMENTS
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="roll-tables",
        description="D&D Roll Tables - author and roll on nested random tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  roll-tables list                                   # List tables
  roll-tables roll "Treasure"                        # Roll on a table
  roll-tables roll "Treasure" --value 7              # What does a 7 give?
  roll-tables add-result Loot --text Fire --range 1-5 --spell fireball
  roll-tables edit Loot --formula 1d12 --description "Hoard loot"
  roll-tables remove-result Loot 2
  roll-tables --dev --seed 42 roll "Wandering Monsters" --times 3
        """
    )

    # General options
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help=f"Directory holding the table JSON files (default: {DEFAULT_DATA_DIR})",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode: use the bundled tables in place",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help=f"D&D 5e API base URL (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help=f"Maximum nested table depth (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible rolls",
    )
    parser.add_argument(
        "--run-log",
        type=Path,
        default=None,
        help="Write the structured run log to this JSON file on exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List tables by name")

    show = subparsers.add_parser("show", help="Show a table and its entries")
    show.add_argument("table", help="Table id or name")

    roll = subparsers.add_parser("roll", help="Roll on a table")
    roll.add_argument("table", help="Table id or name")
    roll.add_argument("--value", type=int, default=None, help="Use this roll instead of rolling")
    roll.add_argument("--times", type=int, default=1, help="Number of rolls (default: 1)")

    create = subparsers.add_parser("create", help="Create an empty table")
    create.add_argument("--name", default=DEFAULT_TABLE_NAME, help="Table name")
    create.add_argument("--formula", default=DEFAULT_FORMULA, help="Dice formula, e.g. 1d20")

    add_result = subparsers.add_parser("add-result", help="Append an entry to a table")
    add_result.add_argument("table", help="Table id or name")
    add_result.add_argument("--text", required=True, help="Entry text")
    add_result.add_argument("--range", required=True, help="Roll range, e.g. 1-5 or 7")
    reference = add_result.add_mutually_exclusive_group()
    reference.add_argument("--table", dest="nested_table", default=None, help="Nested table id")
    reference.add_argument("--spell", default=None, help="D&D 5e spell index")
    reference.add_argument("--equipment", default=None, help="D&D 5e equipment index")
    reference.add_argument("--magic-item", default=None, help="D&D 5e magic item index")

    edit = subparsers.add_parser("edit", help="Change a table's name, formula or description")
    edit.add_argument("table", help="Table id or name")
    edit.add_argument("--name", default=None, help="New table name")
    edit.add_argument("--formula", default=None, help="New dice formula, e.g. 1d12")
    edit.add_argument("--description", default=None, help="New description")

    remove_result = subparsers.add_parser("remove-result", help="Remove an entry from a table")
    remove_result.add_argument("table", help="Table id or name")
    remove_result.add_argument("position", type=int, help="Entry number as shown by 'show'")

    clone = subparsers.add_parser("clone", help="Copy a table as '<name> (Clone)'")
    clone.add_argument("table", help="Table id or name")

    delete = subparsers.add_parser("delete", help="Delete a table")
    delete.add_argument("table", help="Table id or name")

    import_cmd = subparsers.add_parser("import", help="Import a Foundry VTT roll table export")
    import_cmd.add_argument("file", type=Path, help="Exported JSON file")

    options = subparsers.add_parser("options", help="List D&D 5e API indexes for a content kind")
    options.add_argument("kind", choices=sorted(KIND_CHOICES), help="Content kind")

    subparsers.add_parser("bootstrap", help="Copy bundled tables into the data directory")

    return parser.parse_args(argv)


def create_config_from_args(
    args: argparse.Namespace,
    base: Optional[AppConfig] = None,
) -> AppConfig:
    """Create AppConfig from parsed arguments, overriding the environment."""
    config = base or AppConfig.from_env()
    if args.data_dir is not None:
        config.data_dir = args.data_dir
    if args.dev:
        config.development = True
    if args.api_url:
        config.api_base_url = args.api_url
    if args.max_depth is not None:
        config.max_depth = args.max_depth
    if args.seed is not None:
        config.seed = args.seed
    if args.run_log is not None:
        config.run_log_path = args.run_log
    config.verbose = args.verbose
    return config


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    config = create_config_from_args(args)
    return asyncio.run(run_command(config, args))


if __name__ == "__main__":
    sys.exit(main())
