"""
Data directory bootstrap for the roll table store.

On first run the bundled default tables are copied into the user's data
directory. Later runs copy only bundled files the user does not have yet,
so edits to existing tables are never overwritten. Afterwards extra copies
of a bundled table (same content under a different file name) are removed;
tables the user authored are never de-duplicated.

Usage:
    from rolltables.storage.bootstrap import bootstrap_data_directory

    result = bootstrap_data_directory(Path("~/.dnd-roll-tables/json").expanduser())
    print(f"{len(result.copied)} tables copied")
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from rolltables.main import AppConfig


logger = logging.getLogger(__name__)


BUNDLED_TABLES_DIR = Path(__file__).parent.parent / "data" / "default_tables"


@dataclass
class BootstrapResult:
    """
    Outcome of bootstrapping a data directory.

    Attributes:
        copied: Bundled files copied into the target
        skipped: Bundled files already present in the target
        duplicates_removed: Files deleted as duplicates of another table
        warnings: Non-fatal problems met along the way
    """

    copied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    duplicates_removed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def resolve_data_dir(config: "AppConfig") -> Path:
    """
    Pick the directory the table store should use.

    Development mode works directly on the bundled tables; otherwise the
    configured user data directory is used.
    """
    if config.development:
        return config.bundled_dir
    return config.data_dir


def bootstrap_data_directory(
    target: Path,
    bundled: Optional[Path] = None,
) -> BootstrapResult:
    """
    Create the target directory and merge the bundled tables into it.

    Args:
        target: User data directory
        bundled: Directory of bundled default tables.
            Defaults to the tables shipped with the package.

    Returns:
        BootstrapResult describing what was done
    """
    result = BootstrapResult()
    bundled = Path(bundled) if bundled is not None else BUNDLED_TABLES_DIR
    target = Path(target)

    target.mkdir(parents=True, exist_ok=True)

    if not bundled.is_dir():
        result.warnings.append(f"Bundled tables directory not found: {bundled}")
        logger.warning(f"Bundled tables directory not found: {bundled}")
    elif bundled.resolve() != target.resolve():
        for source in sorted(bundled.glob("*.json")):
            destination = target / source.name
            if destination.exists():
                result.skipped.append(source.name)
                continue
            shutil.copy2(source, destination)
            result.copied.append(source.name)
            logger.info(f"Copied {source.name} to {target}")

    result.duplicates_removed = remove_duplicate_tables(
        target, bundled_fingerprints(bundled)
    )

    logger.info(
        f"Data directory ready: {len(result.copied)} copied, "
        f"{len(result.skipped)} already present, "
        f"{len(result.duplicates_removed)} duplicates removed"
    )
    return result


def table_fingerprint(data: dict) -> str:
    """SHA-256 of a table document's canonical JSON, ignoring its _id."""
    content = {k: v for k, v in data.items() if k != "_id"}
    canonical = json.dumps(content, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def bundled_fingerprints(bundled: Path) -> set[str]:
    """Fingerprints of the readable table documents in a bundled directory."""
    fingerprints = set()
    for path in sorted(Path(bundled).glob("*.json")):
        data = _read_document(path)
        if data is not None:
            fingerprints.add(table_fingerprint(data))
    return fingerprints


def _read_document(path: Path) -> Optional[dict]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Skipping unreadable table file {path.name}: {e}")
        return None
    return data if isinstance(data, dict) else None


def remove_duplicate_tables(
    directory: Path,
    fingerprints: Optional[set[str]] = None,
) -> list[str]:
    """
    Delete tables whose content duplicates an earlier file.

    Files are visited in sorted name order; the first file with a given
    fingerprint is kept. Unreadable files are left alone.

    Args:
        directory: Directory to clean up
        fingerprints: When given, only tables with one of these
            fingerprints are considered; all others are kept as they are.

    Returns:
        Names of the deleted files
    """
    seen: dict[str, str] = {}
    removed = []

    for path in sorted(Path(directory).glob("*.json")):
        data = _read_document(path)
        if data is None:
            continue

        fingerprint = table_fingerprint(data)
        if fingerprints is not None and fingerprint not in fingerprints:
            continue
        if fingerprint in seen:
            path.unlink()
            removed.append(path.name)
            logger.warning(f"Removed duplicate table {path.name} (same as {seen[fingerprint]})")
        else:
            seen[fingerprint] = path.name

    return removed
