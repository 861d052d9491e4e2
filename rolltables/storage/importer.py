"""
Import of roll tables exported from Foundry VTT.

Foundry exports carry many fields this application does not use; only the
name, description, formula and result ranges are kept.
"""

import json
import logging
from pathlib import Path
from typing import Any

from rolltables.storage.table_store import TableStore
from rolltables.tables.errors import InvalidTableDataError


logger = logging.getLogger(__name__)


IMPORTED_TABLE_NAME = "Imported Roll Table"
IMPORT_ID_PREFIX = "imported"


def transform_foundry_table(data: dict[str, Any]) -> dict[str, Any]:
    """
    Map a Foundry VTT roll-table export onto the stored table document.

    Raises:
        InvalidTableDataError: If the export has no list of results
    """
    if not isinstance(data, dict):
        raise InvalidTableDataError("Imported table must be a JSON object")

    results = data.get("results")
    if not isinstance(results, list):
        raise InvalidTableDataError("Imported table has no 'results' list")

    return {
        "name": data.get("name") or IMPORTED_TABLE_NAME,
        "description": data.get("description") or "",
        "formula": data.get("formula") or "1d20",
        "results": [
            {
                "text": result.get("text") or "",
                "range": result.get("range") or [1, 1],
                "weight": result.get("weight") or 1,
                "drawn": False,
                "documentCollection": "",
                "documentId": None,
                "spellId": None,
                "equipmentId": None,
                "magicItemId": None,
            }
            for result in results
            if isinstance(result, dict)
        ],
    }


def import_table_file(path: Path, store: TableStore) -> Path:
    """
    Import a Foundry VTT export into the store.

    The table is saved as "imported-<epoch-ms>.json" with its _id set to
    the file stem.

    Returns:
        Path of the saved table

    Raises:
        FileNotFoundError: If the export file does not exist
        InvalidTableDataError: If the export is not a usable table
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Import file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidTableDataError(f"Import file {path.name} is not valid JSON: {e}") from e

    saved = store.save_document(transform_foundry_table(data), prefix=IMPORT_ID_PREFIX)
    logger.info(f"Imported {path.name} as {saved.name}")
    return saved
