"""Roll table persistence: JSON directory store, bootstrap and import."""

from rolltables.storage.table_store import (
    TableStore,
    StoredTable,
    new_table_id,
    DEFAULT_TABLE_NAME,
    DEFAULT_FORMULA,
)
from rolltables.storage.bootstrap import (
    BootstrapResult,
    BUNDLED_TABLES_DIR,
    bootstrap_data_directory,
    remove_duplicate_tables,
    resolve_data_dir,
    table_fingerprint,
)
from rolltables.storage.importer import (
    transform_foundry_table,
    import_table_file,
)

__all__ = [
    # Store
    "TableStore",
    "StoredTable",
    "new_table_id",
    "DEFAULT_TABLE_NAME",
    "DEFAULT_FORMULA",
    # Bootstrap
    "BootstrapResult",
    "BUNDLED_TABLES_DIR",
    "bootstrap_data_directory",
    "remove_duplicate_tables",
    "resolve_data_dir",
    "table_fingerprint",
    # Import
    "transform_foundry_table",
    "import_table_file",
]
