from rolltables.persistence.table_file import (
    EntryFile,
    TableFile,
    TableFileError,
    read_table_file,
    write_table_file,
)

__all__ = [
    "EntryFile",
    "TableFile",
    "TableFileError",
    "read_table_file",
    "write_table_file",
]
