from binderkeep.db.database import create_tables, get_session
from binderkeep.db.operations import (
    delete_document,
    delete_value,
    get_document,
    get_value,
    list_documents,
    list_keys,
    set_value,
    split_path,
    upsert_document,
)

__all__ = [
    "create_tables",
    "delete_document",
    "delete_value",
    "get_document",
    "get_session",
    "get_value",
    "list_documents",
    "list_keys",
    "set_value",
    "split_path",
    "upsert_document",
]
