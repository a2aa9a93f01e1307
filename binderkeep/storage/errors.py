"""Exceptions raised by the storage collaborators."""


class StorageError(Exception):
    """
    A backing store could not complete an operation.

    Treated as transient: read paths fall back to cached data, write paths
    propagate so the caller can retry the whole operation.
    """

    pass


class StoreNotInitializedError(RuntimeError):
    """
    A store was used before `initialize()` was awaited.

    This is a configuration failure with no sensible fallback, so it is
    never swallowed.
    """

    def __init__(self, store_name: str) -> None:
        self.store_name = store_name
        super().__init__(f"{store_name} used before initialize() was awaited")
