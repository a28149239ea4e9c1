class StorageUnavailable(Exception):
    """
    The database could not be reached or rejected a query.

    Raised instead of returning an empty result so callers can tell
    "nothing there" apart from "could not look".
    """

    def __init__(self, operation: str):
        super().__init__(f"Storage unavailable during {operation}")
        self.operation = operation
