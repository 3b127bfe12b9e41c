class NotFoundError(LookupError):
    """A row does not exist or does not belong to the caller."""

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ConflictError(RuntimeError):
    """A write lost a race with a concurrent write to the same row."""

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} was modified concurrently: {key}")
