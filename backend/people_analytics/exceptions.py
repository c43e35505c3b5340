"""Errors surfaced to callers of the analytics service."""


class EntityNotFoundError(LookupError):
    """
    Raised when a caller explicitly scopes a request to one employee or one
    department that does not exist.  Unknown ids inside a wider scope simply
    yield empty results.
    """
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")
