"""Domain exceptions raised by services.

Routes never catch these individually; `main` registers handlers that
turn them into JSON error responses.
"""


class NotFoundError(LookupError):
    """A requested row does not exist."""

    def __init__(self, entity: str, key=None):
        self.entity = entity
        self.key = key
        msg = f"{entity} not found" if key is None else f"{entity} not found: {key}"
        super().__init__(msg)


class BusinessRuleError(ValueError):
    """The request is well formed but violates a domain rule."""
