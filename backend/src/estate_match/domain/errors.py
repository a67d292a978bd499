"""Error taxonomy shared by the matching and deal services."""


class EstateMatchError(Exception):
    """Base class for errors raised by the core services."""


class ValidationError(EstateMatchError):
    """Malformed input: unparseable budget, bad chunk size, illegal request."""


class NotFoundError(EstateMatchError):
    """A referenced requirement, deal or inventory does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StorageError(EstateMatchError):
    """The repository failed. Never retried by the core."""


class DuplicateAssignmentError(ValidationError):
    """Raised when uniqueness is enforced and the pair is already assigned."""

    def __init__(self, deal_id: str, inventory_id: str):
        self.deal_id = deal_id
        self.inventory_id = inventory_id
        super().__init__(f"Inventory {inventory_id} is already assigned to deal {deal_id}")
