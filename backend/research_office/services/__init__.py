"""Domain services for the research office workflows and reports."""

# purpose: shared service error taxonomy mapped to HTTP responses by the routes
# status: active


class ServiceError(RuntimeError):
    """Base error for research office services."""


class NotFound(ServiceError):
    """Raised when a referenced entity cannot be located."""


class Conflict(ServiceError):
    """Raised when a write would duplicate an existing record."""


class InvalidRequest(ServiceError):
    """Raised when a request breaks a domain rule outside the workflow tables."""


class StatusChange:
    """Committed state change, handed to the routes for notifications."""

    def __init__(self, status_from: str, status_to: str, label_from: str, label_to: str):
        self.status_from = status_from
        self.status_to = status_to
        self.label_from = label_from
        self.label_to = label_to


def require(db, model, entity_id, label: str):
    """Load ``model`` by primary key or raise NotFound naming ``label``."""
    entity = db.get(model, entity_id) if entity_id is not None else None
    if entity is None:
        raise NotFound(f"{label} not found")
    return entity
