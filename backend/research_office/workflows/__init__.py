"""State tables for the committee and manuscript review workflows."""

# purpose: shared error types and state-key helpers for the workflow tables
# status: active


class WorkflowError(Exception):
    """Base class for workflow rule violations."""


class TransitionError(WorkflowError):
    """Raised when a requested state is not reachable from the current one."""

    def __init__(self, current: str, target: str, message: str):
        super().__init__(message)
        self.current = current
        self.target = target


class UnknownStateError(WorkflowError):
    """Raised when an inbound status matches neither a state key nor a label."""


def resolve_state(value: str, labels: dict[str, str], kind: str) -> str:
    """Map a state key or display label to its key, ignoring case."""

    needle = (value or "").strip().lower()
    for key, label in labels.items():
        if needle in (key, label.lower()):
            return key
    # labels are title-cased keys, so "under review" also resolves
    underscored = needle.replace(" ", "_")
    if underscored in labels:
        return underscored
    raise UnknownStateError(f"Unknown {kind} status '{value}'")
