"""Exception types raised by the tracker services."""


class TrackerError(Exception):
    """Base class for all tracker errors."""


class NotFoundError(TrackerError):
    """A referenced chapter, subject or streak row does not exist."""


class ValidationError(TrackerError):
    """Input is out of range or not recognised. Raised before any write."""


class DependencyFailure(TrackerError):
    """The store or an external collaborator (LLM, notifier) failed."""


class BatchPartialFailure(TrackerError):
    """Some of the grouped updates in a flush failed."""

    def __init__(self, failed_ids: list, total: int, errors: dict | None = None):
        self.failed_ids = list(failed_ids)
        self.errors = dict(errors or {})
        self.count = len(self.failed_ids)
        self.total = total
        super().__init__(f"Failed to save {self.count} of {total} entities")
