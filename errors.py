"""Exception taxonomy for Smart Task Service."""


class SmartTaskError(Exception):
    """Base class for all service errors."""


class NotFoundError(SmartTaskError):
    """A task id was not present in the store."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class StoreUnavailableError(SmartTaskError):
    """The task database could not be reached."""


class ProximityError(SmartTaskError):
    """Base class for proximity lookup failures."""


class ProximityTimeoutError(ProximityError):
    """A proximity lookup did not answer within its timeout."""


class ProximityUnavailableError(ProximityError):
    """The proximity lookup backend failed or could not be reached."""


class TriggerEngineError(SmartTaskError):
    """A trigger pass was aborted. The original error is chained as __cause__."""
