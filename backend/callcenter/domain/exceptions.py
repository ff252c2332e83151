"""
Call Center Errors
All are recoverable; the API layer turns them into operator notifications.
"""


class CallCenterError(Exception):
    """Base class for call center errors"""
    pass


class SourceUnavailable(CallCenterError):
    """The Order Source could not be read; the pool is unchanged."""
    pass


class NoEligibleItems(CallCenterError):
    """start() found nothing to dial. Informational, not a fault."""

    def __init__(self, message: str = "No eligible pool items to dial"):
        super().__init__(message)


class PoolBusy(CallCenterError):
    """Re-population attempted while the dialer holds an active item."""

    def __init__(self, active_item_id: str):
        self.active_item_id = active_item_id
        super().__init__(
            f"Call pool is busy with active item {active_item_id}; end the active call first"
        )


class InvalidDialerTransition(CallCenterError):
    """Operation not allowed in the dialer's current state."""

    def __init__(self, operation: str, state: str, detail: str = ""):
        self.operation = operation
        self.state = state
        message = f"Cannot {operation} while dialer is {state}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PoolItemNotFound(CallCenterError):
    """No pool item with the given id."""

    def __init__(self, pool_item_id: str):
        self.pool_item_id = pool_item_id
        super().__init__(f"Pool item not found: {pool_item_id}")
