from __future__ import annotations


class CustomizeError(RuntimeError):
    pass


class ValidationError(CustomizeError):
    """Bad or contradictory inputs, detected before anything is mounted."""


class MountError(CustomizeError):
    pass


class ResolutionError(CustomizeError):
    """Commit or discard of a mount session failed."""


class PatchAnomalyError(CustomizeError):
    """An expected pattern was missing or found more often than expected."""


class OperatorAbort(CustomizeError):
    pass


class DiscoveryStall(CustomizeError):
    """Why a discovery round did not settle on a single image.

    Returned as a value by the discovery loop and retried; never raised.
    """

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
