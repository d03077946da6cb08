"""
Exception types raised by the mp-vmc pipeline.
"""


class MpVmcError(Exception):
    """Base class for all mp-vmc errors"""


# ============================================================================
# TRACKER LIFECYCLE
# ============================================================================
class TrackerError(MpVmcError):
    """Base class for tracker lifecycle violations"""


class TrackerClosedError(TrackerError):
    """Raised for any operation on a closed tracker"""

    def __init__(self, message="tracker is closed"):
        super().__init__(message)


class TrackerRunningError(TrackerError):
    """Raised by start() while the tracker is already running"""

    def __init__(self, message="tracker is already running"):
        super().__init__(message)


class TrackerNotRunningError(TrackerError):
    """Raised by stop() when the tracker is not running"""

    def __init__(self, message="tracker is not running"):
        super().__init__(message)


class TrackerStateError(TrackerError):
    """Raised when a dependency is registered outside the idle state"""


class TrackerCloseError(TrackerError):
    """Raised by close() when one or more dependencies failed to tear down.

    The tracker is fully closed when this is raised; ``errors`` holds every
    individual teardown failure in the order they happened.
    """

    def __init__(self, errors):
        self.errors = list(errors)
        details = "; ".join(str(e) for e in self.errors)
        super().__init__(f"closing tracker: {details}")


class SubscriptionClosed(MpVmcError):
    """Raised by Subscription.get() once the subscription is closed and drained"""


# ============================================================================
# I/O AND CONFIGURATION
# ============================================================================
class SenderError(MpVmcError):
    """Raised when a protocol sender cannot connect or write"""


class CameraError(MpVmcError):
    """Raised when the capture device cannot be opened or read"""


class ConfigError(MpVmcError, ValueError):
    """Raised for invalid configuration values"""


class PreviewError(MpVmcError):
    """Raised when the debug preview window cannot be created"""
