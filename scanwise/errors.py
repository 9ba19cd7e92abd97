"""Failure types raised inside the scan pipeline.

Remote failures never leave the action layer as exceptions (see
``scanwise.actions``); these types are what the clients raise towards the
controller, which records them on the session instead of propagating.
"""


class ScanWiseError(Exception):
    """Base class for every pipeline failure."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class CameraUnavailable(ScanWiseError):
    """No capture device could be opened, or no frame is available yet."""


class ClassificationFailed(ScanWiseError):
    """The model returned no usable object name, or the call itself failed."""


class DetailFetchFailed(ScanWiseError):
    """The model returned no usable detail payload, or the call itself failed."""


class ValidationError(ScanWiseError):
    """Local input rejected before any network call."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message
