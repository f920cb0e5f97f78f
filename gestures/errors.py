"""
Error types for the gesture counter.

InputError and ConfigurationError also derive from ValueError so callers that
already catch ValueError for bad input keep working.
"""


class GestureError(Exception):
    """Base class for all gesture counter errors."""


class InputError(GestureError, ValueError):
    """A landmark frame is malformed (wrong shape, missing index, degenerate geometry)."""


class ConfigurationError(GestureError, ValueError):
    """A tunable is invalid; raised before a session is created."""


class SessionNotFoundError(GestureError, KeyError):
    """No session is registered under the given id."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Session not found"


class SessionClosedError(GestureError):
    """A frame or control operation reached a session that was already stopped."""


class SessionLimitError(GestureError):
    """The configured maximum number of open sessions has been reached."""
