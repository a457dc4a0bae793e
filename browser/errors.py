"""Errors raised by the browser layer on top of the driver taxonomy."""
from __future__ import annotations

from drivers.errors import DriverError


class SessionError(DriverError):
    pass


class SessionClosedError(SessionError):
    """Operation on a session after close()."""


class SessionStateError(SessionError):
    """Operation attempted while the session is not READY."""


class NavigationError(DriverError):
    """Foreign-key jump could not be resolved. Non-fatal to the source view."""


class NotAForeignKeyError(NavigationError):
    """The focused column has no outgoing relation."""
