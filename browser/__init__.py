"""Per-view orchestration on top of the drivers package.

A Workspace owns one driver per open connection; every open table view is an
independent QuerySession.
"""

from .errors import (
    SessionError, SessionClosedError, SessionStateError, NavigationError, NotAForeignKeyError,
)
from .session import QuerySession, SessionState
from .navigator import goto_foreign_key
from .workspace import Workspace, ConnectionStore

__all__ = [
    "SessionError", "SessionClosedError", "SessionStateError", "NavigationError",
    "NotAForeignKeyError", "QuerySession", "SessionState", "goto_foreign_key",
    "Workspace", "ConnectionStore",
]
