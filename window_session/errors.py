"""Error taxonomy."""


class WindowSessionError(Exception):
    """Base class for errors raised by window_session."""


class SnapshotError(WindowSessionError, ValueError):
    """The saved session file cannot be used (malformed, wrong schema)."""


class NothingToRestore(SnapshotError):
    """There is no saved session file."""


class SpawnError(WindowSessionError, OSError):
    """A process could not be created."""
