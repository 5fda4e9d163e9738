"""Exception taxonomy shared by the store, the tracker and the transports.

Derived views (streaks, progression, charts) never raise; only writes and
store access do.
"""


class DisciplineError(Exception):
    """Base exception for all tracker errors."""


class ValidationError(DisciplineError):
    """Input rejected before any write (empty name, unknown id, bad date)."""


class StorageUnavailable(DisciplineError):
    """The record store cannot be opened or reached.

    Fatal to the current operation; callers should offer a reset path
    instead of asking the user to correct their input.
    """
