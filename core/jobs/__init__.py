"""Archive job module."""

from core.jobs.archive_creator import ArchiveCreator
from core.jobs.archive_manager import ArchiveManager
from core.jobs.errors import ArchiveError, InvalidStateTransition, UnexpectedArchiveError
from core.jobs.states import ArchiveEvent, ArchiveState

__all__ = [
    "ArchiveCreator",
    "ArchiveManager",
    "ArchiveError",
    "InvalidStateTransition",
    "UnexpectedArchiveError",
    "ArchiveEvent",
    "ArchiveState",
]
