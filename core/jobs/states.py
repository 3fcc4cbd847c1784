"""Archive job states and the transition table."""

from enum import Enum
from typing import Dict, Optional


class ArchiveState(str, Enum):
    """States an archive job moves through."""

    IDLE = "idle"
    SETUP = "setup"
    FETCHING = "fetching"
    TRANSFERRING = "transferring"
    WRAPUP = "wrapup"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    ERROR = "error"


class ArchiveEvent(str, Enum):
    """Events that move a job between states."""

    START = "start"
    NEXT = "next"
    CANCEL = "cancel"
    ERROR = "error"


S = ArchiveState
E = ArchiveEvent

TRANSITIONS: Dict[ArchiveState, Dict[ArchiveEvent, ArchiveState]] = {
    S.IDLE: {E.START: S.SETUP, E.ERROR: S.ERROR},
    S.SETUP: {E.NEXT: S.FETCHING, E.CANCEL: S.CANCELLED, E.ERROR: S.ERROR},
    S.FETCHING: {E.NEXT: S.TRANSFERRING, E.CANCEL: S.CANCELLED, E.ERROR: S.ERROR},
    S.TRANSFERRING: {E.NEXT: S.WRAPUP, E.CANCEL: S.CANCELLED, E.ERROR: S.ERROR},
    S.WRAPUP: {E.NEXT: S.FINISHED, E.CANCEL: S.CANCELLED, E.ERROR: S.ERROR},
    S.FINISHED: {E.NEXT: S.IDLE, E.CANCEL: S.CANCELLED, E.ERROR: S.ERROR},
    S.CANCELLED: {E.START: S.SETUP, E.ERROR: S.ERROR},
    S.ERROR: {E.START: S.SETUP},
}

# A job sitting in one of these has nothing left to do until start()
FINAL_STATES = frozenset({S.IDLE, S.CANCELLED, S.ERROR})
TERMINAL_STATES = FINAL_STATES | {S.FINISHED}


def next_state(state: ArchiveState, event: ArchiveEvent) -> Optional[ArchiveState]:
    """Look up the state an event leads to, or None if it is not allowed."""
    return TRANSITIONS[state].get(event)
