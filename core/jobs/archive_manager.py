"""Archive manager - drives the archive job through its states."""

import getpass
import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import config
from core.jobs.archive_creator import ArchiveCreator
from core.jobs.context import ArchiveContext
from core.jobs.errors import ArchiveError, InvalidStateTransition, UnexpectedArchiveError
from core.jobs.states import (
    TERMINAL_STATES,
    ArchiveEvent,
    ArchiveState,
    next_state,
)
from core.scraping.fetchers.http_fetcher import PageFetcher
from database.repositories.options_repository import OptionsRepository
from database.repositories.page_repository import PageRepository
from utils.logger import log_job_complete, log_job_start, log_transition

logger = logging.getLogger(__name__)


class ArchiveManager:
    """
    Runs the archive job one step per call.

    The job is resumable: the state name, status messages and job
    identity live in the options store, and crawl progress lives in the
    page store, so any process can pick the job up with continue_().

    Usage:
        manager = ArchiveManager()
        manager.start()
        while not manager.has_finished():
            manager.continue_()
    """

    READY_STATES = frozenset({
        ArchiveState.IDLE,
        ArchiveState.FINISHED,
        ArchiveState.CANCELLED,
        ArchiveState.ERROR,
    })

    def __init__(
        self,
        options: Optional[OptionsRepository] = None,
        page_repo: Optional[PageRepository] = None,
        fetcher: Optional[PageFetcher] = None,
    ):
        self.options = options or OptionsRepository()
        self.page_repo = page_repo or PageRepository()
        self.fetcher = fetcher

        if self.options.get("archive_state_name") is None:
            self.options.set("archive_state_name", ArchiveState.IDLE.value).save()

        self._actions: Dict[str, Callable[[], Optional[ArchiveError]]] = {
            "start": self.start,
            "continue": self.continue_,
            "cancel": self.cancel,
        }

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def state(self) -> ArchiveState:
        name = self.options.get("archive_state_name", ArchiveState.IDLE.value)
        try:
            return ArchiveState(name)
        except ValueError:
            logger.warning(f"Unknown archive state {name!r}, treating as idle")
            return ArchiveState.IDLE

    def get_state_name(self) -> str:
        return self.state.value

    def has_finished(self) -> bool:
        """True once the job has nothing left to do until the next start()."""
        return self.state in TERMINAL_STATES

    def ready_to_start(self) -> bool:
        return self.state in self.READY_STATES

    def get_status_messages(self) -> Dict[str, str]:
        """Latest message for each state the job has reached, keyed by state name."""
        return dict(self.options.get("archive_status_messages") or {})

    def can(self, event: ArchiveEvent) -> bool:
        return next_state(self.state, event) is not None

    # =========================================================================
    # Actions
    # =========================================================================

    def start(self, creator_id: Optional[str] = None) -> Optional[ArchiveError]:
        """
        Start a new archive job and run its setup.

        Returns:
            None on success, otherwise the error that stopped the job
        """
        def action():
            if self.state == ArchiveState.FINISHED:
                self._apply(ArchiveEvent.NEXT)
            self._apply(ArchiveEvent.START)
            self.options.set("archive_creator_id", creator_id or _current_user()).save()
            self._run_current_step()

        return self._guard(action)

    def continue_(self) -> Optional[ArchiveError]:
        """Run one step of the current state."""
        if self.has_finished():
            return None
        return self._guard(self._run_current_step)

    def cancel(self) -> Optional[ArchiveError]:
        """Cancel the running job. Files already fetched are kept."""
        def action():
            self._apply(ArchiveEvent.CANCEL)
            self._cancelled()

        return self._guard(action)

    def perform(self, action: str) -> Optional[ArchiveError]:
        """Dispatch an action by name: start, continue or cancel."""
        handler = self._actions.get(action)
        if handler is None:
            raise ValueError(f"Unknown archive action: {action!r}")
        return handler()

    # =========================================================================
    # Orchestration
    # =========================================================================

    def _guard(self, action: Callable[[], None]) -> Optional[ArchiveError]:
        try:
            action()
        except InvalidStateTransition as e:
            logger.warning(e.message)
            return e
        except ArchiveError as e:
            self._error_occurred(e)
            return e
        except Exception as e:
            logger.exception("Unexpected error during archive step")
            error = UnexpectedArchiveError(e)
            self._error_occurred(error)
            return error
        return None

    def _steps(self) -> Dict[ArchiveState, Callable[[], bool]]:
        return {
            ArchiveState.SETUP: self._setup,
            ArchiveState.FETCHING: self._fetching,
            ArchiveState.TRANSFERRING: self._transferring,
            ArchiveState.WRAPUP: self._wrapup,
            ArchiveState.FINISHED: self._finished,
            ArchiveState.CANCELLED: self._cancelled,
        }

    def _run_current_step(self):
        step = self._steps().get(self.state)
        if step is None:
            return

        if step():
            self._apply(ArchiveEvent.NEXT)
            if self.state == ArchiveState.FINISHED:
                self._finished()

    def _apply(self, event: ArchiveEvent):
        current = self.state
        target = next_state(current, event)
        if target is None:
            raise InvalidStateTransition(current.value, event.value)

        self.options.set("archive_state_name", target.value).save()
        log_transition(current.value, event.value, target.value)

    def _error_occurred(self, error: ArchiveError):
        logger.error(f"Archive job failed: {error.message}")
        if self.can(ArchiveEvent.ERROR):
            self._apply(ArchiveEvent.ERROR)
        self._set_message(ArchiveState.ERROR, f"Error: {error.message}")

    def _set_message(self, state: ArchiveState, message: str):
        messages = self.get_status_messages()
        messages[state.value] = message
        (
            self.options
            .set("archive_status_messages", messages)
            .set("archive_status_updated_at", datetime.now().isoformat(timespec="seconds"))
            .save()
        )

    def _context(self) -> ArchiveContext:
        return ArchiveContext.from_options(self.options)

    def _creator(self, context: ArchiveContext) -> ArchiveCreator:
        return ArchiveCreator(context, page_repo=self.page_repo, fetcher=self.fetcher)

    # =========================================================================
    # Steps
    # =========================================================================

    def _setup(self) -> bool:
        start_time = datetime.now()
        creator_id = self.options.get("archive_creator_id") or _current_user()
        archive_name = _archive_name(start_time, creator_id)

        (
            self.options
            .set("archive_status_messages", {})
            .set("archive_name", archive_name)
            .set("archive_start_time", start_time.isoformat())
            .set("archive_creator_id", creator_id)
            .set("archive_transfer_offset", 0)
            .set("archive_download_url", None)
            .save()
        )
        self._set_message(ArchiveState.SETUP, "Setting up")

        context = self._context()
        try:
            context.archive_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveError(
                f"Unable to create archive directory: {context.archive_dir}",
                code="cannot_create_archive_dir",
            ) from e

        self.page_repo.update_all("error_message", None)

        creator = self._creator(context)
        creator.add_origin_and_additional_urls()
        creator.add_additional_files()

        log_job_start(archive_name, self.page_repo.count_total())
        return True

    def _fetching(self) -> bool:
        creator = self._creator(self._context())
        fetched, total = creator.fetch_pages()
        self._set_message(ArchiveState.FETCHING, f"Fetched {fetched} of {total} pages/files")
        return fetched >= total

    def _transferring(self) -> bool:
        context = self._context()
        creator = self._creator(context)

        if context.delivery_method == "zip":
            download_url = creator.create_zip()
            self.options.set("archive_download_url", download_url).save()
            self._set_message(ArchiveState.TRANSFERRING, f"ZIP archive created: {download_url}")
            return True

        if context.delivery_method == "local":
            if not context.local_dir:
                raise ArchiveError("No local directory configured", code="missing_local_dir")

            offset = self.options.get_int("archive_transfer_offset", 0)
            copied, total = creator.copy_static_files(context.local_dir, offset)
            self.options.set("archive_transfer_offset", copied).save()
            self._set_message(ArchiveState.TRANSFERRING, f"Copied {copied} of {total} files")
            return copied >= total

        raise ArchiveError(
            f"Unknown delivery method: {context.delivery_method}",
            code="invalid_delivery_method",
        )

    def _wrapup(self) -> bool:
        context = self._context()
        self._set_message(ArchiveState.WRAPUP, "Wrapping up")
        if context.delete_temp_files:
            self._creator(context).delete_temp_static_files()
        return True

    def _finished(self) -> bool:
        self._set_message(ArchiveState.FINISHED, "Done!")

        context = self._context()
        if context.start_time is not None:
            duration = (datetime.now() - context.start_time).total_seconds()
            log_job_complete(
                context.archive_name,
                self.page_repo.count_fetched(context.start_time),
                self.page_repo.count_total(),
                duration,
            )
        return False

    def _cancelled(self) -> bool:
        self._set_message(ArchiveState.CANCELLED, "Cancelled")
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Current job status, for the API and the CLI."""
        start_time = self.options.get("archive_start_time")
        since = datetime.fromisoformat(start_time) if start_time else None
        return {
            "state": self.get_state_name(),
            "has_finished": self.has_finished(),
            "ready_to_start": self.ready_to_start(),
            "archive_name": self.options.get("archive_name"),
            "start_time": start_time,
            "download_url": self.options.get("archive_download_url"),
            "messages": self.get_status_messages(),
            "updated_at": self.options.get("archive_status_updated_at"),
            "pages": self.page_repo.count_by_status(since),
        }


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _archive_name(start_time: datetime, creator_id: str) -> str:
    name = f"{config.SLUG}-{start_time.strftime('%Y%m%d-%H%M%S')}-{creator_id}"
    return re.sub(r"[^A-Za-z0-9_-]+", "-", name)
