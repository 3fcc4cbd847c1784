"""Page repository - the durable crawl frontier and page metadata store."""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import or_

from database.connection import session_scope
from models.page import Page


class PageRepository:
    """
    Repository for Page CRUD operations.

    Pages are never kept attached to a session: every method opens its
    own transactional scope and returns expunged instances, so a page
    can be mutated freely and written back with save().

    A page counts as fetched for the current archive job once its
    last_checked_at is at or after the job's start time.
    """

    # Columns update_all() is allowed to touch
    BULK_FIELDS = ("error_message", "file_path", "http_status_code", "last_checked_at")

    def insert_if_absent(self, url: str, found_on_id: Optional[int] = None) -> bool:
        """
        Add a URL to the store unless it is already there.

        Args:
            url: Absolute URL of the page
            found_on_id: Id of the page the URL was discovered on

        Returns:
            True if a new page was inserted
        """
        with session_scope() as session:
            exists = session.query(Page.id).filter(Page.url == url).first()
            if exists:
                return False
            session.add(Page(url=url, found_on_id=found_on_id))
            return True

    def update_all(self, field: str, value: Any) -> int:
        """Set one column on every page. Returns the number of rows updated."""
        if field not in self.BULK_FIELDS:
            raise ValueError(f"Cannot bulk update field '{field}'")

        with session_scope() as session:
            return session.query(Page).update(
                {getattr(Page, field): value},
                synchronize_session=False,
            )

    def get(self, page_id: int) -> Optional[Page]:
        """Get a page by id."""
        with session_scope() as session:
            page = session.query(Page).filter(Page.id == page_id).first()
            if page:
                session.expunge(page)
            return page

    def get_by_url(self, url: str) -> Optional[Page]:
        """Get a page by its URL."""
        with session_scope() as session:
            page = session.query(Page).filter(Page.url == url).first()
            if page:
                session.expunge(page)
            return page

    def save(self, page: Page) -> Page:
        """Write a page back to the store."""
        with session_scope() as session:
            merged = session.merge(page)
            session.flush()
            session.refresh(merged)
            session.expunge(merged)
            page.id = merged.id
            return merged

    def count_total(self) -> int:
        """Count all known pages."""
        with session_scope() as session:
            return session.query(Page).count()

    def count_fetched(self, since: datetime) -> int:
        """Count pages checked at or after the given time."""
        with session_scope() as session:
            return session.query(Page).filter(Page.last_checked_at >= since).count()

    def next_unfetched(self, since: datetime, limit: int = 20) -> List[Page]:
        """
        Get the next batch of pages not yet checked during this job.

        Pages come back in insertion order, so newly discovered pages
        queue up behind the ones already known.
        """
        with session_scope() as session:
            pages = (
                session.query(Page)
                .filter(or_(Page.last_checked_at.is_(None), Page.last_checked_at < since))
                .order_by(Page.id)
                .limit(limit)
                .all()
            )
            for page in pages:
                session.expunge(page)
            return pages

    def count_fetched_files(self, since: datetime) -> int:
        """Count pages fetched during this job that produced a file."""
        with session_scope() as session:
            return (
                session.query(Page)
                .filter(Page.last_checked_at >= since, Page.file_path.isnot(None))
                .count()
            )

    def list_fetched_files(self, since: datetime, offset: int = 0, limit: int = 50) -> List[Page]:
        """List pages fetched during this job that produced a file."""
        with session_scope() as session:
            pages = (
                session.query(Page)
                .filter(Page.last_checked_at >= since, Page.file_path.isnot(None))
                .order_by(Page.id)
                .offset(offset)
                .limit(limit)
                .all()
            )
            for page in pages:
                session.expunge(page)
            return pages

    def list_pages(self, limit: int = 50, offset: int = 0, errors_only: bool = False) -> List[Page]:
        """List pages with pagination."""
        with session_scope() as session:
            query = session.query(Page)
            if errors_only:
                query = query.filter(Page.error_message.isnot(None))
            pages = query.order_by(Page.id).offset(offset).limit(limit).all()
            for page in pages:
                session.expunge(page)
            return pages

    def count_by_status(self, since: Optional[datetime] = None) -> dict:
        """Get page counts for a status report."""
        with session_scope() as session:
            query = session.query(Page)
            counts = {
                "total": query.count(),
                "with_errors": query.filter(Page.error_message.isnot(None)).count(),
                "fetched": 0,
                "files": 0,
            }
            if since is not None:
                counts["fetched"] = query.filter(Page.last_checked_at >= since).count()
                counts["files"] = (
                    query.filter(Page.last_checked_at >= since, Page.file_path.isnot(None))
                    .count()
                )
            return counts
