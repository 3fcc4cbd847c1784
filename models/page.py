"""Page model - one row per URL discovered on the origin site."""

from datetime import datetime
from sqlalchemy import Column, String, Text, Integer, DateTime
from models import Base


class Page(Base):
    """A page or file of the origin site, fetched into the static mirror."""

    __tablename__ = "pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False, unique=True)
    http_status_code = Column(Integer)
    content_type = Column(String(255))
    file_path = Column(Text)
    last_checked_at = Column(DateTime)
    error_message = Column(Text)
    found_on_id = Column(Integer)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Page types, derived from the content type
    TYPE_HTML = "html"
    TYPE_XML = "xml"
    TYPE_CSS = "css"
    TYPE_OTHER = "other"

    @property
    def page_type(self) -> str:
        """Classify the page by its content type."""
        content_type = (self.content_type or "").split(";")[0].strip().lower()
        if not content_type:
            return self.TYPE_OTHER
        if "html" in content_type:
            return self.TYPE_HTML
        if "xml" in content_type or "rss" in content_type or "atom" in content_type:
            return self.TYPE_XML
        if content_type == "text/css":
            return self.TYPE_CSS
        return self.TYPE_OTHER

    def is_type(self, page_type: str) -> bool:
        """Check the page type."""
        return self.page_type == page_type

    def set_error_message(self, message: str):
        """Record an error, keeping the first one set."""
        if not self.error_message:
            self.error_message = message

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "url": self.url,
            "http_status_code": self.http_status_code,
            "content_type": self.content_type,
            "page_type": self.page_type,
            "file_path": self.file_path,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "error_message": self.error_message,
            "found_on_id": self.found_on_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
