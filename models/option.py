"""ArchiveOption model - persisted key/value options."""

import json
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime
from models import Base


class ArchiveOption(Base):
    """Key-value store for archive options and job state."""

    __tablename__ = "archive_options"

    key = Column(String(100), primary_key=True)
    value_json = Column(Text, nullable=False, default="null")
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def value(self):
        """Decode the stored JSON value."""
        try:
            return json.loads(self.value_json) if self.value_json else None
        except json.JSONDecodeError:
            return None

    @value.setter
    def value(self, value):
        """Encode the value as JSON."""
        self.value_json = json.dumps(value)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "value": self.value,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
