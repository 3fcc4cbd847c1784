"""Options repository - durable key/value options with an explicit commit."""

from typing import Any, Dict, List, Optional

from database.connection import session_scope
from models.option import ArchiveOption
import config


def string_to_array(text: Optional[str]) -> List[str]:
    """
    Split newline-delimited text into a list of entries.

    Lines are trimmed; blank lines and duplicates are dropped, keeping
    the first occurrence of each entry.
    """
    if not text:
        return []
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if line and line not in entries:
            entries.append(line)
    return entries


class OptionsRepository:
    """
    Repository for ArchiveOption values.

    set() only stages a value; nothing is written until save() is
    called, which commits every staged value in one transaction.
    get() sees staged values before they are saved.

    Usage:
        options = OptionsRepository()
        options.set("archive_state_name", "setup").set("archive_name", name).save()
    """

    # Default options
    DEFAULTS = {
        "origin_url": config.ORIGIN_URL,
        "destination_scheme": "https://",
        "destination_host": "",
        "destination_url_type": "relative",
        "delivery_method": "zip",
        "local_dir": "",
        "temp_files_dir": str(config.TEMP_FILES_DIR),
        "additional_urls": "",
        "additional_files": "",
        "document_root": "",
        "delete_temp_files": False,
        "fetch_batch_size": config.FETCH_BATCH_SIZE,
        "transfer_batch_size": config.TRANSFER_BATCH_SIZE,
    }

    def __init__(self):
        self._pending: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get an option value."""
        if key in self._pending:
            return self._pending[key]

        with session_scope() as session:
            option = session.query(ArchiveOption).filter(ArchiveOption.key == key).first()
            if option is None:
                return default
            value = option.value
        return default if value is None else value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get a boolean option."""
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).lower() in ("true", "1", "yes")

    def get_int(self, key: str, default: int = 0) -> int:
        """Get an integer option."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_list(self, key: str) -> List[str]:
        """Get a newline-delimited option as a list of entries."""
        value = self.get(key)
        if isinstance(value, list):
            return string_to_array("\n".join(str(v) for v in value))
        return string_to_array(value)

    def set(self, key: str, value: Any) -> "OptionsRepository":
        """Stage an option value. Call save() to persist it."""
        self._pending[key] = value
        return self

    def save(self) -> "OptionsRepository":
        """Commit all staged values."""
        if not self._pending:
            return self

        with session_scope() as session:
            for key, value in self._pending.items():
                option = session.query(ArchiveOption).filter(ArchiveOption.key == key).first()
                if option is None:
                    option = ArchiveOption(key=key)
                    session.add(option)
                option.value = value

        self._pending = {}
        return self

    def get_all(self) -> Dict[str, Any]:
        """Get all options as a dictionary."""
        with session_scope() as session:
            options = {o.key: o.value for o in session.query(ArchiveOption).all()}
        options.update(self._pending)
        return options

    def delete(self, key: str) -> bool:
        """Delete an option."""
        self._pending.pop(key, None)
        with session_scope() as session:
            option = session.query(ArchiveOption).filter(ArchiveOption.key == key).first()
            if option:
                session.delete(option)
                return True
            return False

    def reset_defaults(self) -> Dict[str, Any]:
        """Reset the configurable options to their defaults."""
        for key, value in self.DEFAULTS.items():
            self.set(key, value)
        self.save()
        return self.get_all()
