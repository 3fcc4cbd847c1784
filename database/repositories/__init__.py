"""Database repositories."""

from database.repositories.page_repository import PageRepository
from database.repositories.options_repository import OptionsRepository, string_to_array

__all__ = [
    "PageRepository",
    "OptionsRepository",
    "string_to_array",
]
