"""SQLAlchemy models for Stillsite."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

from models.page import Page
from models.option import ArchiveOption

__all__ = ["Base", "Page", "ArchiveOption"]
