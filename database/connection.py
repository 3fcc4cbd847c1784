"""SQLite database connection and session management."""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import NullPool

import config
from models import Base


def _create_engine(database_url: str):
    # NullPool creates fresh connections each time, avoiding pool exhaustion
    # Safe for concurrent access from Flask requests and CLI runs
    return create_engine(
        database_url,
        echo=config.FLASK_DEBUG,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )


engine = _create_engine(config.DATABASE_URL)

# Create session factory
SessionFactory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

# Thread-local session
Session = scoped_session(SessionFactory)


def configure(database_url: str):
    """Rebind the engine and sessions to another database URL."""
    global engine
    Session.remove()
    engine = _create_engine(database_url)
    SessionFactory.configure(bind=engine)
    return engine


def get_session():
    """Get a database session."""
    return Session()


def remove_session():
    """Remove the current thread-local session.

    This returns the connection to the pool and should be called
    after each request or operation completes.
    """
    Session.remove()


@contextmanager
def session_scope():
    """Provide a transactional scope around a series of operations."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def init_db():
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine)
    _seed_defaults()


def _seed_defaults():
    """Seed default archive options."""
    from database.repositories.options_repository import OptionsRepository

    repo = OptionsRepository()
    for key, value in repo.DEFAULTS.items():
        if repo.get(key) is None:
            repo.set(key, value)
    repo.save()
