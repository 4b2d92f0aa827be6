import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from tably.configs import DB_URI, DEBUG

logger = logging.getLogger(__name__)
# Only use client_encoding for PostgreSQL, not SQLite
engine_kwargs = {'echo': DEBUG}
if DB_URI.startswith('sqlite'):
    # A single shared connection keeps in-memory databases alive across threads
    engine_kwargs['connect_args'] = {'check_same_thread': False}
    if ':memory:' in DB_URI:
        engine_kwargs['poolclass'] = StaticPool
else:
    engine_kwargs['client_encoding'] = 'utf8'
engine = create_engine(DB_URI, **engine_kwargs)
session = scoped_session(sessionmaker(
    bind=engine, autocommit=False, autoflush=False))

Base = declarative_base()

def init():
    try:
        # Import models so they are registered on Base.metadata
        from tably.core import models  # noqa: F401
        Base.metadata.create_all(bind=engine)
        return session
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")
