"""Shared utilities for Celery tasks"""
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from app.core.config import settings
import app.models  # noqa: F401  Register all models


def create_task_db_session():
    """
    Create a new database engine and session factory for use in Celery tasks.

    Each task runs its coroutine with asyncio.run(), i.e. on a fresh event
    loop, and asyncpg connections are bound to the loop that created them,
    so tasks cannot share the application's global engine.
    """
    task_engine = create_async_engine(
        settings.DATABASE_URL,
        pool_size=5,
        max_overflow=10,
    )
    session_factory = async_sessionmaker(
        task_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return task_engine, session_factory
