"""Database connection and session management using SQLAlchemy async ORM"""
from datetime import datetime, timezone
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from app.config import DATABASE_URL

engine_options = {"echo": False, "pool_pre_ping": True}

# Pool sizing only applies to the production PostgreSQL backend
# pool_size=20: Keep 20 connections alive in the pool
# max_overflow=30: Allow 30 additional connections under load (total 50 max)
# pool_recycle=3600: Recycle connections every hour to prevent stale connections
if DATABASE_URL.startswith("postgresql"):
    engine_options.update(pool_size=20, max_overflow=30, pool_recycle=3600)

engine = create_async_engine(DATABASE_URL, **engine_options)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for declarative models
Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current time used for all timestamp columns"""
    return datetime.now(timezone.utc)


async def init_models(bind=None):
    """Create all tables directly from metadata (development and tests only)"""
    import app.models  # noqa: F401  register tables on Base.metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI endpoints to get database session.

    Usage in FastAPI:
        @router.get("/courses")
        async def list_courses(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Course))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def conflict_insert(session: AsyncSession, model):
    """
    INSERT statement supporting ON CONFLICT clauses for the session's backend.

    PostgreSQL in production, SQLite in the test suite.
    """
    if session.bind.dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
