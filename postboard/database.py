from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from postboard.config import settings
from postboard.middleware import install_query_counter

# Module-level engine and session factory; tests rebind both to SQLite.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# session.info key holding coroutine functions to await once the
# transaction is committed.
_AFTER_COMMIT = "after_commit"


class Base(DeclarativeBase):
    pass


def on_commit(session: AsyncSession, callback) -> None:
    """
    Schedule *callback* (an async callable, no arguments) to run after
    *session* commits.  Registering the same callback twice runs it once.
    """
    pending = session.info.setdefault(_AFTER_COMMIT, [])
    if callback not in pending:
        pending.append(callback)


async def commit(session: AsyncSession) -> None:
    """Commit *session*, then run the callbacks registered with ``on_commit``."""
    await session.commit()
    for callback in session.info.pop(_AFTER_COMMIT, []):
        await callback()


async def rollback(session: AsyncSession) -> None:
    """Roll back *session* and drop any pending after-commit callbacks."""
    session.info.pop(_AFTER_COMMIT, None)
    await session.rollback()


async def get_db():
    """Yield one session per request; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise
