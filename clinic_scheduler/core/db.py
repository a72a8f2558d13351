from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from clinic_scheduler.core.config import settings


def to_async_url(database_url: str) -> str:
    """Swap in the async driver for the sync URL used by Alembic.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so
    they are stripped; SSL is enabled via connect_args instead.
    """
    if database_url.startswith("sqlite://"):
        # urlunparse would collapse the empty netloc of sqlite:///path
        return "sqlite+aiosqlite://" + database_url[len("sqlite://"):]
    parsed = urlparse(database_url)
    scheme = "postgresql+asyncpg" if parsed.scheme == "postgresql" else parsed.scheme
    query = parse_qs(parsed.query, keep_blank_values=True)
    query.pop("sslmode", None)
    query.pop("channel_binding", None)
    new_query = urlencode(query, doseq=True)
    return urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, new_query, parsed.fragment))


def create_engine_for(database_url: str) -> AsyncEngine:
    async_url = to_async_url(database_url)
    if async_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in async_url or async_url.endswith("://"):
            kwargs["poolclass"] = StaticPool
        return create_async_engine(async_url, echo=False, **kwargs)
    return create_async_engine(
        async_url,
        echo=settings.env == "development",
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args={"ssl": True},  # Neon requires SSL; asyncpg uses this instead of sslmode
    )


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
